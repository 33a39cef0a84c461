"""
Zapp Builder Package
AI-assisted scaffolding of React Native and Flutter projects with live previews
"""

__version__ = "1.0.0"
__author__ = "Zapp Team"

# Import main components for easy access
from .filesystem import (
    VirtualFile, make_file, filesystem_from_files,
    pick_active_file, relevant_files
)
from .functions import (
    extract_json, extract_code,
    run_agent_with_token_limit,
    run_generation, run_single_file_generation
)
from .workspace import WorkspaceSession, Message, build_file_tree

__all__ = [
    'VirtualFile', 'make_file', 'filesystem_from_files',
    'pick_active_file', 'relevant_files',
    'extract_json', 'extract_code',
    'run_agent_with_token_limit',
    'run_generation', 'run_single_file_generation',
    'WorkspaceSession', 'Message', 'build_file_tree',
]

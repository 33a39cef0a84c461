"""
Virtual filesystem helpers

A virtual filesystem is a plain dict: path -> {"path", "content", "type": "file"}.
Every value's "path" equals its key. Folders are never stored; consumers infer
them from "/" separated paths.
"""

import json
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel

from .exceptions import InputValidationError, MalformedOutputError


ACTIVE_FILE_HINTS = ("screen", "view", "page")
SHARED_FILE_HINT = "service"


class VirtualFile(BaseModel):
    path: str
    content: str
    type: Literal["file"] = "file"


def make_file(path: str, content: str) -> dict:
    return {"path": path, "content": content, "type": "file"}


def filesystem_from_files(files) -> Dict[str, dict]:
    """Build a filesystem from the model's {path: content} object."""
    if not isinstance(files, dict):
        raise MalformedOutputError("Expected a JSON object mapping file paths to contents.")

    filesystem = {}
    for path, content in files.items():
        if not isinstance(content, str):
            content = json.dumps(content, indent=2)
        filesystem[path] = make_file(path, content)
    return filesystem


def validate_filesystem(filesystem: Dict[str, dict]) -> Dict[str, dict]:
    for key, vfile in filesystem.items():
        if vfile.get("path") != key:
            raise InputValidationError(
                f"virtualFilesystem entry '{key}' has mismatched path '{vfile.get('path')}'"
            )
    return filesystem


def file_tree(filesystem: Dict[str, dict]) -> str:
    return "\n".join(filesystem.keys())


def pick_active_file(filesystem: Dict[str, dict]) -> Optional[str]:
    """First screen/view/page-like path, else the first path."""
    paths = list(filesystem.keys())
    for path in paths:
        if any(hint in path for hint in ACTIVE_FILE_HINTS):
            return path
    return paths[0] if paths else None


def target_basename(path: str) -> str:
    return path.split("/")[-1] or "main"


def relevant_files(filesystem: Dict[str, dict], target_path: str) -> List[dict]:
    """Files whose path mentions the target's basename, plus every service file."""
    basename = target_basename(target_path)
    return [
        vfile for path, vfile in filesystem.items()
        if basename in path or SHARED_FILE_HINT in path
    ]


def write_file(filesystem: Dict[str, dict], path: str, content: str) -> None:
    filesystem[path] = make_file(path, content)

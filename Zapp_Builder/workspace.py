"""
Workspace session: the editing state a client keeps between generation calls

The session owns the last-known filesystem, active file, preview code and the
chat transcript. It talks to the generation endpoint through a transport
callable: payload dict -> (status_code, response dict).
"""

import json
import urllib.request
import urllib.error
from typing import Callable, Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel


INITIAL_REPLY = "I've created your project structure. What's next?"
CHANGE_REPLY = "Here are the changes."

Transport = Callable[[dict], Tuple[int, dict]]


class Message(BaseModel):
    role: Literal["user", "assistant"]
    text: str


def http_transport(base_url: str, timeout: float = 600) -> Transport:
    """Transport posting JSON to <base_url>/api/generate."""
    url = base_url.rstrip("/") + "/api/generate"

    def send(payload: dict) -> Tuple[int, dict]:
        req = urllib.request.Request(
            url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                return resp.status, json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            try:
                body = json.loads(e.read().decode("utf-8"))
            except ValueError:
                body = {}
            return e.code, body

    return send


def build_file_tree(paths) -> Dict[str, dict]:
    """Nest "/" separated paths into folders; files map to None."""
    tree: Dict[str, dict] = {}
    for path in paths:
        parts = [part for part in path.split("/") if part]
        if not parts:
            continue
        node = tree
        for folder in parts[:-1]:
            child = node.get(folder)
            if not isinstance(child, dict):
                child = {}
                node[folder] = child
            node = child
        node.setdefault(parts[-1], None)
    return tree


class WorkspaceSession:
    def __init__(self, stack: str, transport: Transport):
        self.stack = stack
        self.transport = transport
        self.virtual_filesystem: Optional[Dict[str, dict]] = None
        self.active_file: Optional[str] = None
        self.active_file_preview_code: Optional[str] = None
        self.messages: List[Message] = []
        self.loading = False

    def _call(self, payload: dict, error_text: str) -> dict:
        status, data = self.transport(payload)
        if not 200 <= status < 300:
            raise RuntimeError((data or {}).get("error") or error_text)
        return data

    def _apply(self, data: dict):
        self.virtual_filesystem = data.get("virtualFilesystem")
        self.active_file = data.get("activeFile")
        self.active_file_preview_code = data.get("activeFilePreviewCode")

    def start(self, prompt: str, images: Optional[List[str]] = None) -> None:
        """Initial generation; resets the session."""
        self.loading = True
        self.virtual_filesystem = None
        self.active_file = None
        self.active_file_preview_code = None
        self.messages = [Message(role="user", text=prompt)]
        try:
            data = self._call(
                {"prompt": prompt, "stack": self.stack, "images": images or []},
                "Failed to generate project",
            )
            self._apply(data)
            self.messages.append(Message(role="assistant", text=INITIAL_REPLY))
        except Exception as e:
            self.messages.append(Message(role="assistant", text=f"Error: {e}"))
        finally:
            self.loading = False

    def submit_change(self, message: str, images: Optional[List[str]] = None) -> bool:
        """Iterative change; returns False when the submission is ignored."""
        images = images or []
        prompt = message.strip()
        if (not prompt and not images) or self.virtual_filesystem is None or self.loading:
            return False

        self.messages.append(Message(role="user", text=prompt or "Image prompt"))
        self.loading = True
        try:
            data = self._call(
                {
                    "prompt": prompt,
                    "stack": self.stack,
                    "virtualFilesystem": self.virtual_filesystem,
                    "activeFile": self.active_file,
                    "images": images,
                },
                "Failed to modify code",
            )
            self._apply(data)
            self.messages.append(Message(role="assistant", text=CHANGE_REPLY))
        except Exception as e:
            # Last good state stays visible.
            self.messages.append(Message(role="assistant", text=f"Error: {e}"))
        finally:
            self.loading = False
        return True

    def select_file(self, path: str) -> None:
        if path == self.active_file:
            return
        self.active_file = path

        # Flutter previews the whole project, not the selected file.
        if self.stack == "flutter":
            return

        if "/screens/" not in path:
            self.active_file_preview_code = None
            return

        self.loading = True
        try:
            data = self._call(
                {
                    "prompt": f"Generate preview for {path}",
                    "stack": self.stack,
                    "virtualFilesystem": self.virtual_filesystem,
                    "activeFile": path,
                    "previewOnly": True,
                },
                "Failed to generate preview",
            )
            self.virtual_filesystem = data.get("virtualFilesystem", self.virtual_filesystem)
            self.active_file_preview_code = data.get("activeFilePreviewCode")
        except Exception as e:
            print(f"⚠️ Failed to generate preview for {path}: {e}")
            self.active_file_preview_code = None
        finally:
            self.loading = False

    @property
    def active_file_content(self) -> str:
        if not self.active_file or not self.virtual_filesystem:
            return ""
        vfile = self.virtual_filesystem.get(self.active_file)
        return vfile["content"] if vfile else ""

    @property
    def file_tree(self) -> Dict[str, dict]:
        return build_file_tree((self.virtual_filesystem or {}).keys())

"""
FastAPI Main module for Zapp Builder
Generation, gist and project endpoints
"""

import json
import asyncio
import jwt
import urllib.request
import urllib.error
from datetime import datetime
from typing import Dict, List, Literal, Optional, Union
from fastapi import FastAPI, HTTPException, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .exceptions import ZappError, InputValidationError, UpstreamServiceError
from .filesystem import VirtualFile, validate_filesystem
from .functions import run_generation, run_single_file_generation
from .simple_database import (
    get_user_projects, create_project, update_project, delete_project, get_project
)


settings = get_settings()

app = FastAPI(
    title="Zapp Builder",
    description="AI-assisted mobile app scaffolding for React Native and Flutter",
    version="1.0.0"
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


Stack = Literal["react-native", "flutter"]


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str
    stack: Stack
    virtual_filesystem: Optional[Dict[str, VirtualFile]] = Field(None, alias="virtualFilesystem")
    active_file: Optional[str] = Field(None, alias="activeFile")
    images: List[str] = []
    preview_only: bool = Field(False, alias="previewOnly")


class BlueprintCode(BaseModel):
    rn: str = ""
    next: str = ""


class SingleFileRequest(BaseModel):
    prompt: str
    stack: Stack
    code: Optional[Union[str, BlueprintCode]] = None


class GistRequest(BaseModel):
    code: Optional[str] = None


class ProjectCreateRequest(BaseModel):
    name: str
    prompt: str = ""
    stack: Stack
    virtual_filesystem: Dict[str, VirtualFile] = {}
    active_file: Optional[str] = None
    active_file_preview_code: Optional[str] = None


class ProjectUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    prompt: Optional[str] = None
    stack: Optional[Stack] = None
    virtual_filesystem: Optional[Dict[str, VirtualFile]] = None
    active_file: Optional[str] = None
    active_file_preview_code: Optional[str] = None

    @field_validator("name", "prompt", "stack", "virtual_filesystem")
    @classmethod
    def not_null(cls, value, info: ValidationInfo):
        # Only active_file and active_file_preview_code may be cleared.
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


# -------------------
# Error rendering: every failure answers {"error": "..."}
# -------------------

@app.exception_handler(ZappError)
async def zapp_error_handler(request: Request, exc: ZappError):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})


def _dump_filesystem(filesystem):
    if filesystem is None:
        return None
    return {path: vfile.model_dump() for path, vfile in filesystem.items()}


JWT_ALGORITHM = "HS256"


def extract_user_id_from_token(token: str) -> str:
    """Verify an auth-provider access token and return its subject"""
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="SUPABASE_JWT_SECRET is not configured")
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            audience=settings.jwt_audience,
        )
    except jwt.PyJWTError as e:
        print(f"⚠️ Rejected access token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing subject")
    return str(user_id)


def current_user_id(authorization: Optional[str]) -> str:
    token = None
    if authorization:
        if authorization.lower().startswith("bearer "):
            token = authorization.split(" ", 1)[1].strip()
        else:
            token = authorization.strip()

    if not token:
        raise HTTPException(status_code=401, detail="Missing Authorization token")
    return extract_user_id_from_token(token)


def send_gist(code: str) -> str:
    """Create a public single-file gist and return its id"""
    if not settings.github_token:
        raise UpstreamServiceError("GITHUB_TOKEN is not configured")

    payload = {
        "description": "Zapp Flutter preview",
        "public": True,
        "files": {"main.dart": {"content": code}},
    }
    headers = {
        "Authorization": f"Bearer {settings.github_token}",
        "Accept": "application/vnd.github+json",
        "Content-Type": "application/json",
    }
    req = urllib.request.Request(
        f"{settings.github_api_url}/gists",
        data=json.dumps(payload).encode("utf-8"),
        headers=headers,
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=15) as resp:
            data = json.loads(resp.read().decode("utf-8"))
        gist_id = data["id"]
    except urllib.error.HTTPError as e:
        body = e.read().decode("utf-8", errors="replace")
        raise UpstreamServiceError(body or "Failed to create gist") from e
    except urllib.error.URLError as e:
        raise UpstreamServiceError(f"Failed to create gist: {e.reason}") from e
    except (ValueError, KeyError, TypeError) as e:
        print(f"❌ Unexpected gist response: {e}")
        raise UpstreamServiceError("Failed to create gist") from e

    return str(gist_id)


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Zapp Builder API",
        "version": "1.0.0",
        "endpoints": {
            "generate": "/api/generate - Generate or modify a multi-file project",
            "generate_single": "/api/generate/single - Single-file blueprint generation",
            "create_gist": "/api/create-gist - Publish Flutter preview code as a gist",
            "projects": "/api/v1/projects - Saved projects",
        }
    }


@app.post("/api/generate")
async def generate(request: GenerateRequest):
    """Multi-file orchestrator: initial generation or planned edits, then preview derivation"""
    filesystem = _dump_filesystem(request.virtual_filesystem)
    if filesystem is not None:
        validate_filesystem(filesystem)

    try:
        return await run_generation(
            request.prompt,
            request.stack,
            filesystem=filesystem,
            active_file=request.active_file,
            images=request.images,
            preview_only=request.preview_only,
        )
    except ZappError as e:
        print(f"❌ Error in /api/generate: {e}")
        raise
    except Exception as e:
        print(f"❌ Unexpected error in /api/generate: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=str(e) or "An unexpected error occurred")


@app.post("/api/generate/single")
async def generate_single(request: SingleFileRequest):
    """Single-file variant: one main.dart, or a React Native blueprint plus browser code"""
    code = request.code.model_dump() if isinstance(request.code, BlueprintCode) else request.code
    try:
        return await run_single_file_generation(request.prompt, request.stack, code)
    except ZappError as e:
        print(f"❌ Error in /api/generate/single: {e}")
        raise
    except Exception as e:
        print(f"❌ Unexpected error in /api/generate/single: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=str(e) or "An unexpected error occurred")


@app.post("/api/create-gist")
async def create_gist(request: GistRequest):
    """Publish preview code as a public gist for DartPad"""
    if not request.code:
        raise InputValidationError("Missing code")

    try:
        gist_id = await asyncio.to_thread(send_gist, request.code)
    except ZappError as e:
        print(f"❌ Gist creation error: {e}")
        raise
    print(f"✅ Created gist {gist_id}")
    return {"gistId": gist_id}


# -------------------
# Projects
# -------------------

def _owned_project(project_id: str, user_id: str):
    project = get_project(project_id)
    if not project or project.get("user_id") != user_id:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@app.get("/api/v1/projects")
async def list_projects(Authorization: Optional[str] = Header(None, description="Bearer access token")):
    """List the caller's projects, most recently updated first"""
    user_id = current_user_id(Authorization)
    return {"projects": get_user_projects(user_id)}


@app.post("/api/v1/projects")
async def save_project(
    request: ProjectCreateRequest,
    Authorization: Optional[str] = Header(None, description="Bearer access token")
):
    user_id = current_user_id(Authorization)
    data = request.model_dump()
    data["virtual_filesystem"] = validate_filesystem(_dump_filesystem(request.virtual_filesystem))
    return create_project(user_id, data)


@app.get("/api/v1/projects/{project_id}")
async def read_project(project_id: str, Authorization: Optional[str] = Header(None, description="Bearer access token")):
    user_id = current_user_id(Authorization)
    return _owned_project(project_id, user_id)


@app.patch("/api/v1/projects/{project_id}")
async def patch_project(
    project_id: str,
    request: ProjectUpdateRequest,
    Authorization: Optional[str] = Header(None, description="Bearer access token")
):
    """Overwrite the given fields; concurrent sessions are last-write-wins"""
    user_id = current_user_id(Authorization)
    _owned_project(project_id, user_id)

    updates = request.model_dump(exclude_unset=True)
    if updates.get("virtual_filesystem") is not None:
        updates["virtual_filesystem"] = validate_filesystem(_dump_filesystem(request.virtual_filesystem))
    update_project(project_id, updates)
    return {"status": "success", "project_id": project_id}


@app.delete("/api/v1/projects/{project_id}")
async def remove_project(project_id: str, Authorization: Optional[str] = Header(None, description="Bearer access token")):
    user_id = current_user_id(Authorization)
    _owned_project(project_id, user_id)
    delete_project(project_id)
    return {"status": "success", "project_id": project_id}


@app.get("/api/v1/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


# -------------------
# Run the application
# -------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""
Project store using psycopg2 directly against the hosted Postgres database
Whole-document writes, last write wins
"""
import psycopg2
import psycopg2.extras
from typing import Optional, Dict, Any, List

from .config import get_settings
from .exceptions import InputValidationError, PersistenceError


PROJECT_COLUMNS = (
    "id, user_id, name, prompt, stack, virtual_filesystem, active_file, "
    "active_file_preview_code, created_at, updated_at"
)

MUTABLE_FIELDS = (
    "name", "prompt", "stack", "virtual_filesystem",
    "active_file", "active_file_preview_code",
)

JSON_FIELDS = ("virtual_filesystem",)


def get_db_connection():
    return psycopg2.connect(**get_settings().postgres)


def _adapt(field, value):
    if field in JSON_FIELDS and value is not None:
        return psycopg2.extras.Json(value)
    return value


def _row_to_dict(row) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    project = dict(row)
    for key in ("id", "user_id"):
        if project.get(key) is not None:
            project[key] = str(project[key])
    for key in ("created_at", "updated_at"):
        value = project.get(key)
        if value is not None and hasattr(value, "isoformat"):
            project[key] = value.isoformat()
    if project.get("virtual_filesystem") is None:
        project["virtual_filesystem"] = {}
    return project


def _execute(query, params, fetch=None, commit=False):
    """Run one statement on a fresh connection; fetch is None, 'one' or 'all'."""
    conn = None
    try:
        conn = get_db_connection()
        cursor = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
        cursor.execute(query, params)
        result = None
        if fetch == "one":
            result = cursor.fetchone()
        elif fetch == "all":
            result = cursor.fetchall()
        if commit:
            conn.commit()
        return result
    except psycopg2.Error as e:
        if conn is not None:
            conn.rollback()
        print(f"[DB] ❌ Query failed: {e}")
        raise PersistenceError(str(e).strip() or "Database error") from e
    finally:
        if conn is not None:
            conn.close()


def get_user_projects(user_id: str) -> List[Dict[str, Any]]:
    """All projects of a user, most recently updated first"""
    rows = _execute(
        f"""
        SELECT {PROJECT_COLUMNS}
        FROM projects
        WHERE user_id = %s
        ORDER BY updated_at DESC
        """,
        (user_id,),
        fetch="all",
    )
    return [_row_to_dict(r) for r in rows or []]


def create_project(user_id: str, project_data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a full project snapshot and return the stored row"""
    values = {field: project_data.get(field) for field in MUTABLE_FIELDS}
    if not values["name"]:
        raise InputValidationError("Project name is required")

    print(f"[DB] Creating project '{values['name']}' for user {user_id}")
    row = _execute(
        f"""
        INSERT INTO projects
        (user_id, name, prompt, stack, virtual_filesystem, active_file,
         active_file_preview_code, created_at, updated_at)
        VALUES (%s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
        RETURNING {PROJECT_COLUMNS}
        """,
        (user_id,) + tuple(_adapt(field, values[field]) for field in MUTABLE_FIELDS),
        fetch="one",
        commit=True,
    )
    return _row_to_dict(row)


def update_project(project_id: str, updates: Dict[str, Any]) -> None:
    """Patch the given fields and stamp updated_at"""
    unknown = sorted(set(updates) - set(MUTABLE_FIELDS))
    if unknown:
        raise InputValidationError(f"Cannot update fields: {', '.join(unknown)}")

    fields = [field for field in MUTABLE_FIELDS if field in updates]
    assignments = [f"{field} = %s" for field in fields] + ["updated_at = NOW()"]
    params = tuple(_adapt(field, updates[field]) for field in fields) + (project_id,)

    print(f"[DB] Updating project {project_id}: {fields}")
    _execute(
        f"UPDATE projects SET {', '.join(assignments)} WHERE id = %s",
        params,
        commit=True,
    )


def delete_project(project_id: str) -> None:
    print(f"[DB] Deleting project {project_id}")
    _execute("DELETE FROM projects WHERE id = %s", (project_id,), commit=True)


def get_project(project_id: str) -> Optional[Dict[str, Any]]:
    row = _execute(
        f"SELECT {PROJECT_COLUMNS} FROM projects WHERE id = %s",
        (project_id,),
        fetch="one",
    )
    return _row_to_dict(row)

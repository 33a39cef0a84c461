import datetime
import uuid

import psycopg2
import pytest

from Zapp_Builder import simple_database
from Zapp_Builder.exceptions import InputValidationError, PersistenceError


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def execute(self, query, params):
        if self.conn.error:
            raise self.conn.error
        self.conn.executed.append((" ".join(query.split()), params))

    def fetchone(self):
        return self.conn.rows[0] if self.conn.rows else None

    def fetchall(self):
        return list(self.conn.rows)


class FakeConnection:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.executed = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, cursor_factory=None):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


@pytest.fixture
def connect(monkeypatch):
    def install(**kwargs):
        conn = FakeConnection(**kwargs)
        monkeypatch.setattr(simple_database, "get_db_connection", lambda: conn)
        return conn
    return install


def project_row(**overrides):
    row = {
        "id": uuid.UUID("00000000-0000-0000-0000-000000000001"),
        "user_id": uuid.UUID("00000000-0000-0000-0000-0000000000aa"),
        "name": "Demo",
        "prompt": "a login screen",
        "stack": "flutter",
        "virtual_filesystem": {"lib/main.dart": {"path": "lib/main.dart", "content": "x", "type": "file"}},
        "active_file": "lib/main.dart",
        "active_file_preview_code": None,
        "created_at": datetime.datetime(2026, 1, 1, 12, 0),
        "updated_at": datetime.datetime(2026, 1, 2, 12, 0),
    }
    row.update(overrides)
    return row


def test_get_user_projects_orders_by_recent_update(connect):
    conn = connect(rows=[project_row()])

    projects = simple_database.get_user_projects("user-1")

    query, params = conn.executed[0]
    assert "WHERE user_id = %s" in query
    assert "ORDER BY updated_at DESC" in query
    assert params == ("user-1",)
    assert projects[0]["id"] == "00000000-0000-0000-0000-000000000001"
    assert projects[0]["updated_at"] == "2026-01-02T12:00:00"
    assert conn.closed


def test_create_project_returns_stored_row(connect):
    conn = connect(rows=[project_row()])
    fs = {"lib/main.dart": {"path": "lib/main.dart", "content": "x", "type": "file"}}

    project = simple_database.create_project("user-1", {
        "name": "Demo", "prompt": "a login screen", "stack": "flutter",
        "virtual_filesystem": fs, "active_file": "lib/main.dart",
        "active_file_preview_code": None,
    })

    query, params = conn.executed[0]
    assert query.startswith("INSERT INTO projects")
    assert "RETURNING" in query
    assert params[0] == "user-1"
    assert isinstance(params[4], psycopg2.extras.Json)
    assert params[4].adapted == fs
    assert conn.committed
    assert project["name"] == "Demo"


def test_create_project_requires_name(connect):
    conn = connect()
    with pytest.raises(InputValidationError):
        simple_database.create_project("user-1", {"stack": "flutter"})
    assert conn.executed == []


def test_update_project_patches_fields_and_stamps_time(connect):
    conn = connect()

    result = simple_database.update_project("p1", {"name": "New", "active_file": None})

    query, params = conn.executed[0]
    assert query == "UPDATE projects SET name = %s, active_file = %s, updated_at = NOW() WHERE id = %s"
    assert params == ("New", None, "p1")
    assert result is None
    assert conn.committed


def test_update_project_rejects_unknown_fields(connect):
    conn = connect()
    with pytest.raises(InputValidationError, match="user_id"):
        simple_database.update_project("p1", {"user_id": "someone"})
    assert conn.executed == []


def test_get_project_missing_returns_none(connect):
    connect(rows=[])
    assert simple_database.get_project("p1") is None


def test_delete_project_is_hard_delete(connect):
    conn = connect()
    simple_database.delete_project("p1")
    assert conn.executed == [("DELETE FROM projects WHERE id = %s", ("p1",))]
    assert conn.committed


def test_database_errors_roll_back_and_raise(connect):
    conn = connect(error=psycopg2.OperationalError("connection lost"))

    with pytest.raises(PersistenceError, match="connection lost"):
        simple_database.delete_project("p1")
    assert conn.rolled_back
    assert conn.closed

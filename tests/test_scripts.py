"""Tests for the command-line scripts."""

import pytest

from neon_devkit.neon.client import BranchCleanupReport, EphemeralDatabase, NeonAPIError
from neon_devkit.neon.connection import ConnectionReport
from scripts import create_ephemeral_db, destroy_ephemeral_db, validate_connection


@pytest.fixture
def destroy_calls(monkeypatch):
    """Replace the destroy coroutine with one that records its arguments."""
    calls = []

    async def fake_destroy(project_id, branch_id=None, branch_prefix=None, delete_project=False, config=None):
        calls.append({
            "project_id": project_id,
            "branch_id": branch_id,
            "branch_prefix": branch_prefix,
            "delete_project": delete_project,
        })
        if branch_prefix is not None:
            return BranchCleanupReport(prefix=branch_prefix)
        return None

    monkeypatch.setattr(destroy_ephemeral_db, "destroy_ephemeral_db", fake_destroy)
    return calls


def test_destroy_requires_project(capsys):
    assert destroy_ephemeral_db.main(["--prefix", "test/"]) == 1
    assert "usage" in capsys.readouterr().err


def test_destroy_without_api_key(monkeypatch, capsys):
    monkeypatch.delenv("NEON_API_KEY", raising=False)

    assert destroy_ephemeral_db.main(["proj-123"]) == 1
    assert "NEON_API_KEY" in capsys.readouterr().err


@pytest.mark.parametrize("argv,expected", [
    (["proj-1"], ("proj-1", None, None, True)),
    (["proj-1", "--branch", "br-1"], ("proj-1", "br-1", None, False)),
    (["proj-1", "--prefix", "test/"], ("proj-1", None, "test/", False)),
    (["--project", "proj-1", "--branch", "br-1"], ("proj-1", "br-1", None, False)),
    (["--project", "proj-1", "--prefix", "test/"], ("proj-1", None, "test/", False)),
    (["--project", "proj-1", "--delete-project"], ("proj-1", None, None, True)),
    (["proj-1", "--delete-project"], ("proj-1", None, None, True)),
])
def test_destroy_dispatch(destroy_calls, argv, expected):
    assert destroy_ephemeral_db.main(argv) == 0

    call = destroy_calls[0]
    assert (call["project_id"], call["branch_id"], call["branch_prefix"], call["delete_project"]) == expected


def test_destroy_branch_never_deletes_project(destroy_calls):
    destroy_ephemeral_db.main(["proj-1", "--branch", "br-1"])

    assert destroy_calls[0]["delete_project"] is False


def test_destroy_prefix_prints_summary(destroy_calls, capsys):
    assert destroy_ephemeral_db.main(["--project", "proj-1", "--prefix", "test/"]) == 0

    assert "Deleted 0 branches matching 'test/' (0 failed)" in capsys.readouterr().err


def test_destroy_reports_api_error(monkeypatch, capsys):
    async def failing_destroy(*args, **kwargs):
        raise NeonAPIError("Neon API returned 404", status_code=404)

    monkeypatch.setattr(destroy_ephemeral_db, "destroy_ephemeral_db", failing_destroy)

    assert destroy_ephemeral_db.main(["proj-1"]) == 1
    assert "Error: Neon API returned 404" in capsys.readouterr().err


def test_create_prints_only_uri_on_stdout(monkeypatch, capsys):
    calls = []

    async def fake_create(name=None, pg_version=16, region_id=None, config=None):
        calls.append((name, pg_version, region_id))
        return EphemeralDatabase(
            project_id="proj-9",
            name=name,
            connection_uri="postgresql://u:p@ep-x.neon.tech/neondb",
        )

    monkeypatch.setattr(create_ephemeral_db, "create_ephemeral_db", fake_create)

    assert create_ephemeral_db.main(["my-test", "--pg-version", "17", "--region", "aws-us-east-2"]) == 0

    captured = capsys.readouterr()
    assert captured.out == "postgresql://u:p@ep-x.neon.tech/neondb\n"
    assert 'export DATABASE_URL="postgresql://u:p@ep-x.neon.tech/neondb"' in captured.err
    assert "destroy-ephemeral-db proj-9" in captured.err
    assert calls == [("my-test", 17, "aws-us-east-2")]


def test_create_reports_api_error(monkeypatch, capsys):
    async def failing_create(**kwargs):
        raise NeonAPIError("Neon API returned 401", status_code=401)

    monkeypatch.setattr(create_ephemeral_db, "create_ephemeral_db", failing_create)

    assert create_ephemeral_db.main([]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Error: Neon API returned 401" in captured.err


def test_validate_connection_requires_database_url(monkeypatch, capsys):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    assert validate_connection.main([]) == 1
    assert "DATABASE_URL" in capsys.readouterr().err


def test_format_report():
    report = ConnectionReport(
        http_ok=True,
        pool_ok=False,
        latency_ms=42.4,
        server_version="PostgreSQL 16.3 on x86_64-pc-linux-gnu",
        error="pool: timeout",
    )

    text = validate_connection.format_report(report)

    assert "HTTP Connection:      ✓ OK" in text
    assert "Pool Connection:      ✗ Failed" in text
    assert "42ms" in text
    assert "PostgreSQL Version:   16.3" in text
    assert text.endswith("Error: pool: timeout")

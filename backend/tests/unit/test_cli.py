"""
Tests for the keygate CLI.

Commands open their own sessions, so each test points the CLI at a
throwaway SQLite file.
"""
import pytest
from uuid import uuid4

from sqlalchemy import create_engine, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

from keygate import __version__
from keygate.cli import helpers
from keygate.cli.__main__ import app
from keygate.database import Base
from keygate.models import APIKey, User

runner = CliRunner()


@pytest.fixture
def cli_db(tmp_path, monkeypatch):
    """Sync engine for setup/inspection; the CLI gets an async one on the same file."""
    path = tmp_path / "cli.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)

    async_engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    monkeypatch.setattr(
        helpers,
        "AsyncSessionLocal",
        async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False),
    )

    yield sync_engine

    sync_engine.dispose()


@pytest.fixture
def owner_id(cli_db):
    with Session(cli_db) as session:
        owner = User(username="dave")
        session.add(owner)
        session.commit()
        return owner.id


def _keys(engine):
    with Session(engine) as session:
        return list(session.execute(select(APIKey).order_by(APIKey.version)).scalars().all())


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_create_user(cli_db):
    result = runner.invoke(app, ["users", "create", "erin", "--email", "erin@example.com"])

    assert result.exit_code == 0
    with Session(cli_db) as session:
        assert session.execute(select(User).where(User.username == "erin")).scalar_one()


def test_create_key_prints_secret(cli_db, owner_id):
    result = runner.invoke(app, ["keys", "create", str(owner_id), "CI", "-p", "read"])

    assert result.exit_code == 0, result.output
    assert "Key:" in result.output

    keys = _keys(cli_db)
    assert len(keys) == 1
    assert keys[0].prefix in result.output


def test_rotate_and_revoke(cli_db, owner_id):
    runner.invoke(app, ["keys", "create", str(owner_id), "CI"])
    original = _keys(cli_db)[0]

    rotated = runner.invoke(
        app, ["keys", "rotate", str(owner_id), str(original.id), "--reason", "scheduled"]
    )
    assert rotated.exit_code == 0, rotated.output

    old, new = _keys(cli_db)
    assert old.is_active is False
    assert new.version == 2
    assert new.parent_key_id == original.id

    revoked = runner.invoke(app, ["keys", "revoke", str(owner_id), str(new.id)])
    assert revoked.exit_code == 0
    assert all(not k.is_active for k in _keys(cli_db))


def test_list_empty(cli_db, owner_id):
    result = runner.invoke(app, ["keys", "list", str(owner_id)])
    assert result.exit_code == 0
    assert "No API keys found" in result.output


def test_unknown_key_exits_with_error(cli_db, owner_id):
    result = runner.invoke(app, ["keys", "revoke", str(owner_id), str(uuid4())])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_create_for_unknown_user(cli_db):
    result = runner.invoke(app, ["keys", "create", str(uuid4()), "CI"])

    assert result.exit_code == 1
    assert _keys(cli_db) == []

"""Operator CLI commands against the test database."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from src import cli
from src.database.models import Conversion, User


@pytest.fixture
def cli_db(monkeypatch, session_factory):
    @asynccontextmanager
    async def test_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    monkeypatch.setattr(cli, "get_async_db", test_db)


@pytest.mark.asyncio
async def test_add_credits_by_email(cli_db, db_session, user_factory, capsys):
    user = await user_factory.create_async(
        db_session, email="ops@example.com", credits_balance=1
    )

    exit_code = await cli.cmd_add_credits("ops@example.com", 50, None)

    assert exit_code == 0
    assert "Current balance: 51 credits" in capsys.readouterr().out
    balance = await db_session.scalar(
        select(User.credits_balance).where(User.id == user.id)
    )
    assert balance == 51


@pytest.mark.asyncio
async def test_add_credits_unknown_email(cli_db, capsys):
    exit_code = await cli.cmd_add_credits("ghost@example.com", 10, None)

    assert exit_code == 1
    assert "not found" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cleanup_dry_run(cli_db, db_session, conversion_factory, capsys):
    await conversion_factory.create_async(
        db_session,
        anonymous_id="anon-cli",
        created_at=datetime.now(timezone.utc) - timedelta(days=3),
    )

    exit_code = await cli.cmd_cleanup(dry_run=True)

    assert exit_code == 0
    assert "Would delete 1 conversions" in capsys.readouterr().out
    assert (await db_session.execute(select(Conversion.id))).first() is not None


def test_amount_must_be_positive():
    with pytest.raises(SystemExit):
        cli.main(["add-credits", "ops@example.com", "0"])

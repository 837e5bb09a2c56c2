"""
Test suite for manage.py CLI commands.

Run all tests:
    pytest tests/test_manage.py -v
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError
import typer
from typer.testing import CliRunner

from manage import app, init_db_task, purge_expired_task

runner = CliRunner()


class TestInitDbCommand:

    def test_initdb_help(self):
        result = runner.invoke(app, ["initdb", "--help"])

        assert result.exit_code == 0
        assert "Create the database tables" in result.stdout

    def test_initdb_runs_task(self):
        with patch("manage.init_db_task", new_callable=AsyncMock) as mock_task:
            result = runner.invoke(app, ["initdb"])

        assert result.exit_code == 0
        mock_task.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_task_creates_tables_and_disposes(self):
        with patch("manage.init_db", new_callable=AsyncMock) as mock_init, patch(
            "manage.dispose_db", new_callable=AsyncMock
        ) as mock_dispose:
            await init_db_task()

        mock_init.assert_awaited_once()
        mock_dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_task_exits_on_database_error(self):
        with patch(
            "manage.init_db",
            new=AsyncMock(side_effect=OperationalError("CREATE", {}, Exception("down"))),
        ), patch("manage.dispose_db", new_callable=AsyncMock) as mock_dispose:
            with pytest.raises(typer.Exit):
                await init_db_task()

        mock_dispose.assert_awaited_once()


class TestPurgeExpiredCommand:

    def test_purgeexpired_help(self):
        result = runner.invoke(app, ["purgeexpired", "--help"])

        assert result.exit_code == 0
        assert "--dry-run" in result.stdout

    @pytest.mark.parametrize("flag", ["--dry-run", "-n"])
    def test_dry_run_flag(self, flag):
        with patch("manage.purge_expired_task", new_callable=AsyncMock) as mock_task:
            result = runner.invoke(app, ["purgeexpired", flag])

        assert result.exit_code == 0
        mock_task.assert_awaited_once_with(True)


class TestPurgeExpiredTask:

    @pytest.mark.asyncio
    async def test_removes_only_expired_rows(
        self, session_factory, issue_challenge, make_session_token
    ):
        from salon.apps.bookings.db.crud import otp_challenge_db

        await issue_challenge(email="old@example.com", expires_in=timedelta(minutes=-5))
        await issue_challenge(email="live@example.com")
        await make_session_token("live@example.com")

        with patch("manage.AsyncSessionLocal", session_factory):
            counts = await purge_expired_task()

        assert counts == {"challenges": 1, "sessions": 0}
        async with session_factory() as session:
            assert await otp_challenge_db.count(
                session, [otp_challenge_db.model.email.is_not(None)]
            ) == 1

    @pytest.mark.asyncio
    async def test_dry_run_deletes_nothing(self, session_factory, issue_challenge):
        from salon.apps.bookings.db.crud import otp_challenge_db

        await issue_challenge(email="old@example.com", expires_in=timedelta(minutes=-5))

        with patch("manage.AsyncSessionLocal", session_factory):
            counts = await purge_expired_task(dry_run=True)

        assert counts["challenges"] == 1
        async with session_factory() as session:
            assert await otp_challenge_db.count(
                session, [otp_challenge_db.model.email.is_not(None)]
            ) == 1

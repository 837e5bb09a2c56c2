import asyncio
from datetime import datetime, timezone
import json
from pathlib import Path
import subprocess
from typing import Annotated

from rich import print
from sqlalchemy.exc import SQLAlchemyError
import typer

from salon.apps.bookings.db.crud import booking_session_db, otp_challenge_db
from salon.core.config import settings
from salon.core.db import AsyncSessionLocal, dispose_db, init_db

app = typer.Typer()


async def init_db_task() -> None:
    """
    Create every table registered on the metadata.

    Existing tables are left untouched, so the command is safe to re-run.

    Raises:
        typer.Exit: If the database cannot be reached or the DDL fails.
    """
    print("[yellow]Creating database tables[/yellow]")
    try:
        await init_db()
        print("[green]Database tables created successfully[/green]")
    except SQLAlchemyError as e:
        print(f"[red]Error creating database tables:[/red] {str(e)}")
        raise typer.Exit(1)
    finally:
        await dispose_db()


async def purge_expired_task(dry_run: bool = False) -> dict[str, int]:
    """
    Delete expired OTP challenges and booking sessions.

    Lookups already ignore expired rows; this only keeps the tables small.

    Args:
        dry_run: Count the expired rows without deleting them.

    Returns:
        dict[str, int]: Rows removed (or that would be removed) per table.
    """
    now = datetime.now(timezone.utc)
    print(f"[yellow]Purging rows that expired before {now.isoformat()}[/yellow]")

    async with AsyncSessionLocal() as session:
        if dry_run:
            counts = {
                "challenges": await otp_challenge_db.count(
                    session, [otp_challenge_db.model.expires_at <= now]
                ),
                "sessions": await booking_session_db.count(
                    session, [booking_session_db.model.expires_at <= now]
                ),
            }
        else:
            counts = {
                "challenges": await otp_challenge_db.purge_expired(
                    session, now, commit_self=False
                ),
                "sessions": await booking_session_db.purge_expired(
                    session, now, commit_self=False
                ),
            }
            await session.commit()

    verb = "Would remove" if dry_run else "Removed"
    print(
        f"[green]{verb} {counts['challenges']} challenge(s) "
        f"and {counts['sessions']} session(s)[/green]"
    )
    return counts


@app.command()
def initdb():
    """
    Create the database tables.

    Uses DATABASE_URL from the environment or .env file.
    """
    asyncio.run(init_db_task())


@app.command()
def purgeexpired(
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show how many rows would be removed without deleting them",
        ),
    ] = False,
):
    """
    Delete expired OTP challenges and booking sessions.

    Examples:
        python manage.py purgeexpired
        python manage.py purgeexpired --dry-run
    """
    asyncio.run(purge_expired_task(dry_run))


@app.command()
def runserver():
    try:
        server_command = (
            "uvicorn salon.main:app --host 127.0.0.1 --port 8000 --reload"
            if settings.DEBUG
            else "uvicorn salon.main:app --host 0.0.0.0 --port 8000"
        )
        print(f"Running FastAPI server: {server_command}")
        subprocess.run(server_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise


@app.command()
def generateopenapi():
    """
    Generates the OpenAPI schema for the FastAPI application and saves it to openapi.json.
    """
    from salon.main import app

    openapi_path = Path("openapi.json")
    with openapi_path.open("w", encoding="utf-8") as f:
        json.dump(app.openapi(), f, ensure_ascii=False, indent=2)
    print(f"[green]OpenAPI schema generated at {openapi_path.name}[/green]")


@app.callback()
def main(ctx: typer.Context):
    print(f"Executing the command: {ctx.invoked_subcommand}")


if __name__ == "__main__":
    app()

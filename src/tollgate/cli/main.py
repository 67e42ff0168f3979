"""Tollgate operator CLI.

Usage:
    tollgate serve                                  # Run the API with uvicorn
    tollgate init-db                                # Create tables from the models
    tollgate create-user jane@example.com -f Jane -l Smith
    tollgate sweep-sessions                         # Delete expired sessions once

sweep-sessions is meant for cron when the in-process sweeper is disabled
(TOLLGATE_SESSION_SWEEP_INTERVAL_SECONDS=0).
"""

from __future__ import annotations

import asyncio
import sys

import click

from tollgate import __version__
from tollgate.config import settings


def _run(coro):
    """Run an async coroutine from a synchronous click handler."""
    return asyncio.run(coro)


@click.group()
@click.version_option(version=__version__, prog_name="tollgate")
def main():
    """Tollgate — user accounts and session authentication."""


# ---------------------------------------------------------------------------
# tollgate serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: TOLLGATE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: TOLLGATE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "tollgate.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# tollgate init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
def init_db():
    """Create the users and sessions tables if missing (development)."""
    _run(_init_db_impl())
    click.secho("Database initialized", fg="green")


async def _init_db_impl():
    from tollgate.db.engine import create_all, engine

    try:
        await create_all()
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# tollgate create-user
# ---------------------------------------------------------------------------


@main.command("create-user")
@click.argument("email")
@click.option("--first-name", "-f", required=True)
@click.option("--last-name", "-l", required=True)
@click.password_option()
def create_user(email: str, first_name: str, last_name: str, password: str):
    """Create an account with a hashed password."""
    from tollgate.errors import EmailAlreadyExists

    try:
        user_id = _run(_create_user_impl(email, first_name, last_name, password))
    except EmailAlreadyExists:
        click.secho(f"Error: {email} already exists", fg="red", err=True)
        sys.exit(1)
    click.secho(f"User #{user_id} created", fg="green")


async def _create_user_impl(email, first_name, last_name, password) -> int:
    from tollgate.db.engine import async_session_factory, engine
    from tollgate.services.user_service import UserService

    try:
        async with async_session_factory() as db:
            user = await UserService(db).create(
                first_name=first_name,
                last_name=last_name,
                email=email,
                password=password,
            )
            return user.id
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# tollgate sweep-sessions
# ---------------------------------------------------------------------------


@main.command("sweep-sessions")
def sweep_sessions():
    """Delete every session whose expiry has passed."""
    deleted = _run(_sweep_impl())
    click.echo(f"Deleted {deleted} expired session(s)")


async def _sweep_impl() -> int:
    from tollgate.db.engine import engine
    from tollgate.services.session_sweeper import SessionSweeper

    try:
        return await SessionSweeper().sweep_once()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    main()

"""liftlog CLI — run the server and do database housekeeping.

Usage:
    liftlog serve                          # Run the API with uvicorn
    liftlog init-db                        # Create missing tables (dev only)
    liftlog create-user alice a@x.io       # Register a user (prompts for password)
    liftlog issue-token alice              # Issue a bearer token (prompts for password)
    liftlog revoke-expired                 # Delete expired tokens once (for cron)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys
from datetime import timedelta
from typing import Optional

import click

from liftlog import __version__
from liftlog.config import settings

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="liftlog")
def main():
    """liftlog — workout tracking API."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: LIFTLOG_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: LIFTLOG_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "liftlog.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db_cmd():
    """Create any missing tables. Use `alembic upgrade head` in production."""
    from liftlog.db.engine import init_db

    _run(init_db())
    click.secho("Tables created", fg="green")


@main.command("create-user")
@click.argument("username")
@click.argument("email")
@click.option("--bio", default="", help="Profile bio")
@click.password_option()
def create_user(username: str, email: str, bio: str, password: str):
    """Register a user."""
    from liftlog.errors import LiftlogError

    try:
        user = _run(_create_user(username, email, password, bio))
    except LiftlogError as e:
        _fail(e.public_message)
    click.secho(f"Created user #{user.id} ({user.username})", fg="green")


async def _create_user(username: str, email: str, password: str, bio: str):
    from liftlog.auth.password import hash_password
    from liftlog.db.engine import async_session_factory
    from liftlog.stores.user_store import UserStore

    async with async_session_factory() as db:
        return await UserStore(db).create(
            username=username,
            email=email,
            password_hash=hash_password(password),
            bio=bio,
        )


@main.command("issue-token")
@click.argument("username")
@click.option("--scope", default=None, help="Token scope (default: LIFTLOG_TOKEN_SCOPE)")
@click.option("--ttl-hours", default=None, type=int, help="Lifetime in hours")
@click.password_option(confirmation_prompt=False)
def issue_token(username: str, scope: Optional[str], ttl_hours: Optional[int], password: str):
    """Log in and print a bearer token. The token is shown only once."""
    from liftlog.errors import LiftlogError

    try:
        plaintext, record = _run(
            _issue_token(
                username,
                password,
                scope or settings.token_scope,
                timedelta(hours=ttl_hours or settings.token_ttl_hours),
            )
        )
    except LiftlogError as e:
        _fail(e.public_message)
    click.echo(plaintext)
    click.secho(f"expires {record.expiry.isoformat()} scope={record.scope}", err=True)


async def _issue_token(username: str, password: str, scope: str, ttl: timedelta):
    from liftlog.auth.credentials import CredentialVerifier
    from liftlog.auth.tokens import TokenService
    from liftlog.db.engine import async_session_factory
    from liftlog.stores.user_store import UserStore

    async with async_session_factory() as db:
        users = UserStore(db)
        user = await CredentialVerifier(users).verify_credentials(username, password)
        return await TokenService(db, users=users).issue_token(user.id, ttl, scope)


@main.command("revoke-expired")
def revoke_expired():
    """Delete expired tokens once."""
    from liftlog.services.token_sweeper import TokenSweeper

    count = _run(TokenSweeper(interval=0).sweep_once())
    click.echo(f"Removed {count} expired token(s)")


if __name__ == "__main__":
    main()

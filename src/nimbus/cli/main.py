"""Nimbus CLI — log in once, look up weather, stay logged in.

Usage:
    nimbus register ada ada@example.com        # Create an account (prompts for password)
    nimbus login ada@example.com               # Log in (prompts for password)
    nimbus status                              # Who am I, is a session stored?
    nimbus weather Paris                       # Current conditions (needs a session)
    nimbus logout                              # Forget the stored session
    nimbus serve                               # Run the API server

The session token lives in NIMBUS_CLIENT_SESSION_FILE (~/.nimbus/session.json)
and is reused across invocations without asking the server.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click

from nimbus import __version__
from nimbus.client.errors import ClientError, UnauthorizedError, WeatherRequestError
from nimbus.client.session import SessionManager
from nimbus.client.storage import FileStorage
from nimbus.client.weather import CITY_NOT_FOUND, WeatherClient
from nimbus.config import ClientSettings

MIN_PASSWORD_LENGTH = 6


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

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


async def _session() -> SessionManager:
    """Build the device session from client settings and restore it."""
    cfg = ClientSettings()
    session = SessionManager(
        cfg.api_url,
        FileStorage(cfg.session_file),
        timeout=cfg.timeout_seconds,
    )
    await session.initialize()
    return session


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="nimbus")
def main():
    """Nimbus — weather lookups behind a persistent login."""


@main.command()
@click.argument("username")
@click.argument("email")
@click.password_option()
def register(username: str, email: str, password: str):
    """Create an account and start a session."""
    username, email = username.strip(), email.strip()
    if not username or not email or not password:
        _fail("Please fill in all fields")
    if len(password) < MIN_PASSWORD_LENGTH:
        _fail(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    async def _impl():
        session = await _session()
        return await session.register(username, email, password)

    try:
        user = _run(_impl())
    except ClientError as e:
        _fail(e.message)
    click.secho(f"Registered and logged in as {user.username} <{user.email}>", fg="green")


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in with email and password."""
    email = email.strip()
    if not email or not password:
        _fail("Please enter email and password")

    async def _impl():
        session = await _session()
        return await session.login(email, password)

    try:
        user = _run(_impl())
    except ClientError as e:
        _fail(e.message)
    click.secho(f"Logged in as {user.username} <{user.email}>", fg="green")


@main.command()
def logout():
    """Forget the stored session."""

    async def _impl():
        session = await _session()
        await session.logout()

    _run(_impl())
    click.echo("Logged out.")


@main.command()
def status():
    """Show whether a session is stored."""
    session = _run(_session())
    if session.is_authenticated:
        click.secho("Logged in (stored session)", fg="green")
    else:
        click.secho("Not logged in", fg="yellow")


@main.command()
@click.argument("city")
def weather(city: str):
    """Current weather for CITY."""

    async def _impl():
        session = await _session()
        return await WeatherClient(session).current(city)

    try:
        data = _run(_impl())
    except ValueError as e:
        _fail(str(e))
    except UnauthorizedError as e:
        _fail(e.message)
    except WeatherRequestError as e:
        if e.code == CITY_NOT_FOUND:
            _fail(
                f'We couldn\'t find weather information for "{city.strip()}". '
                "Please check the spelling and try again."
            )
        _fail(e.message)
    except ClientError as e:
        _fail(e.message)

    location, current = data["location"], data["current"]
    click.secho(f"{location.get('name')}, {location.get('country')}", bold=True)
    click.echo(f"  {current.get('condition', {}).get('text', '—')}")
    click.echo(f"  Temperature: {current.get('temp_c')}°C (feels like {current.get('feelslike_c')}°C)")
    click.echo(f"  Humidity:    {current.get('humidity')}%")
    click.echo(f"  Wind:        {current.get('wind_kph')} km/h")


@main.command()
@click.option("--host", default=None, help="Bind address (default NIMBUS_HOST)")
@click.option("--port", default=None, type=int, help="Port (default NIMBUS_PORT)")
def serve(host: str | None, port: int | None):
    """Run the API server with uvicorn."""
    import uvicorn

    from nimbus.config import settings

    uvicorn.run(
        "nimbus.main:app",
        host=host or settings.host,
        port=port or settings.port,
    )


if __name__ == "__main__":
    main()

"""CLI entry point for clawdeck."""

import asyncio
from datetime import datetime

import click
import uvicorn

from .agents import fetch_agents
from .chat import MessageStore
from .gateway import GatewayClient
from .normalize import message_text
from .tasks import categorize, fetch_sessions
from .workspace import DEFAULT_AGENT_ID, FILE_CATEGORIES, list_workspace_files, read_workspace_file


def _run(coro_fn):
    """Run ``coro_fn(gateway)`` against a fresh gateway client."""
    async def runner():
        async with GatewayClient() as gateway:
            return await coro_fn(gateway)
    return asyncio.run(runner())


def _format_ms(ms: int | None) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


@click.group()
def main():
    """Monitor and talk to agents managed by an agent gateway."""
    pass


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the dashboard API."""
    click.echo(f"Starting clawdeck on http://{host}:{port}")
    uvicorn.run("clawdeck.server:app", host=host, port=port, reload=False)


@main.command()
def agents():
    """List configured agents."""
    found = _run(fetch_agents)
    if not found:
        click.echo("No agents found.")
        return
    for agent in found:
        marker = " (default)" if agent.is_default else ""
        click.echo(f"{agent.id}{marker}")
        if agent.workspace:
            click.echo(f"  workspace: {agent.workspace}")
        if agent.model:
            click.echo(f"  model: {agent.model}")
        if agent.bindings:
            channels = ", ".join(b.match_channel or "any" for b in agent.bindings)
            click.echo(f"  bindings: {channels}")


@main.command()
def tasks():
    """Show sessions as upcoming, ongoing and done tasks."""
    buckets = categorize(_run(fetch_sessions))
    for title, sessions in (("Upcoming", buckets.upcoming), ("Ongoing", buckets.ongoing), ("Done", buckets.done)):
        click.echo(f"{title} ({len(sessions)})")
        for session in sessions:
            name = session.display_name or session.key
            click.echo(f"  {name} [{session.kind}] {_format_ms(session.updated_at)}")


@main.command()
@click.option("--type", "category", type=click.Choice(FILE_CATEGORIES), default="report", help="File category.")
@click.option("--agent", "agent_id", default=DEFAULT_AGENT_ID, help="Agent whose workspace to list.")
def files(category: str, agent_id: str):
    """List report or feedback files, newest first."""
    found = _run(lambda gw: list_workspace_files(gw, category, agent_id))
    if not found:
        click.echo(f"No {category} files found.")
        return
    for file in found:
        click.echo(f"{file.date}  {file.title}  ({file.path})")


@main.command()
@click.argument("path")
@click.option("--agent", "agent_id", default=DEFAULT_AGENT_ID, help="Agent whose workspace to read.")
def read(path: str, agent_id: str):
    """Print a workspace file."""
    click.echo(_run(lambda gw: read_workspace_file(gw, path, agent_id)))


@main.command()
@click.argument("message")
@click.option("--session", "session_key", default=None, help="Session key (default: main).")
def send(message: str, session_key: str | None):
    """Send a message and print the conversation."""
    async def do_send(gateway):
        store = MessageStore(gateway, session_key)
        await store.refresh()
        ok = await store.send(message)
        return ok, store.messages

    ok, messages = _run(do_send)
    for msg in messages:
        click.echo(f"[{msg.role}] {message_text(msg.content)}")
    if not ok:
        raise click.ClickException("Message was not delivered.")

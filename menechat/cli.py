"""
MeneChat CLI: terminal chat client, API server and schema setup.

Registered as `menechat` console script via pyproject.toml.
"""

import asyncio
import logging

import click

from menechat.application.controller import ConversationController, ConversationState
from menechat.boundary.db import SqlChatStore
from menechat.boundary.llm import GeminiCompletionClient
from menechat.boundary.memory import InMemoryChatStore
from menechat.configs import get_settings
from menechat.core.backoff import BackoffPolicy
from menechat.core.exceptions import ConfigurationError
from menechat.models.conversation import Placeholder, Sender
from menechat.observability.logger import configure_logging

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /new          start a new chat
  /list         list chats
  /switch N     open chat N from /list
  /delete N     delete chat N from /list
  /quit         leave"""


class _TerminalView:
    """Renders controller snapshots incrementally on the terminal."""

    def __init__(self) -> None:
        self._printed: dict[str, int] = {}
        self._last_error: str | None = None
        self._last_warning: str | None = None

    def __call__(self, state: ConversationState) -> None:
        for item in state.visible_messages:
            if not isinstance(item, Placeholder):
                continue
            shown = self._printed.get(item.id, 0)
            if len(item.text) <= shown:
                continue
            if shown == 0:
                click.secho("bot> ", fg="cyan", nl=False)
            click.echo(item.text[shown:], nl=False)
            self._printed[item.id] = len(item.text)

        if state.error and state.error != self._last_error:
            click.secho(f"\n! {state.error}", fg="red", err=True)
        self._last_error = state.error
        if state.warning and state.warning != self._last_warning:
            click.secho(f"\n! {state.warning}", fg="yellow", err=True)
        self._last_warning = state.warning


def _print_sessions(state: ConversationState) -> None:
    for number, session in enumerate(state.sessions, start=1):
        marker = "*" if session.id == state.current_session_id else " "
        click.echo(f"{marker} {number}. {session.title}")


def _print_history(state: ConversationState) -> None:
    current = state.current_session
    if current is None:
        return
    click.secho(f"--- {current.title} ---", bold=True)
    for message in state.messages:
        if message.sender is Sender.USER:
            click.secho("you> ", fg="green", nl=False)
        else:
            click.secho("bot> ", fg="cyan", nl=False)
        click.echo(message.text)


def _session_at(state: ConversationState, arg: str) -> str | None:
    try:
        index = int(arg) - 1
    except ValueError:
        return None
    if 0 <= index < len(state.sessions):
        return state.sessions[index].id
    return None


async def _handle_command(controller: ConversationController, line: str) -> bool:
    """Run one slash command. Returns False when the user wants to leave."""
    command, _, arg = line.partition(" ")
    arg = arg.strip()

    if command in ("/quit", "/exit"):
        return False
    if command == "/new":
        await controller.create_session()
        _print_history(controller.snapshot())
    elif command == "/list":
        _print_sessions(controller.snapshot())
    elif command in ("/switch", "/delete"):
        state = controller.snapshot()
        session_id = _session_at(state, arg)
        if session_id is None:
            click.secho(f"No chat numbered {arg!r}; see /list", fg="red", err=True)
            return True
        if command == "/switch":
            await controller.select_session(session_id)
            _print_history(controller.snapshot())
        else:
            title = next(s.title for s in state.sessions if s.id == session_id)
            confirmed = await asyncio.to_thread(click.confirm, f"Delete '{title}'?", default=False)
            if await controller.delete_session(session_id, confirmed=confirmed):
                click.echo(f"Deleted '{title}'.")
                _print_history(controller.snapshot())
    else:
        click.echo(HELP_TEXT)
    return True


async def _chat_loop(memory: bool) -> None:
    settings = get_settings()
    if memory:
        store = InMemoryChatStore(title_prefix=settings.chat.default_title_prefix)
    else:
        store = SqlChatStore.from_settings(
            settings.database,
            title_prefix=settings.chat.default_title_prefix,
        )
        await store.create_tables()

    try:
        client = GeminiCompletionClient.from_settings(settings.completion)
    except ConfigurationError as e:
        await store.close()
        raise click.ClickException(e.message) from e

    controller = ConversationController(
        store.sessions,
        store.messages,
        client,
        changes=store.changes,
        backoff=BackoffPolicy(max_attempts=settings.completion.max_attempts),
        settings=settings.chat,
    )
    view = _TerminalView()

    try:
        async with controller:
            controller.subscribe(view)
            click.echo(HELP_TEXT)
            _print_history(controller.snapshot())
            while True:
                try:
                    line = await asyncio.to_thread(
                        click.prompt, "you", prompt_suffix="> ", default="", show_default=False
                    )
                except click.Abort:
                    break
                line = line.strip()
                if not line:
                    continue
                if line.startswith("/"):
                    if not await _handle_command(controller, line):
                        break
                    continue
                await controller.send_message(line)
                click.echo()
    finally:
        await store.close()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="menechat")
@click.option("--log-level", default="WARNING", show_default=True, help="Root log level.")
def cli(log_level: str) -> None:
    """MeneChat - multi-session chat backed by Gemini."""
    configure_logging(log_level.upper())


@cli.command()
@click.option("--memory", is_flag=True, help="Keep chats in memory instead of the database.")
def chat(memory: bool) -> None:
    """Chat in the terminal."""
    asyncio.run(_chat_loop(memory))


@cli.command()
@click.option("--host", default="localhost", show_default=True)
@click.option("--port", default=8082, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the chat API with uvicorn."""
    import uvicorn

    uvicorn.run("menechat.main:app", host=host, port=port, reload=reload)


@cli.command(name="init-db")
@click.option("--drop", is_flag=True, help="Drop existing tables first (destroys data).")
def init_db(drop: bool) -> None:
    """Create the sessions and messages tables."""
    from menechat.boundary.db.create_tables import create_all_tables, drop_all_tables

    async def _run() -> None:
        if drop:
            await drop_all_tables()
        await create_all_tables()

    asyncio.run(_run())
    click.secho("Database ready.", fg="green")

"""CLI entrypoint for playground-chat."""

from __future__ import annotations

import argparse
import asyncio
from importlib import metadata
from pathlib import Path
import shlex
from typing import Any, Sequence

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape

from .attachments import encode_image
from .config import ensure_config_dir, load_config
from .conversation import ConversationStore
from .credentials import CredentialStore
from .exceptions import AttachmentError
from .logging_utils import configure_logging
from .models import Message, Mode, RenderHint, Role

HELP_TEXT = """\
/models [query]   list models (optionally filtered)
/model ID         select a model for the current mode
/mode chat|image  switch request mode
/base URL         change the API base URL
/key KEY          set and remember the API key
/attach PATH      attach an image to the next chat message
/detach N         remove pending attachment N
/retry N          retry the failed message at history index N
/refresh          reload the model list now
/export           print the conversation as JSON
/clear            start a new conversation
/quit             exit"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playground-chat", description="Chat and image playground for OpenAI-compatible APIs"
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml")
    parser.add_argument("--base-url", default=None, help="Override the API base URL")
    parser.add_argument(
        "--mode", choices=[mode.value for mode in Mode], default=None, help="Request mode"
    )
    return parser


class ChatShell:
    """Line-oriented front end that renders store snapshots with rich."""

    def __init__(self, store: ConversationStore, console: Console | None = None) -> None:
        self.store = store
        self.console = console or Console()
        self._rendered = 0

    def render_message(self, index: int, message: Message) -> None:
        if message.role is Role.USER:
            self.console.print(f"[bold magenta]you[/] [dim]#{index}[/] {escape(message.text)}")
            if message.attachments:
                self.console.print(f"  [dim]+{len(message.attachments)} image(s)[/]")
        elif message.role is Role.ERROR:
            self.console.print(f"[bold red]{escape(message.text)}[/] [dim](/retry {index})[/]")
        elif message.render_hint is RenderHint.IMAGE:
            self.console.print(f"[bold green]image[/] {message.text}")
        else:
            self.console.print(Markdown(message.text))

    def render_new_messages(self) -> None:
        messages = self.store.messages
        if len(messages) < self._rendered:
            self._rendered = 0
        for index in range(self._rendered, len(messages)):
            self.render_message(index, messages[index])
        self._rendered = len(messages)

    def render_banner(self) -> None:
        if self.store.error:
            self.console.print(f"[red]{escape(self.store.error)}[/]")

    def render_models(self, query: str = "") -> None:
        selected = self.store.configuration.selected_model_id
        mode = self.store.configuration.mode
        for model in self.store.search_models(query):
            if model.kind != mode:
                continue
            marker = "*" if model.id == selected else " "
            self.console.print(f"{marker} {model.label}")

    async def handle_line(self, line: str) -> bool:
        """Execute one line of input; returns False when the shell should exit."""
        text = line.strip()
        if not text:
            return True
        if not text.startswith("/"):
            if not await self.store.submit(text):
                self.console.print("[yellow]Nothing sent: empty prompt or no model available.[/]")
            self.render_new_messages()
            return True

        command, _, rest = text.partition(" ")
        rest = rest.strip()
        if command in {"/quit", "/exit"}:
            return False
        handler = getattr(self, f"_cmd_{command[1:]}", None)
        if handler is None:
            self.console.print(HELP_TEXT, markup=False)
            return True
        await handler(rest)
        return True

    async def _cmd_help(self, rest: str) -> None:
        self.console.print(HELP_TEXT, markup=False)

    async def _cmd_models(self, rest: str) -> None:
        self.render_models(rest)

    async def _cmd_model(self, rest: str) -> None:
        if not self.store.select_model(rest):
            self.console.print(f"[yellow]Unknown model for this mode: {escape(rest)}[/]")

    async def _cmd_mode(self, rest: str) -> None:
        try:
            self.store.set_configuration(mode=Mode(rest))
        except ValueError:
            self.console.print("[yellow]Mode must be 'chat' or 'image'.[/]")
            return
        await self.store.wait_for_catalog()
        self.render_banner()

    async def _cmd_base(self, rest: str) -> None:
        self.store.set_configuration(base_url=rest.rstrip("/"))
        await self.store.wait_for_catalog()
        self.render_banner()

    async def _cmd_key(self, rest: str) -> None:
        self.store.set_configuration(api_key=rest)
        self.console.print("[dim]API key saved.[/]")

    async def _cmd_attach(self, rest: str) -> None:
        for path in shlex.split(rest):
            try:
                data_uri = await asyncio.to_thread(encode_image, path)
            except AttachmentError as exc:
                self.console.print(f"[yellow]{escape(str(exc))}[/]")
                continue
            self.store.attach_image(data_uri)
        self.console.print(f"[dim]{len(self.store.attachments)} image(s) pending.[/]")

    async def _cmd_detach(self, rest: str) -> None:
        if not rest.isdigit() or not self.store.remove_attachment(int(rest)):
            self.console.print("[yellow]No such attachment.[/]")

    async def _cmd_retry(self, rest: str) -> None:
        if not rest.isdigit() or not await self.store.retry(int(rest)):
            self.console.print("[yellow]Nothing to retry at that index.[/]")
            return
        self.render_new_messages()

    async def _cmd_refresh(self, rest: str) -> None:
        await self.store.refresh_models()
        self.render_banner()

    async def _cmd_export(self, rest: str) -> None:
        self.console.print_json(self.store.export_json())

    async def _cmd_clear(self, rest: str) -> None:
        self.store.clear_history()
        self._rendered = 0

    async def run(self) -> None:
        self.console.print("[dim]Type a prompt, or /help for commands.[/]")
        while True:
            mode = self.store.configuration.mode.value
            try:
                line = await asyncio.to_thread(self.console.input, f"[bold]{mode}>[/] ")
            except (EOFError, KeyboardInterrupt):
                return
            if not await self.handle_line(line):
                return


async def run_session(config: dict[str, Any], args: argparse.Namespace) -> None:
    """Build the store from config, load the catalog and run the shell."""
    api_cfg = config["api"]
    store = ConversationStore(
        CredentialStore(config["credentials"]["path"]),
        base_url=args.base_url or api_cfg["base_url"],
        mode=Mode(args.mode or api_cfg["mode"]),
        refresh_delay_seconds=config["catalog"]["refresh_debounce_ms"] / 1000,
        timeout=api_cfg["timeout"],
    )
    shell = ChatShell(store)
    try:
        store.start()
        await store.wait_for_catalog()
        shell.render_banner()
        await shell.run()
    finally:
        await store.close()


def main(argv: Sequence[str] | None = None) -> None:
    """Load configuration, handle CLI flags, and run the interactive shell."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("playground-chat")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"playground-chat {version}")
        return

    ensure_config_dir()
    config = load_config(args.config)
    configure_logging(config["logging"])
    asyncio.run(run_session(config, args))


if __name__ == "__main__":
    main()

"""Terminal front end for Gemini Studio.

Commands
--------
/chat, /image, /video   switch tool (switching drops the previous tool's state)
/reset                  clear the chat transcript
/set key=value          change an image/video setting (e.g. /set size=1792x1024)
/example N              load example prompt N into the draft
/save N PATH            write gallery result N to PATH
/help                   show this help
/quit                   exit
Anything else is sent as the prompt for the active tool.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import shlex
from typing import Callable, List, Optional

from ..config import configure_logging, load_config
from ..errors import ErrorEnvelope
from .api import ApiError, StudioClient
from .conversation import ChatController
from .gallery import ImageStudio, Studio, VideoStudio
from .models import GenerationResult, Message
from .shell import Shell, Tool

logger = logging.getLogger(__name__)


# -----------------------------
# Rendering
# -----------------------------
def render_error(envelope: ErrorEnvelope) -> str:
    """Headline, optional details, then the setup message and its steps."""
    lines = [f"! {envelope.error}"]
    if envelope.details:
        lines.append(f"  {envelope.details}")
    if envelope.setup:
        lines.append(f"  {envelope.setup.message}")
        lines.extend(f"    {step}" for step in envelope.setup.steps)
    return "\n".join(lines)


def render_message(message: Message) -> str:
    who = "you" if message.role == "user" else "gemini"
    return f"[{message.timestamp:%H:%M}] {who}> {message.content}"


def render_result(index: int, result: GenerationResult) -> str:
    settings = " ".join(f"{k}={v}" for k, v in result.settings.items())
    head = f"#{index} [{result.timestamp:%H:%M}] {result.prompt}"
    if result.revised_prompt and result.revised_prompt != result.prompt:
        head += f"\n    revised: {result.revised_prompt}"
    return f"{head}\n    {settings}"


def _position(arg: str) -> int:
    """Turn a 1-based list number typed by the user into a list index."""
    n = int(arg)
    if n < 1:
        raise IndexError(f"{n} is out of range")
    return n - 1


class TerminalApp:
    def __init__(self, shell: Shell, write: Callable[[str], None] = print) -> None:
        self.shell = shell
        self.write = write

    def prompt_label(self) -> str:
        return f"{self.shell.active.value}> "

    async def check_server(self) -> None:
        """Warn up front when the server is unreachable or has no API key."""
        try:
            status = await self.shell.api.health()
        except ApiError as e:
            self.write(render_error(e.envelope))
            return
        if not status.get("configured"):
            self.write("! Google AI API key not configured on the server")

    async def handle(self, line: str) -> bool:
        """Process one input line. Returns False when the user asked to quit."""
        line = line.strip()
        if not line:
            return True
        if line.startswith("/"):
            return self._command(line)

        mounted = self.shell.mounted
        if isinstance(mounted, ChatController):
            await self._chat(mounted, line)
        else:
            await self._generate(mounted, line)
        return True

    async def _chat(self, chat: ChatController, text: str) -> None:
        reply = await chat.send(text)
        if reply is not None:
            self.write(render_message(reply))
        elif chat.conversation.error is not None:
            self.write(render_error(chat.conversation.error))

    async def _generate(self, studio: Studio, prompt: str) -> None:
        self.write(f"Generating {studio.kind}...")
        result = await studio.generate(prompt)
        if result is not None:
            self.write(render_result(1, result))
        elif studio.gallery.error is not None:
            self.write(render_error(studio.gallery.error))

    def _command(self, line: str) -> bool:
        try:
            parts: List[str] = shlex.split(line)
        except ValueError as e:
            self.write(f"! {e}")
            return True
        cmd, args = parts[0][1:].lower(), parts[1:]

        if cmd in ("quit", "exit"):
            return False
        if cmd == "help":
            self.write(__doc__ or "")
        elif cmd in {t.value for t in Tool}:
            self.shell.select(cmd)
            self.show_mounted()
        elif cmd == "reset":
            if isinstance(self.shell.mounted, ChatController):
                self.shell.mounted.reset()
                self.show_mounted()
            else:
                self.write("! /reset only applies to chat")
        elif cmd == "set":
            self._set(args)
        elif cmd == "example":
            self._example(args)
        elif cmd == "save":
            self._save(args)
        else:
            self.write(f"! Unknown command: /{cmd}")
        return True

    def _studio(self) -> Optional[Studio]:
        mounted = self.shell.mounted
        if isinstance(mounted, (ImageStudio, VideoStudio)):
            return mounted
        self.write("! Switch to /image or /video first")
        return None

    def _set(self, args: List[str]) -> None:
        studio = self._studio()
        if studio is None:
            return
        for arg in args:
            key, sep, value = arg.partition("=")
            if not sep:
                self.write(f"! Expected key=value, got {arg!r}")
                continue
            try:
                studio.configure(key, value)
            except (KeyError, ValueError) as e:
                self.write(f"! {e}")
        self.write(" ".join(f"{k}={v}" for k, v in studio.settings().items()))

    def _example(self, args: List[str]) -> None:
        studio = self._studio()
        if studio is None:
            return
        if not args:
            for i, example in enumerate(studio.example_prompts, 1):
                self.write(f"{i}. {example}")
            return
        try:
            draft = studio.use_example(_position(args[0]))
        except (ValueError, IndexError):
            self.write("! No such example")
            return
        self.write(f"draft: {draft}")

    def _save(self, args: List[str]) -> None:
        studio = self._studio()
        if studio is None:
            return
        if len(args) != 2:
            self.write("! Usage: /save N PATH")
            return
        try:
            result = studio.gallery.results[_position(args[0])]
            path = result.save(args[1])
        except (ValueError, IndexError) as e:
            self.write(f"! Could not save: {e}")
            return
        except OSError as e:
            logger.warning("Saving result failed: %s", e)
            self.write(f"! Could not save: {e}")
            return
        self.write(f"saved {path}")

    def show_mounted(self) -> None:
        mounted = self.shell.mounted
        if isinstance(mounted, ChatController):
            for message in mounted.conversation.transcript:
                self.write(render_message(message))
        else:
            self.write(f"{mounted.kind} studio: " + " ".join(
                f"{k}={v}" for k, v in mounted.settings().items()
            ))


async def run(app: TerminalApp) -> None:
    await app.check_server()
    app.show_mounted()
    while True:
        try:
            line = await asyncio.to_thread(input, app.prompt_label())
        except EOFError:
            break
        if not await app.handle(line):
            break


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Terminal front end for Gemini Studio.")
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    parser.add_argument("--base-url", type=str, default=None, help="Server URL (default from config)")
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    configure_logging(cfg)
    ui_cfg = cfg.get("ui", {})
    api = StudioClient(
        args.base_url or ui_cfg.get("base_url", "http://127.0.0.1:8000"),
        timeout=float(ui_cfg.get("timeout", 120.0)),
    )
    shell = Shell(api, ui_cfg=ui_cfg, video_cfg=cfg.get("video", {}))
    try:
        asyncio.run(run(TerminalApp(shell)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

"""Run the portfolio terminal interactively in your shell.

Usage:
    uv run python scripts/run_terminal.py [--root PATH] [--cwd /projects]

Tab completes commands and paths, Ctrl+C cancels an active email session
(or exits when none is active), Ctrl+D exits.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import readline
from pathlib import Path

from dotenv import load_dotenv

from termfolio.api.models import ContextUpdate, TerminalState
from termfolio.config import settings_from_env
from termfolio.content.registry import load_site_content
from termfolio.content.startup import project_root
from termfolio.engine import Terminal, build_terminal


class Repl:
    def __init__(self, terminal: Terminal, state: TerminalState) -> None:
        self.terminal = terminal
        self.state = state
        self.done = False
        self._matches: list[str] = []
        terminal.dispatcher.on_deferred = self.on_deferred

    def on_deferred(self, update: ContextUpdate) -> None:
        self.state.apply(update)
        if update.navigate_to is not None:
            print(f"[navigate] {update.navigate_to}")
            self.done = True

    def prompt(self) -> str:
        if self.state.session is not None:
            return f"{self.state.session.prompt} "
        return f"visitor:{self.state.current_directory}$ "

    def completer(self, text: str, index: int) -> str | None:
        if index == 0:
            line = readline.get_line_buffer()
            result = self.terminal.complete(line, readline.get_endidx(), self.state.context())
            self._matches = [c + "/" if result.is_directory else c for c in result.completions]
        return self._matches[index] if index < len(self._matches) else None

    def cancel(self) -> None:
        response = self.terminal.cancel(self.state.context())
        self.state.record(input="^C", response=response)
        print(response.output)

    def turn(self, runner: asyncio.Runner, line: str) -> None:
        response = runner.run(self.terminal.submit(line, self.state.context()))
        before = len(self.state.history)
        self.state.record(input=line, response=response)

        if response.output:
            print(response.output)
        # Entries appended by the turn itself, e.g. the outcome of sending an email.
        for entry in self.state.history[before + 1 :]:
            print(entry.output)
        if response.update.open_url:
            print(f"[open] {response.update.open_url}")

        if self.terminal.dispatcher.pending:
            runner.run(self.terminal.drain())

    def loop(self, runner: asyncio.Runner) -> None:
        while not self.done:
            try:
                line = input(self.prompt())
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print("^C")
                if self.state.session is None:
                    break
                self.cancel()
                continue
            self.turn(runner, line)


def main() -> None:
    parser = argparse.ArgumentParser(description="Portfolio terminal")
    parser.add_argument("--root", type=Path, default=project_root(), help="directory holding content/site.json")
    parser.add_argument("--cwd", default="/", help="starting directory")
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(level=logging.WARNING)

    content = load_site_content(root=args.root)
    repl = Repl(build_terminal(content, settings_from_env()), TerminalState(current_directory=args.cwd))

    readline.set_completer_delims(" \t\n")
    readline.set_completer(repl.completer)
    readline.parse_and_bind("tab: complete")

    print(f"{content.info.site_name} terminal. Type 'help' to get started.")
    with asyncio.Runner() as runner:
        repl.loop(runner)
        runner.run(repl.terminal.drain())


if __name__ == "__main__":
    main()

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable

from termfolio.api.models import CommandResponse, ContextUpdate, TerminalContext
from termfolio.errors import TerminalError, UnknownCommand
from termfolio.registry import Command, CommandRegistry

logger = logging.getLogger(__name__)

DeferredSink = Callable[[ContextUpdate], None]


def parse_command(line: str) -> tuple[str, list[str]]:
    """Split a raw line into a lowercased verb and whitespace-delimited args."""

    parts = line.split()
    if not parts:
        return "", []
    return parts[0].lower(), parts[1:]


def split_remainder(line: str) -> list[str]:
    """Everything after the verb, whitespace inside it preserved; `[]` when there is nothing."""

    parts = line.strip().split(maxsplit=1)
    return parts[1:]


def unexpected_error_response(e: BaseException) -> CommandResponse:
    return CommandResponse(output=f"Error executing command: {e}", error=True)


class Dispatcher:
    """Resolves a line against the registry and runs the command's response and effect.

    Ordering contract:
    - the response is always computed before the effect runs;
    - an undelayed effect completes (or raises) before `dispatch` returns;
    - a delayed effect is scheduled on the running loop and its update goes to `on_deferred`.
    """

    def __init__(self, registry: CommandRegistry, *, on_deferred: DeferredSink | None = None) -> None:
        self.registry = registry
        self.on_deferred = on_deferred
        self._pending: set[asyncio.Task[None]] = set()

    async def dispatch(self, line: str, ctx: TerminalContext) -> CommandResponse:
        verb, args = parse_command(line)
        if not verb:
            return CommandResponse()

        cmd = self.registry.get(verb)
        if cmd is None:
            return CommandResponse(output=str(UnknownCommand(verb)), error=True)
        if not cmd.split_args:
            args = split_remainder(line)

        try:
            response = cmd.response.render(args, ctx)
            if inspect.isawaitable(response):
                response = await response
            if cmd.effect is None:
                return response

            if cmd.delay_ms > 0:
                self._schedule(cmd, args, ctx)
                return response

            update = await _run_effect(cmd, args, ctx)
            if update is None:
                return response
            return response.model_copy(update={"update": response.update.merge(update)})
        except TerminalError as e:
            return CommandResponse(output=str(e), error=True)
        except Exception as e:
            logger.exception("Command %r failed", verb)
            return unexpected_error_response(e)

    def _schedule(self, cmd: Command, args: list[str], ctx: TerminalContext) -> None:
        task = asyncio.get_running_loop().create_task(self._run_later(cmd, args, ctx))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_later(self, cmd: Command, args: list[str], ctx: TerminalContext) -> None:
        await asyncio.sleep(cmd.delay_ms / 1000)
        try:
            update = await _run_effect(cmd, args, ctx)
        except Exception:
            # Nobody awaits this task; the turn that scheduled it has already returned.
            logger.exception("Delayed effect of %r failed", cmd.name)
            return
        if update is not None and self.on_deferred is not None:
            self.on_deferred(update)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled delayed effect."""

        while self._pending:
            await asyncio.gather(*list(self._pending))


async def _run_effect(cmd: Command, args: list[str], ctx: TerminalContext) -> ContextUpdate | None:
    if cmd.effect is None:
        return None
    result = cmd.effect(args, ctx)
    if inspect.isawaitable(result):
        result = await result
    return result

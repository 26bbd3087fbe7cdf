from __future__ import annotations

import logging

from termfolio.api.models import CommandResponse, CompletionResult, TerminalContext
from termfolio.commands import build_registry
from termfolio.completion import complete
from termfolio.config import TerminalSettings
from termfolio.content.registry import SiteContent
from termfolio.core.filesystem import FileSystem, build_filesystem
from termfolio.delivery import Delivery, create_delivery
from termfolio.dispatcher import DeferredSink, Dispatcher, unexpected_error_response
from termfolio.errors import TerminalError
from termfolio.registry import CommandRegistry
from termfolio.session import ComposeSession, SessionLayer

logger = logging.getLogger(__name__)


class Terminal:
    """Entry point for one shell: route a line, complete a word, cancel a session.

    Holds no caller state; every call takes a `TerminalContext` and returns values
    the caller applies to its own `TerminalState`.
    """

    def __init__(
        self,
        *,
        fs: FileSystem,
        registry: CommandRegistry,
        dispatcher: Dispatcher,
        sessions: SessionLayer,
    ) -> None:
        self.fs = fs
        self.registry = registry
        self.dispatcher = dispatcher
        self.sessions = sessions

    async def submit(self, line: str, ctx: TerminalContext) -> CommandResponse:
        if ctx.session is None:
            return await self.dispatcher.dispatch(line, ctx)

        try:
            return await self.sessions.handle(line, ctx.session)
        except TerminalError as e:
            return CommandResponse(output=str(e), error=True)
        except Exception as e:
            logger.exception("Session %r failed on input", ctx.session.kind)
            return unexpected_error_response(e)

    def complete(self, line: str, cursor: int | None, ctx: TerminalContext) -> CompletionResult:
        return complete(line, cursor, ctx, fs=self.fs, registry=self.registry)

    def cancel(self, ctx: TerminalContext) -> CommandResponse:
        """End any active session. Without one this is a no-op."""

        return self.sessions.cancel(ctx.session)

    async def drain(self) -> None:
        await self.dispatcher.drain()


def build_terminal(
    content: SiteContent,
    settings: TerminalSettings,
    *,
    delivery: Delivery | None = None,
    on_deferred: DeferredSink | None = None,
) -> Terminal:
    fs = build_filesystem(content)
    compose = ComposeSession(delivery if delivery is not None else create_delivery(settings))
    registry = build_registry(fs=fs, content=content, settings=settings, compose=compose)
    return Terminal(
        fs=fs,
        registry=registry,
        dispatcher=Dispatcher(registry, on_deferred=on_deferred),
        sessions=SessionLayer({compose.kind: compose}),
    )

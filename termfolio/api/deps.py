from __future__ import annotations

import logging

from termfolio.api.models import ContextUpdate
from termfolio.config import TerminalSettings, settings_from_env
from termfolio.content.singleton import get_content
from termfolio.engine import Terminal, build_terminal

logger = logging.getLogger(__name__)

_TERMINAL: Terminal | None = None


def _log_deferred(update: ContextUpdate) -> None:
    # Shells are stateless over HTTP; a delayed effect has nobody left to apply it.
    logger.debug("Delayed effect finished after its turn: %s", update.model_dump(exclude_defaults=True))


def get_settings() -> TerminalSettings:
    return settings_from_env()


def get_terminal() -> Terminal:
    """Process-wide terminal built from the loaded content on first use."""

    global _TERMINAL
    if _TERMINAL is None:
        _TERMINAL = build_terminal(get_content(), get_settings(), on_deferred=_log_deferred)
    return _TERMINAL


def reset_terminal_for_tests() -> None:
    global _TERMINAL
    _TERMINAL = None

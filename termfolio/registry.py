from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass

from termfolio.api.models import CommandResponse, ContextUpdate, TerminalContext

Resolver = Callable[[list[str], TerminalContext], CommandResponse | Awaitable[CommandResponse]]
Effect = Callable[[list[str], TerminalContext], ContextUpdate | None | Awaitable[ContextUpdate | None]]


@dataclass(frozen=True, slots=True)
class ConstantResponse:
    text: str

    def render(self, args: list[str], ctx: TerminalContext) -> CommandResponse:
        return CommandResponse(output=self.text)


@dataclass(frozen=True, slots=True)
class ResolverResponse:
    resolve: Resolver

    def render(self, args: list[str], ctx: TerminalContext) -> CommandResponse | Awaitable[CommandResponse]:
        return self.resolve(args, ctx)


@dataclass(frozen=True, slots=True)
class Command:
    name: str
    description: str
    response: ConstantResponse | ResolverResponse = ConstantResponse("")
    aliases: tuple[str, ...] = ()
    effect: Effect | None = None
    # Effects with a delay run after the response is returned (fire-and-forget).
    delay_ms: int = 0
    usage: str = ""
    # False: the resolver gets the unsplit remainder of the line as its only arg.
    split_args: bool = True


class CommandRegistry:
    """Maps verbs to commands. Names win over aliases on lookup."""

    def __init__(self, commands: list[Command] | None = None) -> None:
        self._by_name: dict[str, Command] = {}
        self._by_alias: dict[str, Command] = {}
        for cmd in commands or []:
            self.register(cmd)

    def register(self, cmd: Command) -> None:
        keys = [cmd.name.lower(), *(a.lower() for a in cmd.aliases)]
        for key in keys:
            if key in self._by_name or key in self._by_alias:
                raise ValueError(f"Verb already registered: {key}")
        self._by_name[cmd.name.lower()] = cmd
        for alias in cmd.aliases:
            self._by_alias[alias.lower()] = cmd

    def get(self, verb: str) -> Command | None:
        key = verb.lower()
        return self._by_name.get(key) or self._by_alias.get(key)

    def all(self) -> list[Command]:
        """Distinct commands in registration order."""

        return list(self._by_name.values())

    def verbs(self) -> list[str]:
        """Every name and alias."""

        return [*self._by_name.keys(), *self._by_alias.keys()]

    def __iter__(self) -> Iterator[Command]:
        return iter(self.all())

    def __contains__(self, verb: object) -> bool:
        return isinstance(verb, str) and self.get(verb) is not None

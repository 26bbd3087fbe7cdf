from __future__ import annotations

import posixpath
import shlex

from termfolio.api.models import CommandResponse, ContextUpdate, TerminalContext
from termfolio.config import TerminalSettings
from termfolio.content.registry import SiteContent
from termfolio.core.filesystem import (
    ROOT_PATH,
    FileSystem,
    ListingError,
    get_node,
    list_directory,
    resolve_absolute_path,
)
from termfolio.core.payloads import ComposerHint, link_of
from termfolio.core.render import absolute_url, render_file
from termfolio.errors import NotADirectory, PathNotFound, UsageError
from termfolio.registry import Command, CommandRegistry, ConstantResponse, ResolverResponse
from termfolio.session import ComposeSession

SITE_FLAG = "--site"
HELP_FLAG = "--help"

OPEN_USAGE = "open: missing file operand\nTry 'open --help' for more information."

_EMAIL_FLAGS = {"--name": "name", "--email": "email", "--body": "body"}


def _is_url(s: str) -> bool:
    return s.startswith("http://") or s.startswith("https://")


def _opening(url: str) -> CommandResponse:
    return CommandResponse(output=f"Opening {url} in a new tab...", update=ContextUpdate(open_url=url))


def parse_email_flags(text: str) -> dict[str, str]:
    """Parse `--name N --email E --body B` (also `--name=N`) with shell quoting.

    `text` is the raw remainder of the line, so quoted values keep their whitespace.
    """

    try:
        tokens = shlex.split(text)
    except ValueError as e:
        raise UsageError(f"email: {e}") from e

    values: dict[str, str] = {}
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        flag, eq, inline = tok.partition("=")
        key = _EMAIL_FLAGS.get(flag)
        if key is None:
            raise UsageError(f"email: unknown option '{tok}'\nTry 'help email' for more information.")
        if eq:
            values[key] = inline
            i += 1
            continue
        if i + 1 >= len(tokens):
            raise UsageError(f"email: option '{flag}' requires a value")
        values[key] = tokens[i + 1]
        i += 2
    return values


class Builtins:
    """The built-in verbs, bound to one filesystem/content snapshot."""

    def __init__(
        self,
        *,
        fs: FileSystem,
        content: SiteContent,
        settings: TerminalSettings,
        compose: ComposeSession,
    ) -> None:
        self.fs = fs
        self.content = content
        self.settings = settings
        self.compose = compose
        self.base_url = settings.base_url_for(content.info.site_name)
        self.registry = CommandRegistry()

    def cd(self, args: list[str], ctx: TerminalContext) -> CommandResponse:
        if not args:
            return CommandResponse(update=ContextUpdate(new_directory=ROOT_PATH))

        target = args[0]
        path = resolve_absolute_path(ctx.current_directory, target)
        node = get_node(self.fs, path)
        if node is None:
            raise PathNotFound(f"cd: no such file or directory: {target}")
        if not node.is_directory:
            raise NotADirectory(f"cd: not a directory: {target}")
        return CommandResponse(update=ContextUpdate(new_directory=path))

    def ls(self, args: list[str], ctx: TerminalContext) -> CommandResponse:
        path = resolve_absolute_path(ctx.current_directory, args[0]) if args else ctx.current_directory
        listing = list_directory(self.fs, path)

        if listing == ListingError.not_found:
            shown = args[0] if args else ctx.current_directory
            raise PathNotFound(f"ls: cannot access '{shown}': No such file or directory")
        if isinstance(listing, ListingError):
            # Not a directory: `ls` of a file prints its name.
            return CommandResponse(output=posixpath.basename(path))

        return CommandResponse(output="  ".join(f"{n.name}/" if n.is_directory else n.name for n in listing))

    def pwd(self, args: list[str], ctx: TerminalContext) -> CommandResponse:
        return CommandResponse(output=ctx.current_directory)

    def open(self, args: list[str], ctx: TerminalContext) -> CommandResponse:
        if HELP_FLAG in args:
            return CommandResponse(output=self.describe("open"))

        site = SITE_FLAG in args
        paths = [a for a in args if a != SITE_FLAG]
        if not paths:
            raise UsageError(OPEN_USAGE)

        if len(paths) > 1:
            # `open Lesson Planner`: a project name with spaces arrives as several args.
            project = self.content.find_project(" ".join(paths))
            if project is not None and project.link:
                return _opening(project.link)
            raise UsageError("open: too many arguments\nTry 'open --help' for more information.")

        arg = paths[0]
        if _is_url(arg):
            return _opening(arg)

        mode = self.content.find_mode_by_href(arg)
        if mode is not None:
            return _opening(absolute_url(mode.href, base_url=self.base_url))

        node = get_node(self.fs, resolve_absolute_path(ctx.current_directory, arg))
        if node is None:
            project = self.content.find_project(arg)
            if project is not None and project.link:
                return _opening(project.link)
            raise PathNotFound(f"open: cannot open '{arg}': No such file or directory")

        if node.is_directory:
            raise UsageError(f"open: '{arg}' is a directory")

        if site:
            link = link_of(node.content) if node.content is not None else None
            if not link:
                raise UsageError(f"open: '{arg}' has no site to open")
            return _opening(absolute_url(link, base_url=self.base_url))

        if isinstance(node.content, ComposerHint):
            return self.compose.start_response()

        return CommandResponse(output=render_file(node, base_url=self.base_url))

    def help(self, args: list[str], ctx: TerminalContext) -> CommandResponse:
        if args:
            return CommandResponse(output=self.describe(args[0]))

        lines = []
        for cmd in self.registry.all():
            aliases = f" (aliases: {', '.join(cmd.aliases)})" if cmd.aliases else ""
            lines.append(f"  {cmd.name.ljust(8)} - {cmd.description}{aliases}")
        listing = "\n".join(lines)
        return CommandResponse(
            output=f"Available commands:\n\n{listing}\n\n"
            "Use 'help <command>' for more information about a specific command."
        )

    def describe(self, verb: str) -> str:
        cmd = self.registry.get(verb)
        if cmd is None:
            raise UsageError(f"help: no help topics match '{verb}'")

        lines = [f"{cmd.name} - {cmd.description}"]
        if cmd.aliases:
            lines.append(f"Aliases: {', '.join(cmd.aliases)}")
        if cmd.usage:
            lines.extend(["", "Usage:", f"  {cmd.usage}"])
        return "\n".join(lines)

    async def email(self, args: list[str], ctx: TerminalContext) -> CommandResponse:
        if not args:
            return self.compose.start_response()
        values = parse_email_flags(args[0])
        return await self.compose.send_now(
            name=values.get("name", ""),
            email=values.get("email", ""),
            body=values.get("body", ""),
        )

    def commands(self) -> list[Command]:
        return [
            Command(
                name="cd",
                description="Change directory",
                response=ResolverResponse(self.cd),
                usage="cd [path]",
            ),
            Command(
                name="ls",
                description="List directory contents",
                response=ResolverResponse(self.ls),
                usage="ls [path]",
            ),
            Command(
                name="pwd",
                description="Print working directory",
                response=ResolverResponse(self.pwd),
                usage="pwd",
            ),
            Command(
                name="open",
                description="Open/access a section or item, or open a URL in a new tab",
                response=ResolverResponse(self.open),
                usage="open <path|url> [--site]",
            ),
            Command(
                name="email",
                description="Compose and send an email",
                response=ResolverResponse(self.email),
                split_args=False,
                usage='email [--name "Name" --email "you@example.com" --body "Message"]',
            ),
            Command(
                name="help",
                description="Show available commands",
                aliases=("?",),
                response=ResolverResponse(self.help),
                usage="help [command]",
            ),
            Command(
                name="clear",
                description="Clear terminal output",
                aliases=("cls",),
                response=ConstantResponse(""),
                effect=_clear,
                usage="clear",
            ),
            Command(
                name="exit",
                description="Exit terminal (navigate back to web mode)",
                aliases=("quit", "q"),
                response=ConstantResponse("Exiting terminal..."),
                effect=_navigate_home,
                delay_ms=self.settings.exit_delay_ms,
                usage="exit",
            ),
        ]


def _clear(args: list[str], ctx: TerminalContext) -> ContextUpdate:
    return ContextUpdate(cleared=True, end_session=True)


def _navigate_home(args: list[str], ctx: TerminalContext) -> ContextUpdate:
    return ContextUpdate(navigate_to=ROOT_PATH)


def build_registry(
    *,
    fs: FileSystem,
    content: SiteContent,
    settings: TerminalSettings,
    compose: ComposeSession,
) -> CommandRegistry:
    builtins = Builtins(fs=fs, content=content, settings=settings, compose=compose)
    for cmd in builtins.commands():
        builtins.registry.register(cmd)
    return builtins.registry

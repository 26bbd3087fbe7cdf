from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from termfolio.api.models import CompletionResult, TerminalContext
from termfolio.core.filesystem import ROOT_PATH, FileSystem, Node, get_node, resolve_absolute_path
from termfolio.core.payloads import ModeFile, link_of
from termfolio.dispatcher import parse_command
from termfolio.registry import CommandRegistry

CompletionTarget = Literal["command", "path"]


def longest_common_prefix(strings: Iterable[str]) -> str:
    """Longest prefix shared by every string. `[]` -> `""`, a singleton -> itself."""

    ordered = sorted(strings)
    if not ordered:
        return ""
    first, last = ordered[0], ordered[-1]
    i = 0
    while i < len(first) and i < len(last) and first[i] == last[i]:
        i += 1
    return first[:i]


@dataclass(frozen=True, slots=True)
class Word:
    text: str
    start: int
    end: int


def current_word(line: str, cursor: int) -> Word:
    """The whitespace-delimited word touching `cursor` (may extend past it)."""

    cursor = max(0, min(cursor, len(line)))
    start = cursor
    while start > 0 and not line[start - 1].isspace():
        start -= 1
    end = cursor
    while end < len(line) and not line[end].isspace():
        end += 1
    return Word(text=line[start:end], start=start, end=end)


def completion_target(line: str, cursor: int) -> CompletionTarget:
    before = line[:cursor].lstrip()
    return "path" if any(ch.isspace() for ch in before) else "command"


def command_candidates(prefix: str, registry: CommandRegistry) -> list[str]:
    p = prefix.lower()
    return sorted({v for v in registry.verbs() if v.lower().startswith(p)})


def _relative_to(cwd: str, path: str) -> str:
    prefix = ROOT_PATH if cwd == ROOT_PATH else f"{cwd}/"
    if path.startswith(prefix):
        return path[len(prefix):]
    return path.lstrip("/")


def path_candidates(word: str, ctx: TerminalContext, fs: FileSystem) -> dict[str, Node]:
    """Candidates for a path argument, each mapped to the node it names."""

    cwd = ctx.current_directory
    slash = word.rfind("/")
    dir_part, leaf = word[: slash + 1], word[slash + 1 :]

    directory = get_node(fs, resolve_absolute_path(cwd, dir_part)) if dir_part else get_node(fs, cwd)
    if directory is None or not directory.is_directory:
        dir_part = ""
        directory = get_node(fs, cwd)

    found: dict[str, Node] = {}
    if directory is not None and directory.is_directory:
        low = leaf.lower()
        for child in directory.children:
            if child.name.lower().startswith(low):
                found[dir_part + child.name] = child

    if not found and leaf and "/" not in word:
        # Nothing here: look for the name anywhere in the tree.
        low = leaf.lower()
        for node in fs.root.walk():
            if node.path != ROOT_PATH and node.name.lower().startswith(low):
                found[_relative_to(cwd, node.path)] = node

    return found


def open_candidates(word: str, ctx: TerminalContext, fs: FileSystem) -> dict[str, Node | None]:
    """Extra `open` candidates: links/hrefs under the current directory, and mode shortcuts."""

    cwd = ctx.current_directory
    found: dict[str, Node | None] = {}

    base = get_node(fs, cwd)
    if word and base is not None:
        low = word.lower()
        for node in base.walk():
            link = link_of(node.content)
            if not link:
                continue
            if link.lower().startswith(low):
                found[link] = node
            elif node.name.lower().startswith(low) or low in node.name.lower():
                found[_relative_to(cwd, node.path)] = node

    if word in ("", "/") and cwd == ROOT_PATH:
        for node in fs.root.walk():
            if isinstance(node.content, ModeFile):
                found.setdefault(node.content.href, None)

    return found


def complete(
    line: str,
    cursor: int | None,
    ctx: TerminalContext,
    *,
    fs: FileSystem,
    registry: CommandRegistry,
) -> CompletionResult:
    cursor = len(line) if cursor is None else cursor
    word = current_word(line, cursor)

    if completion_target(line, cursor) == "command":
        completions = command_candidates(word.text, registry)
        return CompletionResult(
            completions=completions,
            common_prefix=longest_common_prefix(completions),
            word=word.text,
            word_start=word.start,
            word_end=word.end,
        )

    candidates: dict[str, Node | None] = dict(path_candidates(word.text, ctx, fs))
    verb, _ = parse_command(line[: word.start])
    if verb == "open":
        for text, node in open_candidates(word.text, ctx, fs).items():
            candidates.setdefault(text, node)

    completions = sorted(candidates)
    is_directory: bool | None = None
    if len(completions) == 1:
        node = candidates[completions[0]]
        is_directory = node is not None and node.is_directory

    return CompletionResult(
        completions=completions,
        common_prefix=longest_common_prefix(completions),
        is_directory=is_directory,
        word=word.text,
        word_start=word.start,
        word_end=word.end,
    )


def apply_completion(line: str, result: CompletionResult) -> tuple[str, int]:
    """Insert a completion into `line`; returns the new line and cursor.

    A single directory gets a trailing `/`. Several candidates insert only their
    common prefix, and nothing when it adds no characters (the caller lists them).
    """

    if not result.completions:
        return line, result.word_end

    if len(result.completions) == 1:
        insert = result.completions[0]
        if result.is_directory:
            insert += "/"
    elif result.should_list:
        return line, result.word_end
    else:
        insert = result.common_prefix

    new_line = line[: result.word_start] + insert + line[result.word_end :]
    return new_line, result.word_start + len(insert)

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum

from termfolio.content.registry import SiteContent, slugify
from termfolio.core.payloads import (
    AboutFile,
    CapabilityFile,
    ComposerHint,
    ContactFile,
    FilePayload,
    ModeFile,
    ProjectFile,
)
from termfolio.errors import ContentLoadError

ROOT_PATH = "/"


class NodeKind(StrEnum):
    file = "file"
    directory = "directory"


class ListingError(StrEnum):
    """Why `list_directory` could not list a path (distinct from an empty directory)."""

    not_found = "not_found"
    not_a_directory = "not_a_directory"


@dataclass(frozen=True, slots=True)
class Node:
    name: str
    kind: NodeKind
    path: str
    children: tuple["Node", ...] = ()
    content: FilePayload | None = None

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.directory

    def child(self, name: str) -> "Node | None":
        return next((c for c in self.children if c.name == name), None)

    def walk(self) -> Iterator["Node"]:
        """Depth-first, pre-order traversal (children in their listed order)."""

        yield self
        for c in self.children:
            yield from c.walk()


@dataclass(frozen=True, slots=True)
class FileSystem:
    root: Node


def _join(parent_path: str, name: str) -> str:
    return f"/{name}" if parent_path == ROOT_PATH else f"{parent_path}/{name}"


def _file(parent_path: str, name: str, content: FilePayload) -> Node:
    return Node(name=name, kind=NodeKind.file, path=_join(parent_path, name), content=content)


def _directory(parent_path: str, name: str, children: list[Node]) -> Node:
    seen: set[str] = set()
    for c in children:
        if c.name in seen:
            raise ContentLoadError(f"Duplicate entry '{c.name}' in {_join(parent_path, name)}")
        seen.add(c.name)
    return Node(name=name, kind=NodeKind.directory, path=_join(parent_path, name), children=tuple(children))


def build_filesystem(content: SiteContent) -> FileSystem:
    """Build the terminal's read-only tree from a content snapshot.

    Pure: the same content always yields an equal tree, and nothing is cached.
    """

    projects = [
        _file(
            "/projects",
            p.slug,
            ProjectFile(
                name=p.name,
                summary=p.summary,
                role=p.role,
                stack=tuple(p.stack),
                link=p.link,
                usage=f"  open {p.slug} --site    Open project in a new tab" if p.link else "",
            ),
        )
        for p in content.projects
    ]

    capabilities = [
        _file(
            "/capabilities",
            slugify(c.title),
            CapabilityFile(title=c.title, description=c.description, icon=c.icon),
        )
        for c in content.capabilities
    ]

    modes = [
        _file(
            "/modes",
            m.key,
            ModeFile(
                key=m.key,
                label=m.label,
                title=m.title,
                description=m.description,
                href=m.href,
                icon=m.icon,
                usage=f"  open {m.key} --site    Open {m.label.lower()} in a new tab",
            ),
        )
        for m in content.modes
    ]

    info = content.info
    contact = content.contact

    children = [
        _directory(
            ROOT_PATH,
            "about",
            [
                _file(
                    "/about",
                    "info",
                    AboutFile(
                        owner=info.owner,
                        site_name=info.site_name,
                        focus_areas=tuple(info.focus_areas),
                        description=info.description,
                    ),
                )
            ],
        ),
        _directory(ROOT_PATH, "projects", projects),
        _directory(
            ROOT_PATH,
            "contact",
            [
                _file(
                    "/contact",
                    "info",
                    ContactFile(
                        title=contact.title,
                        description=contact.description,
                        reasons=tuple(contact.reasons),
                        email=contact.email,
                        badge=contact.badge,
                        usage="  open contact/email    Start the interactive email composer\n"
                        "  email                 Same as above (shortcut)",
                    ),
                ),
                _file(
                    "/contact",
                    "email",
                    ComposerHint(
                        description="Send an email via the terminal",
                        usage="Type 'email' to start the email composer, or use: "
                        'email --name "Name" --email "email@example.com" --body "Message"',
                    ),
                ),
            ],
        ),
        _directory(ROOT_PATH, "capabilities", capabilities),
        _directory(ROOT_PATH, "modes", modes),
    ]

    root = Node(name=ROOT_PATH, kind=NodeKind.directory, path=ROOT_PATH, children=tuple(children))
    return FileSystem(root=root)


def _segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def resolve_absolute_path(base: str, target: str) -> str:
    """Resolve `target` against the directory `base` into a canonical absolute path.

    `..` pops one segment (a no-op at root), `.` and empty segments are skipped.
    An absolute `target` is normalized the same way starting from root.
    """

    parts = [] if target.startswith("/") else _segments(base)
    for part in target.split("/"):
        if part == "..":
            if parts:
                parts.pop()
        elif part and part != ".":
            parts.append(part)
    return "/" + "/".join(parts)


def get_node(fs: FileSystem, path: str) -> Node | None:
    current = fs.root
    for part in _segments(path):
        nxt = current.child(part)
        if nxt is None:
            return None
        current = nxt
    return current


def path_exists(fs: FileSystem, path: str) -> bool:
    return get_node(fs, path) is not None


def list_directory(fs: FileSystem, path: str) -> tuple[Node, ...] | ListingError:
    node = get_node(fs, path)
    if node is None:
        return ListingError.not_found
    if not node.is_directory:
        return ListingError.not_a_directory
    return node.children

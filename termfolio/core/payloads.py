from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ProjectFile:
    name: str
    summary: str
    role: str | None
    stack: tuple[str, ...]
    link: str | None
    usage: str = ""


@dataclass(frozen=True, slots=True)
class CapabilityFile:
    title: str
    description: str
    icon: str | None


@dataclass(frozen=True, slots=True)
class ModeFile:
    key: str
    label: str
    title: str
    description: str
    href: str
    icon: str | None
    usage: str = ""


@dataclass(frozen=True, slots=True)
class AboutFile:
    owner: str
    site_name: str
    focus_areas: tuple[str, ...]
    description: str


@dataclass(frozen=True, slots=True)
class ContactFile:
    title: str
    description: str
    reasons: tuple[str, ...]
    email: str | None
    badge: str | None
    usage: str = ""


@dataclass(frozen=True, slots=True)
class ComposerHint:
    """Marker file that starts the interactive email composer when opened."""

    description: str
    usage: str = ""


FilePayload = ProjectFile | CapabilityFile | ModeFile | AboutFile | ContactFile | ComposerHint


def link_of(payload: FilePayload | None) -> str | None:
    """The link-like field of a payload: a project's link or a mode's href."""

    if isinstance(payload, ProjectFile):
        return payload.link
    if isinstance(payload, ModeFile):
        return payload.href
    return None

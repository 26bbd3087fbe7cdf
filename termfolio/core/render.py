from __future__ import annotations

from termfolio.core.filesystem import Node
from termfolio.core.payloads import (
    AboutFile,
    CapabilityFile,
    ComposerHint,
    ContactFile,
    ModeFile,
    ProjectFile,
)


def absolute_url(href: str, *, base_url: str) -> str:
    if href.startswith("http://") or href.startswith("https://"):
        return href
    return f"{base_url.rstrip('/')}{href}"


def _name_line(label: str, icon: str | None) -> str:
    if icon:
        return f"[icon:{icon}] Name: {label}"
    return f"Name: {label}"


def _usage_block(usage: str) -> list[str]:
    if not usage.strip():
        return []
    return ["", "Usage:", usage.rstrip()]


def render_file(node: Node, *, base_url: str) -> str:
    """Format a file node for `open`.

    Deterministic: a header underlined with `=`, then labeled lines whose presence
    depends on the payload variant.
    """

    payload = node.content
    lines: list[str] = ["", node.name, "=" * len(node.name), ""]

    if isinstance(payload, ProjectFile):
        lines.append(_name_line(payload.name, None))
        if payload.role:
            lines.append(f"Role: {payload.role}")
        if payload.summary:
            lines.extend(["", payload.summary])
        if payload.stack:
            lines.extend(["", f"Stack: {', '.join(payload.stack)}"])
        if payload.link:
            lines.extend(["", f"Link: {payload.link}"])
        lines.extend(_usage_block(payload.usage))

    elif isinstance(payload, CapabilityFile):
        lines.append(_name_line(payload.title, payload.icon))
        if payload.description:
            lines.extend(["", payload.description])

    elif isinstance(payload, ModeFile):
        lines.append(_name_line(payload.title, payload.icon))
        if payload.description:
            lines.extend(["", payload.description])
        lines.extend(["", f"Link: {absolute_url(payload.href, base_url=base_url)}"])
        lines.extend(_usage_block(payload.usage))

    elif isinstance(payload, AboutFile):
        if payload.description:
            lines.append(payload.description)
        if payload.focus_areas:
            lines.extend(["", f"Focus Areas: {' · '.join(payload.focus_areas)}"])
        lines.extend(["", f"Owner: {payload.owner}"])

    elif isinstance(payload, ContactFile):
        lines.append(_name_line(payload.title, None))
        if payload.description:
            lines.extend(["", payload.description])
        if payload.email:
            lines.extend(["", f"Email: {payload.email}"])
        if payload.reasons:
            lines.extend(["", "Reasons to reach out:"])
            lines.extend(f"  • {reason}" for reason in payload.reasons)
        lines.extend(_usage_block(payload.usage))

    elif isinstance(payload, ComposerHint):
        lines.append(payload.description)
        lines.extend(_usage_block(payload.usage))

    else:
        raise TypeError(f"Unsupported content for {node.path}: {type(payload).__name__}")

    return "\n".join(lines) + "\n"

from __future__ import annotations

from pathlib import Path

from termfolio.content.registry import SiteContent, load_site_content


_CONTENT: SiteContent | None = None


def init_content(*, project_root: Path) -> SiteContent:
    """Load site content once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _CONTENT
    if _CONTENT is None:
        _CONTENT = load_site_content(root=project_root)
    return _CONTENT


def reset_content_for_tests() -> None:
    """Reset the cached content singleton.

    This is intended for tests so they can initialize content from fixture directories.
    """

    global _CONTENT
    _CONTENT = None


def get_content() -> SiteContent:
    if _CONTENT is None:
        raise RuntimeError("Site content not initialized. Call init_content() at startup.")
    return _CONTENT

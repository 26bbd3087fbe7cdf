from __future__ import annotations

from pathlib import Path

from termfolio.content.registry import SiteContent
from termfolio.content.singleton import init_content


def project_root() -> Path:
    # termfolio/content/startup.py -> termfolio/content -> termfolio -> project root
    return Path(__file__).resolve().parents[2]


def init_content_for_app() -> SiteContent:
    return init_content(project_root=project_root())

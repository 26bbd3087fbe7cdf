from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from termfolio.errors import ContentLoadError

logger = logging.getLogger(__name__)


def slugify(s: str) -> str:
    """Filesystem name for a content title: lowercase, whitespace runs become `-`."""

    return re.sub(r"\s+", "-", s.strip().lower())


class SiteInfo(BaseModel):
    owner: str
    site_name: str
    focus_areas: list[str] = Field(default_factory=list)
    description: str = ""


class Capability(BaseModel):
    title: str
    description: str = ""
    icon: str | None = None


class Mode(BaseModel):
    key: str
    label: str
    title: str
    description: str = ""
    href: str
    icon: str | None = None


class ContactInfo(BaseModel):
    title: str
    description: str = ""
    reasons: list[str] = Field(default_factory=list)
    email: str | None = None
    badge: str | None = None


class Project(BaseModel):
    name: str
    summary: str = ""
    role: str | None = None
    stack: list[str] = Field(default_factory=list)
    link: str | None = None

    @property
    def slug(self) -> str:
        return slugify(self.name)


class SiteContent(BaseModel):
    """Snapshot of the site's content records.

    Collections are ordered; the terminal filesystem keeps that order.
    """

    info: SiteInfo
    capabilities: list[Capability] = Field(default_factory=list)
    modes: list[Mode] = Field(default_factory=list)
    contact: ContactInfo
    projects: list[Project] = Field(default_factory=list)

    def find_project(self, name_or_slug: str) -> Project | None:
        key = name_or_slug.strip().lower()
        slug = slugify(name_or_slug)
        for p in self.projects:
            if p.link == name_or_slug or p.name.lower() == key or p.slug == slug:
                return p
        return None

    def find_mode_by_href(self, href: str) -> Mode | None:
        return next((m for m in self.modes if m.href == href), None)


def load_site_json(path: Path) -> SiteContent:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ContentLoadError(f"Content file not found: {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ContentLoadError(f"Invalid JSON in {path}: {e}") from e

    try:
        return SiteContent.model_validate(data)
    except ValidationError as e:
        raise ContentLoadError(f"Invalid site content in {path}: {e}") from e


def _fallback_site_content() -> SiteContent:
    """Built-in content used when `content/site.json` is missing."""

    return SiteContent(
        info=SiteInfo(
            owner="Marcus Martillano",
            site_name="custillano.dev",
            focus_areas=["Product Design", "Creative Technology", "Spatial UX"],
            description="A config-driven playground featuring CLI, web, and immersive modes.",
        ),
        capabilities=[
            Capability(
                title="Systems UX",
                description="Journeys, narratives, and flows for thoughtful 2D experiences that still feel alive.",
                icon="layers",
            ),
            Capability(
                title="Product OS",
                description="Design ops, design tokens, and component governance powered by high-signal config.",
                icon="command",
            ),
            Capability(
                title="Creative Tech",
                description="WebGL experiments, scroll-triggered narratives, and motion that stays performant.",
                icon="sparkles",
            ),
        ],
        modes=[
            Mode(
                key="cli",
                label="CLI Mode",
                title="Type-first portfolio",
                description="A terminal for fast navigation, intended for recruiters who want signal fast.",
                href="/terminal",
                icon="terminal",
            ),
            Mode(
                key="web",
                label="Web Mode",
                title="Web-based portfolio",
                description="A web-based portfolio for recruiters who want a more traditional experience.",
                href="/",
                icon="globe",
            ),
            Mode(
                key="immersive",
                label="Immersive Mode",
                title="Three.js playground",
                description="A gamified trail with spatial UI, interactive prototypes, and shader toys.",
                href="/experience",
                icon="joystick",
            ),
        ],
        contact=ContactInfo(
            title="Tell me about your brief",
            description="Have a project, collaboration, or idea in mind? Drop a note and I'll get back to you.",
            reasons=[
                "Product design collaborations",
                "Creative technology consulting",
                "Speaking or workshop invites",
            ],
            email="custillano@gmail.com",
            badge="Open for collaborations",
        ),
        projects=[
            Project(
                name="Lesson Planner",
                summary="AI-powered lesson plan generator for Philippine teachers, aligned with major curriculum frameworks.",
                role="Maintainer",
                stack=["Next.js", "Nx", "NestJS", "Datastore NoSQL"],
                link="https://lessonplanner.org",
            ),
            Project(
                name="The One Hour Project",
                summary="Exclusive events management platform built for The One Hour Project. Focused on intuitive microanimations and seamless interactions.",
                role="Product Engineer",
                stack=["Next.js", "Nx", "NestJS"],
                link="https://theonehourproject.app",
            ),
            Project(
                name="Custillano Room",
                summary="A 3D room portfolio built with Blender, where web development started as a way to share 3D art.",
                role="Designer & Developer",
                stack=["Three.js", "Blender"],
                link="https://custillano-room-bokoko33.vercel.app",
            ),
            Project(
                name="VectorPM",
                summary="AI-augmented project management tool with kanban, gantt, and a workload dashboard.",
                role="Full-Stack Engineer",
                stack=["Next.js", "Firebase"],
                link="https://vectorpm.io",
            ),
        ],
    )


def load_site_content(*, root: Path) -> SiteContent:
    path = root / "content" / "site.json"

    # Default behavior: fall back to the built-in content when the file is missing or invalid.
    # Force strict behavior with TERMFOLIO_STRICT_CONTENT=1.
    strict = os.getenv("TERMFOLIO_STRICT_CONTENT", "").strip().lower() in {"1", "true", "yes"}

    try:
        return load_site_json(path)
    except ContentLoadError:
        if strict:
            raise
        logger.warning("Falling back to built-in site content (could not load %s)", path)
        return _fallback_site_content()

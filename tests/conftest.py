from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from termfolio.config import TerminalSettings
from termfolio.delivery import DeliveryResult, EmailSubmission


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    In CI, we *don't* auto-load `.env` by default, so a developer's contact endpoint
    or Redis URL never leaks into the test run.
    """

    # Opt-in in CI with: TERMFOLIO_LOAD_DOTENV_FOR_TESTS=1
    if os.environ.get("CI") and os.environ.get("TERMFOLIO_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(scope="session", autouse=True)
def _init_content_from_test_fixtures() -> None:
    """Initialize content from `tests/content` and forbid the built-in fallback.

    This keeps tests hermetic and prevents coupling to the repo's real site content.
    """

    os.environ["TERMFOLIO_STRICT_CONTENT"] = "1"

    from termfolio.content.singleton import init_content, reset_content_for_tests

    reset_content_for_tests()

    # Point the loader at a fake project root: tests/ contains a content/ dir.
    test_root = Path(__file__).resolve().parent
    init_content(project_root=test_root)


class RecordingDelivery:
    """Delivery double: records submissions and answers with a canned result."""

    def __init__(self, result: DeliveryResult | None = None, *, error: Exception | None = None) -> None:
        self.result = result or DeliveryResult(success=True)
        self.error = error
        self.sent: list[EmailSubmission] = []

    async def deliver(self, submission: EmailSubmission) -> DeliveryResult:
        self.sent.append(submission)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture()
def content():
    from termfolio.content.singleton import get_content

    return get_content()


@pytest.fixture()
def fs(content):
    from termfolio.core.filesystem import build_filesystem

    return build_filesystem(content)


@pytest.fixture()
def settings() -> TerminalSettings:
    return TerminalSettings(base_url="https://ada.example", exit_delay_ms=5)


@pytest.fixture()
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture()
def deferred() -> list:
    return []


@pytest.fixture()
def terminal(content, settings: TerminalSettings, delivery: RecordingDelivery, deferred: list):
    from termfolio.engine import build_terminal

    return build_terminal(content, settings, delivery=delivery, on_deferred=deferred.append)


@pytest.fixture()
def client(terminal) -> Generator:
    from fastapi.testclient import TestClient

    from termfolio.api.deps import get_terminal
    from termfolio.main import app

    app.dependency_overrides[get_terminal] = lambda: terminal
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

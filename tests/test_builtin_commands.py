from __future__ import annotations

import pytest

from conftest import RecordingDelivery
from termfolio.api.models import HistoryEntry, SessionKind, TerminalState
from termfolio.delivery import DeliveryResult
from termfolio.session import NAME_PROMPT, SENT_TEXT


async def _run(terminal, state: TerminalState, line: str):
    resp = await terminal.submit(line, state.context())
    state.record(input=line, response=resp)
    return resp


@pytest.mark.asyncio
async def test_cd_and_pwd(terminal) -> None:
    state = TerminalState()

    assert (await _run(terminal, state, "cd projects")).output == ""
    assert state.current_directory == "/projects"
    assert (await _run(terminal, state, "pwd")).output == "/projects"

    await _run(terminal, state, "cd ../about")
    assert state.current_directory == "/about"

    await _run(terminal, state, "cd")
    assert state.current_directory == "/"


@pytest.mark.asyncio
async def test_cd_to_missing_path_keeps_directory(terminal) -> None:
    state = TerminalState(current_directory="/projects")

    resp = await _run(terminal, state, "cd nowhere")

    assert resp.error is True
    assert resp.output == "cd: no such file or directory: nowhere"
    assert state.current_directory == "/projects"


@pytest.mark.asyncio
async def test_cd_into_file_is_rejected(terminal) -> None:
    state = TerminalState()

    resp = await _run(terminal, state, "cd about/info")

    assert resp.error is True
    assert resp.output == "cd: not a directory: about/info"
    assert state.current_directory == "/"


@pytest.mark.asyncio
async def test_ls(terminal) -> None:
    state = TerminalState()

    assert (await _run(terminal, state, "ls")).output == "about/  projects/  contact/  capabilities/  modes/"
    assert (await _run(terminal, state, "ls projects")).output == "lesson-planner  lens-lab  orbit"
    assert (await _run(terminal, state, "ls /about/info")).output == "info"


@pytest.mark.asyncio
async def test_ls_marks_exactly_the_directories(terminal, fs) -> None:
    for directory in (n for n in fs.root.walk() if n.is_directory):
        resp = await terminal.submit(f"ls {directory.path}", TerminalState().context())
        entries = resp.output.split("  ") if resp.output else []
        for child, entry in zip(directory.children, entries, strict=True):
            assert entry == (child.name + "/" if child.is_directory else child.name)


@pytest.mark.asyncio
async def test_ls_missing_path(terminal) -> None:
    resp = await _run(terminal, TerminalState(), "ls ghost")

    assert resp.error is True
    assert resp.output == "ls: cannot access 'ghost': No such file or directory"


@pytest.mark.asyncio
async def test_open_renders_files(terminal) -> None:
    state = TerminalState(current_directory="/projects")

    resp = await _run(terminal, state, "open lens-lab")

    assert resp.error is False
    assert "Name: Lens Lab" in resp.output
    assert "Link: https://lenslab.dev" in resp.output
    assert resp.update.open_url is None


@pytest.mark.asyncio
async def test_open_errors(terminal) -> None:
    state = TerminalState()

    missing = await _run(terminal, state, "open")
    assert missing.output == "open: missing file operand\nTry 'open --help' for more information."
    assert missing.error is True

    directory = await _run(terminal, state, "open projects")
    assert directory.output == "open: 'projects' is a directory"
    assert directory.error is True

    ghost = await _run(terminal, state, "open ghost")
    assert ghost.output == "open: cannot open 'ghost': No such file or directory"

    too_many = await _run(terminal, state, "open about/info projects/orbit")
    assert too_many.error is True
    assert too_many.output.startswith("open: too many arguments")


@pytest.mark.asyncio
async def test_open_links_and_urls(terminal) -> None:
    state = TerminalState()

    url = await _run(terminal, state, "open https://example.org/x")
    assert url.output == "Opening https://example.org/x in a new tab..."
    assert url.update.open_url == "https://example.org/x"

    mode = await _run(terminal, state, "open /terminal")
    assert mode.update.open_url == "https://ada.example/terminal"

    site = await _run(terminal, state, "open modes/immersive --site")
    assert site.update.open_url == "https://ada.example/experience"

    project = await _run(terminal, state, "open projects/lesson-planner --site")
    assert project.update.open_url == "https://lessonplanner.org"

    by_slug = await _run(terminal, state, "open lens-lab")
    assert by_slug.update.open_url == "https://lenslab.dev"

    by_name = await _run(terminal, state, "open Lens Lab")
    assert by_name.update.open_url == "https://lenslab.dev"


@pytest.mark.asyncio
async def test_open_site_without_link(terminal) -> None:
    resp = await _run(terminal, TerminalState(), "open projects/orbit --site")

    assert resp.error is True
    assert resp.output == "open: 'projects/orbit' has no site to open"


@pytest.mark.asyncio
async def test_open_contact_email_starts_composer(terminal) -> None:
    state = TerminalState()

    resp = await _run(terminal, state, "open contact/email")

    assert resp.output.endswith(NAME_PROMPT)
    assert state.session is not None
    assert state.session.kind == SessionKind.email
    assert state.session.current_step == 0


@pytest.mark.asyncio
async def test_help_lists_every_command_once(terminal) -> None:
    resp = await _run(terminal, TerminalState(), "help")

    lines = resp.output.splitlines()
    assert lines[0] == "Available commands:"
    assert "  help     - Show available commands (aliases: ?)" in lines
    assert "  exit     - Exit terminal (navigate back to web mode) (aliases: quit, q)" in lines
    assert "  cd       - Change directory" in lines
    assert sum(1 for line in lines if line.startswith("  ")) == 8
    assert resp.output.endswith("Use 'help <command>' for more information about a specific command.")


@pytest.mark.asyncio
async def test_help_for_one_command(terminal) -> None:
    state = TerminalState()

    detail = await _run(terminal, state, "? clear")
    assert detail.output == "clear - Clear terminal output\nAliases: cls\n\nUsage:\n  clear"

    assert (await _run(terminal, state, "open --help")).output.startswith("open - Open/access")

    unknown = await _run(terminal, state, "help nope")
    assert unknown.error is True
    assert unknown.output == "help: no help topics match 'nope'"


@pytest.mark.asyncio
async def test_clear_wipes_history(terminal) -> None:
    state = TerminalState(history=[HistoryEntry(input="ls", output="x")])
    await _run(terminal, state, "pwd")

    resp = await _run(terminal, state, "cls")

    assert resp.output == ""
    assert resp.update.cleared is True
    assert state.history == []


@pytest.mark.asyncio
async def test_exit_navigates_after_delay(terminal, deferred: list) -> None:
    state = TerminalState()

    resp = await _run(terminal, state, "quit")

    assert resp.output == "Exiting terminal..."
    assert deferred == []

    await terminal.drain()

    assert [u.navigate_to for u in deferred] == ["/"]


@pytest.mark.asyncio
async def test_email_one_shot(terminal, delivery: RecordingDelivery) -> None:
    resp = await _run(
        terminal, TerminalState(), 'email --name "Ada Example" --email ada@x.dev --body "Hello there"'
    )

    assert resp.error is False
    assert resp.output == SENT_TEXT
    assert len(delivery.sent) == 1
    assert delivery.sent[0].name == "Ada Example"
    assert delivery.sent[0].body == "Hello there"


@pytest.mark.asyncio
async def test_email_one_shot_reports_id(terminal, delivery: RecordingDelivery) -> None:
    delivery.result = DeliveryResult(success=True, message="Thanks!", id="m-1")

    resp = await _run(terminal, TerminalState(), "email --name=Ada --email=ada@x.dev --body=hi")

    assert resp.output == "Thanks! (id: m-1)"


@pytest.mark.asyncio
async def test_email_one_shot_validates(terminal, delivery: RecordingDelivery) -> None:
    bad = await _run(terminal, TerminalState(), "email --name Ada --email nope --body hi")
    unknown = await _run(terminal, TerminalState(), "email --subject hi")

    assert bad.error is True
    assert bad.output == "Invalid email format. Use an address like you@example.com."
    assert unknown.error is True
    assert unknown.output.startswith("email: unknown option '--subject'")
    assert delivery.sent == []


@pytest.mark.asyncio
async def test_email_one_shot_keeps_quoted_whitespace(terminal, delivery: RecordingDelivery) -> None:
    resp = await _run(terminal, TerminalState(), 'email --name Ada --email a@b.co --body "Hi    there"')

    assert resp.error is False
    assert delivery.sent[0].body == "Hi    there"


@pytest.mark.asyncio
async def test_email_one_shot_unbalanced_quotes(terminal, delivery: RecordingDelivery) -> None:
    resp = await _run(terminal, TerminalState(), 'email --name "Ada --email a@b.co --body hi')

    assert resp.error is True
    assert resp.output.startswith("email: ")
    assert delivery.sent == []

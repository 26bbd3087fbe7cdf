from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import RecordingDelivery
from termfolio.session import CANCELLED_TEXT, NAME_PROMPT, SENT_TEXT


def _execute(client: TestClient, line: str, state: dict | None = None) -> dict:
    resp = client.post("/terminal/execute", json={"input": line, "state": state or {}})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_healthcheck_and_info(client: TestClient) -> None:
    assert client.get("/healthcheck").json() == {"status": "ok"}
    assert client.get("/info").json() == {"name": "termfolio", "version": "0.1.0"}


def test_execute_threads_state_through_turns(client: TestClient) -> None:
    first = _execute(client, "cd projects")
    assert first["state"]["current_directory"] == "/projects"

    second = _execute(client, "ls", first["state"])
    assert second["response"]["output"] == "lesson-planner  lens-lab  orbit"
    assert [h["input"] for h in second["state"]["history"]] == ["cd projects", "ls"]


def test_execute_unknown_command(client: TestClient) -> None:
    data = _execute(client, "foobar")

    assert data["response"]["output"] == "foobar: command not found\nTry 'help' for a list of available commands."
    assert data["response"]["error"] is True
    assert data["state"]["history"][0]["error"] is True


def test_execute_rejects_unknown_directory(client: TestClient) -> None:
    resp = client.post("/terminal/execute", json={"input": "ls", "state": {"current_directory": "/nope"}})

    assert resp.status_code == 422


def test_complete(client: TestClient) -> None:
    resp = client.post("/terminal/complete", json={"input": "open proj"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["completions"] == ["projects"]
    assert data["is_directory"] is True
    assert (data["word_start"], data["word_end"]) == (5, 9)


def test_complete_rejects_cursor_past_end(client: TestClient) -> None:
    resp = client.post("/terminal/complete", json={"input": "ls", "cursor": 5})

    assert resp.status_code == 422


def test_email_session_over_http(client: TestClient, delivery: RecordingDelivery) -> None:
    data = _execute(client, "email")
    assert data["response"]["output"].endswith(NAME_PROMPT)

    for line in ["Ada", "ada@ada.example", "Hello", ""]:
        data = _execute(client, line, data["state"])

    assert data["state"]["session"] is None
    assert data["state"]["history"][-1]["output"] == SENT_TEXT
    assert delivery.sent[0].body == "Hello"


def test_cancel(client: TestClient) -> None:
    started = _execute(client, "email")

    resp = client.post("/terminal/cancel", json={"state": started["state"]})

    data = resp.json()
    assert data["response"]["output"] == CANCELLED_TEXT
    assert data["state"]["session"] is None
    assert data["state"]["history"][-1]["input"] == "^C"


def test_cancel_without_session_leaves_history_alone(client: TestClient) -> None:
    resp = client.post("/terminal/cancel", json={"state": {}})

    assert resp.json()["state"]["history"] == []


def test_tree(client: TestClient) -> None:
    tree = client.get("/terminal/tree").json()

    assert tree["path"] == "/"
    assert [c["name"] for c in tree["children"]] == ["about", "projects", "contact", "capabilities", "modes"]
    projects = tree["children"][1]
    assert projects["kind"] == "directory"
    assert projects["children"][0] == {"name": "lesson-planner", "kind": "file", "path": "/projects/lesson-planner", "children": []}

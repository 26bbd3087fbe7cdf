from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from termfolio.api.deps import get_terminal
from termfolio.api.models import (
    CancelRequest,
    CompleteRequest,
    CompletionResult,
    ExecuteRequest,
    TerminalState,
    TreeNode,
    TurnResponse,
)
from termfolio.core.filesystem import Node, get_node
from termfolio.engine import Terminal

router = APIRouter()

# What the history shows for a cancelled session.
CANCEL_INPUT = "^C"


def _require_directory(terminal: Terminal, state: TerminalState) -> None:
    node = get_node(terminal.fs, state.current_directory)
    if node is None or not node.is_directory:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown current directory: {state.current_directory}",
        )


def _tree(node: Node) -> TreeNode:
    return TreeNode(name=node.name, kind=node.kind.value, path=node.path, children=[_tree(c) for c in node.children])


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/terminal/execute", response_model=TurnResponse)
async def execute_route(payload: ExecuteRequest, terminal: Terminal = Depends(get_terminal)) -> TurnResponse:
    state = payload.state
    _require_directory(terminal, state)

    response = await terminal.submit(payload.input, state.context())
    state.record(input=payload.input, response=response)
    return TurnResponse(response=response, state=state)


@router.post("/terminal/complete", response_model=CompletionResult)
async def complete_route(payload: CompleteRequest, terminal: Terminal = Depends(get_terminal)) -> CompletionResult:
    _require_directory(terminal, payload.state)
    if payload.cursor is not None and payload.cursor > len(payload.input):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="cursor is past the end of input")
    return terminal.complete(payload.input, payload.cursor, payload.state.context())


@router.post("/terminal/cancel", response_model=TurnResponse)
async def cancel_route(payload: CancelRequest, terminal: Terminal = Depends(get_terminal)) -> TurnResponse:
    state = payload.state
    response = terminal.cancel(state.context())
    if response.output:
        state.record(input=CANCEL_INPUT, response=response)
    else:
        state.apply(response.update)
    return TurnResponse(response=response, state=state)


@router.get("/terminal/tree", response_model=TreeNode)
async def tree_route(terminal: Terminal = Depends(get_terminal)) -> TreeNode:
    """The virtual filesystem as nested JSON (for clients drawing a sidebar)."""

    return _tree(terminal.fs.root)

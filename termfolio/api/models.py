from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from termfolio.core.filesystem import ROOT_PATH


def _now() -> datetime:
    return datetime.now(tz=UTC)


class HistoryEntry(BaseModel):
    input: str
    output: str
    timestamp: datetime = Field(default_factory=_now)
    error: bool = False


class SessionKind(StrEnum):
    email = "email"


class SessionState(BaseModel):
    """An active multi-step capture. While set, raw input bypasses the dispatcher."""

    kind: SessionKind
    data: dict[str, str] = Field(default_factory=dict)
    current_step: int = Field(0, ge=0)
    prompt: str


class TerminalContext(BaseModel):
    """Read-only view of the caller state handed to commands for one call."""

    model_config = ConfigDict(frozen=True)

    current_directory: str = ROOT_PATH
    session: SessionState | None = None


class ContextUpdate(BaseModel):
    """Changes a command asks the caller to apply to its terminal state."""

    new_directory: str | None = None
    history_append: list[HistoryEntry] = Field(default_factory=list)

    # `session` installs or replaces the active session; `end_session` clears it.
    session: SessionState | None = None
    end_session: bool = False

    # Wipes history (and any session) before anything else is applied.
    cleared: bool = False

    # Navigation requests for the host UI.
    navigate_to: str | None = None
    open_url: str | None = None

    def merge(self, other: "ContextUpdate") -> "ContextUpdate":
        """Combine two updates; fields set in `other` win, appended history concatenates."""

        return ContextUpdate(
            new_directory=other.new_directory if other.new_directory is not None else self.new_directory,
            history_append=[*self.history_append, *other.history_append],
            session=other.session if other.session is not None else self.session,
            end_session=self.end_session or other.end_session,
            cleared=self.cleared or other.cleared,
            navigate_to=other.navigate_to if other.navigate_to is not None else self.navigate_to,
            open_url=other.open_url if other.open_url is not None else self.open_url,
        )


class CommandResponse(BaseModel):
    output: str = ""
    error: bool = False
    update: ContextUpdate = Field(default_factory=ContextUpdate)


class TerminalState(BaseModel):
    """Caller-owned terminal state: the only mutable state in the system."""

    current_directory: str = ROOT_PATH
    history: list[HistoryEntry] = Field(default_factory=list)
    session: SessionState | None = None

    def context(self) -> TerminalContext:
        return TerminalContext(current_directory=self.current_directory, session=self.session)

    def apply(self, update: ContextUpdate) -> None:
        if update.cleared:
            self.history.clear()
            self.session = None
        if update.new_directory is not None:
            self.current_directory = update.new_directory
        if update.end_session:
            self.session = None
        if update.session is not None:
            self.session = update.session
        self.history.extend(update.history_append)

    def record(self, *, input: str, response: CommandResponse) -> None:
        """Append the turn to history, then apply the response's update.

        A clearing update leaves history empty, without the clearing command itself.
        """

        if not response.update.cleared:
            self.history.append(HistoryEntry(input=input, output=response.output, error=response.error))
        self.apply(response.update)


class CompletionResult(BaseModel):
    completions: list[str] = Field(default_factory=list)
    common_prefix: str = ""
    # Only set when exactly one completion names a directory.
    is_directory: bool | None = None

    # The whitespace-delimited word under the cursor that completions replace.
    word: str = ""
    word_start: int = 0
    word_end: int = 0

    @property
    def should_list(self) -> bool:
        """Several candidates and nothing more to insert: show them all."""

        return len(self.completions) > 1 and len(self.common_prefix) <= len(self.word)


class ExecuteRequest(BaseModel):
    input: str
    state: TerminalState = Field(default_factory=TerminalState)


class CompleteRequest(BaseModel):
    input: str
    cursor: int | None = Field(None, ge=0)
    state: TerminalState = Field(default_factory=TerminalState)


class CancelRequest(BaseModel):
    state: TerminalState = Field(default_factory=TerminalState)


class TurnResponse(BaseModel):
    response: CommandResponse
    state: TerminalState


class TreeNode(BaseModel):
    name: str
    kind: str
    path: str
    children: list["TreeNode"] = Field(default_factory=list)

from __future__ import annotations

import logging
import re
from typing import Protocol

from termfolio.api.models import CommandResponse, ContextUpdate, HistoryEntry, SessionKind, SessionState
from termfolio.delivery import Delivery, DeliveryResult, EmailSubmission
from termfolio.errors import CaptureValidationError, DeliveryFailure
from termfolio.fsm import COMPOSE_STEPS, ComposeFSM

logger = logging.getLogger(__name__)

NAME_PROMPT = "Your name:"
EMAIL_PROMPT = "Your email:"
BODY_PROMPT = "Message (press Enter on an empty line to send):"
COMPOSE_PROMPTS: tuple[str, ...] = (NAME_PROMPT, EMAIL_PROMPT, BODY_PROMPT)

COMPOSE_INTRO = "Email composer\nAnswer each prompt and press Enter. Press Ctrl+C to cancel at any time."
SENDING_TEXT = "Sending email..."
SENT_TEXT = "Email sent successfully! Thank you for reaching out."
FAILED_TEXT = "Failed to send email. Please try again later."
CANCELLED_TEXT = "Email cancelled."

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise CaptureValidationError("Name is required.")
    return name


def validate_email(value: str) -> str:
    email = value.strip()
    if not email:
        raise CaptureValidationError("Email is required.")
    if not EMAIL_RE.match(email):
        raise CaptureValidationError("Invalid email format. Use an address like you@example.com.")
    return email


def validate_body(value: str) -> str:
    if not value.strip():
        raise CaptureValidationError("Message is required.")
    return value


def format_outcome(result: DeliveryResult) -> tuple[str, bool]:
    """The confirmation/failure line shown after delivery, and its error flag."""

    if result.success:
        text = result.message or SENT_TEXT
        if result.id:
            text = f"{text} (id: {result.id})"
        return text, False
    return result.error or FAILED_TEXT, True


class SessionHandler(Protocol):
    async def handle(self, line: str, session: SessionState) -> CommandResponse:  # pragma: no cover
        ...

    def cancel(self, session: SessionState) -> CommandResponse:  # pragma: no cover
        ...


class ComposeSession:
    """Guided email capture: name, then email, then a multi-line body.

    Validation errors re-issue the same step's prompt and never end the session.
    """

    kind = SessionKind.email

    def __init__(self, delivery: Delivery) -> None:
        self.delivery = delivery

    def start(self) -> SessionState:
        return SessionState(kind=self.kind, current_step=0, prompt=NAME_PROMPT)

    def start_response(self) -> CommandResponse:
        session = self.start()
        output = f"{COMPOSE_INTRO}\n\n{session.prompt}"
        return CommandResponse(output=output, update=ContextUpdate(session=session))

    async def handle(self, line: str, session: SessionState) -> CommandResponse:
        fsm = ComposeFSM(session)

        if fsm.current_state == fsm.collecting_name:
            try:
                name = validate_name(line)
            except CaptureValidationError as e:
                return _reprompt(session, e)
            fsm.name_accepted()
            return _advance(session, fsm, name=name)

        if fsm.current_state == fsm.collecting_email:
            try:
                email = validate_email(line)
            except CaptureValidationError as e:
                return _reprompt(session, e)
            fsm.email_accepted()
            return _advance(session, fsm, email=email)

        return await self._collect_body(line, session, fsm)

    async def _collect_body(self, line: str, session: SessionState, fsm: ComposeFSM) -> CommandResponse:
        body = session.data.get("body", "")

        if not line.strip():
            if not body:
                # Nothing written yet: the blank line is empty content, keep collecting.
                return CommandResponse(update=ContextUpdate(session=_with_data(session, body="")))
            fsm.body_completed()
            text, failed = await self._deliver(
                EmailSubmission(name=session.data.get("name", ""), email=session.data.get("email", ""), body=body)
            )
            return CommandResponse(
                output=SENDING_TEXT,
                update=ContextUpdate(
                    end_session=True,
                    history_append=[HistoryEntry(input="", output=text, error=failed)],
                ),
            )

        body = f"{body}\n{line}" if body else line
        return CommandResponse(update=ContextUpdate(session=_with_data(session, body=body)))

    async def _deliver(self, submission: EmailSubmission) -> tuple[str, bool]:
        try:
            result = await self.delivery.deliver(submission)
        except DeliveryFailure as e:
            return str(e), True
        return format_outcome(result)

    async def send_now(self, *, name: str, email: str, body: str) -> CommandResponse:
        """One-shot send with the same validation as the guided flow."""

        submission = EmailSubmission(name=validate_name(name), email=validate_email(email), body=validate_body(body))
        text, failed = await self._deliver(submission)
        return CommandResponse(output=text, error=failed)

    def cancel(self, session: SessionState) -> CommandResponse:
        # Total: a session with an out-of-range step is discarded all the same.
        if session.current_step < len(COMPOSE_STEPS):
            ComposeFSM(session).abort()
        return CommandResponse(output=CANCELLED_TEXT, update=ContextUpdate(end_session=True))


def _with_data(session: SessionState, **data: str) -> SessionState:
    return session.model_copy(update={"data": {**session.data, **data}})


def _reprompt(session: SessionState, e: CaptureValidationError) -> CommandResponse:
    return CommandResponse(output=f"{e}\n{session.prompt}", error=True)


def _advance(session: SessionState, fsm: ComposeFSM, **data: str) -> CommandResponse:
    step = fsm.step
    if step is None:
        raise ValueError(f"Compose session has no step after {fsm.current_state.id}")
    nxt = session.model_copy(
        update={"data": {**session.data, **data}, "current_step": step, "prompt": COMPOSE_PROMPTS[step]}
    )
    return CommandResponse(output=nxt.prompt, update=ContextUpdate(session=nxt))


class SessionLayer:
    """Routes raw input to the handler of the active session's kind."""

    def __init__(self, handlers: dict[SessionKind, SessionHandler]) -> None:
        self.handlers = handlers

    async def handle(self, line: str, session: SessionState) -> CommandResponse:
        handler = self.handlers.get(session.kind)
        if handler is None:
            logger.warning("No handler for session kind %r; ending session", session.kind)
            return CommandResponse(
                output=f"Session '{session.kind}' is not available.",
                error=True,
                update=ContextUpdate(end_session=True),
            )
        return await handler.handle(line, session)

    def cancel(self, session: SessionState | None) -> CommandResponse:
        if session is None:
            return CommandResponse()
        handler = self.handlers.get(session.kind)
        if handler is None:
            return CommandResponse(output="Cancelled.", update=ContextUpdate(end_session=True))
        return handler.cancel(session)

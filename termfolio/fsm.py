from __future__ import annotations

from statemachine import State, StateMachine

from termfolio.api.models import SessionState

# Capture steps in order; `SessionState.current_step` indexes into this tuple.
COMPOSE_STEPS: tuple[str, ...] = ("collecting_name", "collecting_email", "collecting_body")


class ComposeFSM(StateMachine):
    """FSM wrapper around an email-compose SessionState.

    - steps: name -> email -> body -> delivered
    - `abort` is allowed from any capture step.
    The session handler validates input; the FSM only guards transitions.
    """

    collecting_name = State("collecting_name", value="collecting_name", initial=True)
    collecting_email = State("collecting_email", value="collecting_email")
    collecting_body = State("collecting_body", value="collecting_body")
    delivered = State("delivered", value="delivered", final=True)
    cancelled = State("cancelled", value="cancelled", final=True)

    name_accepted = collecting_name.to(collecting_email)
    email_accepted = collecting_email.to(collecting_body)
    body_completed = collecting_body.to(delivered)
    abort = collecting_name.to(cancelled) | collecting_email.to(cancelled) | collecting_body.to(cancelled)

    def __init__(self, session: SessionState):
        if session.current_step >= len(COMPOSE_STEPS):
            raise ValueError(f"Invalid compose step: {session.current_step}")
        super().__init__(start_value=COMPOSE_STEPS[session.current_step])

    @property
    def step(self) -> int | None:
        """Index of the current capture step, or None once finished."""

        value = str(self.current_state.value)
        return COMPOSE_STEPS.index(value) if value in COMPOSE_STEPS else None

    @property
    def finished(self) -> bool:
        return bool(self.current_state.final)

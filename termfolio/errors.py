from __future__ import annotations


class TerminalError(RuntimeError):
    """Base for errors that are reported to the user as `{output, error: true}`.

    The message is the exact text shown in the terminal.
    """


class PathNotFound(TerminalError):
    pass


class NotADirectory(TerminalError):
    pass


class NotAFile(TerminalError):
    pass


class UnknownCommand(TerminalError):
    def __init__(self, verb: str) -> None:
        self.verb = verb
        super().__init__(f"{verb}: command not found\nTry 'help' for a list of available commands.")


class UsageError(TerminalError):
    pass


class CaptureValidationError(TerminalError):
    """Empty or malformed field during interactive capture."""


class DeliveryFailure(TerminalError):
    """The delivery collaborator rejected the message or could not be reached."""


class ContentLoadError(RuntimeError):
    pass

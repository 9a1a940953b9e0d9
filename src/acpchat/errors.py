"""Exceptions raised by acpchat."""


class AcpChatError(Exception):
    """Base class for acpchat errors."""


class UnsupportedUpdateError(ValueError, AcpChatError):
    """Raised when a session update has a type this engine does not route."""

    def __init__(self, update_type: str | None) -> None:
        super().__init__(f"Unsupported session update type: {update_type!r}")
        self.update_type = update_type

"""Custom exception hierarchy for moonsync."""

from __future__ import annotations


class MoonsyncError(Exception):
    """Base exception for all moonsync errors."""


class MoonsyncConfigError(MoonsyncError):
    """Invalid or missing configuration."""


class MoonsyncStorageError(MoonsyncError):
    """Persisted value could not be read or decoded."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class MoonsyncTransportError(MoonsyncError):
    """Websocket-level failure (connect, send, invalid frame)."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        self.code = code
        super().__init__(message)


class MoonsyncEventError(MoonsyncError):
    """An inbound event could not be turned into a typed event."""

    def __init__(self, message: str, *, name: str = "") -> None:
        self.name = name
        super().__init__(message)


class UnknownEventError(MoonsyncEventError):
    """Event name has no registered schema."""


class MalformedEventError(MoonsyncEventError):
    """Event payload does not match the schema registered for its name."""

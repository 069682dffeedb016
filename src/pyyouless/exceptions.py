"""Exceptions raised by pyyouless.

All exceptions inherit from :class:`YoulessError` so callers can use a single
``except YoulessError`` to catch handshake, request and data format failures.
"""

from __future__ import annotations


class YoulessError(Exception):
    """Base exception for all Youless errors."""

    pass


class YoulessConnectionError(YoulessError):
    """Failed to connect to the device or its low-level response was malformed."""

    pass


class YoulessAuthError(YoulessError):
    """The device rejected the password or did not grant a session."""

    pass


class YoulessRequestError(YoulessError):
    """A request did not complete successfully.

    ``status`` holds the HTTP status code returned by the device, or ``None``
    when the request failed before a response was received (the underlying
    error is then available as ``__cause__``).
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        """Initialize with message and HTTP status.

        Args:
            message: Human readable description
            status: HTTP status code, if the device responded
        """
        self.status = status
        super().__init__(message)


class YoulessDataFormatError(YoulessError):
    """The device payload did not match the expected wire format."""

    def __init__(self, field: str, raw_value: object, reason: str | None = None) -> None:
        """Initialize with the offending field and raw value.

        Args:
            field: Name of the field being parsed
            raw_value: The raw value as sent by the device
            reason: Optional detail appended to the message
        """
        self.field = field
        self.raw_value = raw_value
        message = f"Could not parse {raw_value!r} as '{field}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class YoulessOperationError(YoulessError):
    """An operation precondition was violated (e.g. merging mixed units)."""

    pass


class YoulessDisposedError(YoulessError):
    """The client or session was used after it was closed."""

    pass

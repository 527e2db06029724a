"""
Exception hierarchy for the PVOutput client.

All errors raised by the codecs and the HTTP client derive from
:class:`PVOutputError`, so callers can catch a single type. Validation and
parse errors also derive from :class:`ValueError`.

CHANGELOG:
- 2026-10-19: Add BatchEncodeError
- 2026-10-12: Add RateLimitExceededError
- 2026-10-09: Initial creation

TODO:
- None
"""

from __future__ import annotations


class PVOutputError(Exception):
    """Base class for every error raised by this package."""


class MissingFieldError(PVOutputError, ValueError):
    """A required field (``date`` / ``date_time``) is unset at encode time."""


class BatchSizeError(PVOutputError, ValueError):
    """A batch is empty or holds more records than the service accepts."""


class BatchEncodeError(PVOutputError, ValueError):
    """A record value cannot be placed in a batch line.

    Batch lines separate values with ``,`` and records with ``;``, so a
    value containing either would shift or split the record.
    """


class ParseError(PVOutputError, ValueError):
    """A response line is too short or one of its fields is malformed.

    Attributes:
        line: The raw input line that failed to decode.
        field: Name of the offending field, or ``None`` when the line as a
            whole was rejected (e.g. too few fields).
    """

    def __init__(self, message: str, *, line: str, field: str | None = None) -> None:
        super().__init__(message)
        self.line = line
        self.field = field


class TransportError(PVOutputError):
    """The service rejected a request or could not be reached.

    The exception message is the raw response body, as returned by the
    service (e.g. ``"Bad request 400: Invalid system id"``).

    Attributes:
        body: Raw response body, empty when no response was received.
        status_code: HTTP status code, ``None`` on network failures.
    """

    def __init__(self, body: str, *, status_code: int | None = None) -> None:
        super().__init__(body)
        self.body = body
        self.status_code = status_code


class RateLimitExceededError(TransportError):
    """The hourly request quota of the API key has been used up."""

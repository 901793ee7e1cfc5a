"""
Exception hierarchy for pylloom.
Every error raised by the client derives from OllamaError.
"""

from __future__ import annotations
from typing import Optional


class OllamaError(Exception):
    """Base class for all client errors."""


class ConfigurationError(OllamaError):
    """Invalid client configuration (e.g. an unusable base URL)."""


class ValidationError(OllamaError, ValueError):
    """A request failed local validation before being sent."""


class RequestError(OllamaError):
    """The HTTP request could not be completed (connection, timeout, ...)."""


class ResponseError(OllamaError):
    """The server answered with an unexpected status or an error payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @classmethod
    def from_status(cls, status_code: int, body: str) -> ResponseError:
        return cls(
            f"HTTP request failed with status {status_code}: {body}",
            status_code=status_code,
            body=body,
        )


class DecodeError(OllamaError):
    """The response body was not the JSON we expected."""


class StreamLimitError(OllamaError):
    """A streamed status response carried too many messages."""

"""
Transport protocol interface.
Defines the contract the client uses to reach the server.
"""

from __future__ import annotations
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Protocol, Union


class Transport(Protocol):
    """Protocol for HTTP transport implementations."""

    def url_for(self, path: str) -> str:
        """Resolve an endpoint path against the base URL."""
        ...

    def request_json(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Send a request and decode a single JSON object."""
        ...

    def stream_json(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None
    ) -> Iterator[Dict[str, Any]]:
        """Send a request and yield every JSON value of the streamed body."""
        ...

    def status_stream(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None
    ) -> List[str]:
        """Collect the status message of every streamed value, up to a bounded count."""
        ...

    def head(self, path: str) -> int:
        """Send a HEAD request and return the status code."""
        ...

    def post_bytes(self, path: str, data: Union[bytes, BinaryIO]) -> Any:
        """Upload raw bytes; returns the HTTP response."""
        ...

    def close(self) -> None:
        ...

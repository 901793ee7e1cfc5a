"""
HTTP transport - Infrastructure implementation of the Transport protocol.
Owns the requests session, URL resolution, status checking and the
streamed JSON decoding shared by every endpoint.
"""

from __future__ import annotations
import json
import logging
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union
from urllib.parse import urljoin, urlparse

import requests

from ...domain.services.stream_processor import iter_json_values
from ...errors import (
    ConfigurationError,
    DecodeError,
    RequestError,
    ResponseError,
    StreamLimitError,
)
from ...utils import truncate_text
from .retry import RetryConfig, RetryPolicy


DEFAULT_HOST = "http://localhost:11434"
MAX_STATUS_MESSAGES = 1000
ERROR_BODY_LIMIT = 512
_CHUNK_SIZE = 8192


def parse_base_url(base_url: str) -> str:
    """Validate a base URL; only absolute http(s) URLs with a host are usable."""
    if not isinstance(base_url, str) or not base_url.strip():
        raise ConfigurationError("base URL is required")
    parsed = urlparse(base_url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"invalid base URL: {base_url!r}")
    return parsed.geturl()


class HttpTransport:
    """requests-based transport for the model server API."""

    def __init__(
        self,
        base_url: str = DEFAULT_HOST,
        timeout: float = 300.0,
        connect_timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        retry_config: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        self._base_url = parse_base_url(base_url)
        self._timeout = (connect_timeout, timeout) if connect_timeout else timeout
        self._logger = logger or logging.getLogger(__name__)
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        self._headers: Dict[str, str] = {"Accept": "application/json"}
        self._headers.update(headers or {})
        self._retry = RetryPolicy(retry_config, logger=self._logger)

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, path: str) -> str:
        """Resolve an endpoint path; an absolute path replaces the base URL's path."""
        return urljoin(self._base_url, path)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    # Requests

    def _send(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        data: Any = None,
        content_type: Optional[str] = None,
        stream: bool = False
    ) -> requests.Response:
        url = self.url_for(path)
        headers = dict(self._headers)
        payload = data
        if body is not None:
            payload = json.dumps(body)
            headers["Content-Type"] = "application/json"
        elif content_type:
            headers["Content-Type"] = content_type

        def _operation() -> requests.Response:
            self._logger.debug(f"{method} {url}")
            resp = self._session.request(
                method,
                url,
                data=payload,
                headers=headers,
                timeout=self._timeout,
                stream=stream,
            )
            self._logger.debug(f"{method} {url} -> {resp.status_code}")
            return resp

        def _retry_response(resp: requests.Response) -> bool:
            return self._retry.is_retryable_status(resp.status_code)

        try:
            # A file-like upload body cannot be replayed
            if hasattr(payload, "read"):
                return _operation()
            return self._retry.execute(
                _operation,
                retry_result=_retry_response,
                discard=lambda resp: resp.close(),
            )
        except requests.exceptions.RequestException as e:
            raise RequestError(f"{method} {url} failed: {e}") from e

    def _raise_for_status(self, resp: requests.Response, limit: Optional[int] = None) -> None:
        if 200 <= resp.status_code < 300:
            return
        try:
            body = _read_body(resp, limit, self._logger)
        finally:
            resp.close()
        raise ResponseError.from_status(resp.status_code, body)

    def request_json(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Send a request and decode a single JSON object."""
        resp = self._send(method, path, body=body)
        self._raise_for_status(resp)
        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(
                f"error decoding response from {path}: {e}: {truncate_text(resp.text, 200)!r}"
            ) from e
        if not isinstance(data, dict):
            raise DecodeError(f"expected a JSON object from {path}, got {type(data).__name__}")
        _raise_for_error_payload(data, resp.status_code)
        return data

    def stream_json(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None
    ) -> Iterator[Dict[str, Any]]:
        """Send a request and yield every JSON value of the streamed body."""
        resp = self._send(method, path, body=body, stream=True)
        self._raise_for_status(resp, limit=ERROR_BODY_LIMIT)
        try:
            for value in iter_json_values(resp.iter_content(chunk_size=_CHUNK_SIZE)):
                yield _checked_value(value, resp.status_code)
        except requests.exceptions.RequestException as e:
            raise RequestError(f"{method} {path} stream interrupted: {e}") from e
        finally:
            resp.close()

    def status_stream(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        max_messages: int = MAX_STATUS_MESSAGES
    ) -> List[str]:
        """Collect the 'status' field of every streamed message.

        Reading stops once max_messages have been collected; reaching the
        limit is an error, since the remainder of the stream is discarded.
        """
        messages: List[str] = []
        stream = self.stream_json(method, path, body)
        try:
            for value in stream:
                messages.append(_status_text(value))
                if len(messages) >= max_messages:
                    break
        finally:
            stream.close()

        if len(messages) >= max_messages:
            raise StreamLimitError("streaming response exceeded maximum allowed messages")

        self._logger.debug(f"{path}: {len(messages)} status messages")
        return messages

    def head(self, path: str) -> int:
        """Send a HEAD request and return the status code."""
        resp = self._send("HEAD", path)
        try:
            return resp.status_code
        finally:
            resp.close()

    def post_bytes(self, path: str, data: Union[bytes, BinaryIO]) -> requests.Response:
        """Upload raw bytes as application/octet-stream."""
        return self._send(
            "POST",
            path,
            data=data,
            content_type="application/octet-stream",
        )


def _read_body(
    resp: requests.Response,
    limit: Optional[int] = None,
    logger: Optional[logging.Logger] = None
) -> str:
    """Read a response body for an error message, at most limit bytes when given."""
    if limit is None:
        return resp.text
    collected = b""
    try:
        for chunk in resp.iter_content(chunk_size=limit):
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            collected += chunk
            if len(collected) >= limit:
                break
    except requests.exceptions.RequestException as e:
        (logger or logging.getLogger(__name__)).debug(f"Error body read cut short: {e}")
    return collected[:limit].decode("utf-8", errors="replace")


def _raise_for_error_payload(value: Dict[str, Any], status_code: int) -> None:
    error = value.get("error")
    if error:
        raise ResponseError(str(error), status_code=status_code, body=json.dumps(value))


def _checked_value(value: Any, status_code: int) -> Dict[str, Any]:
    # null decodes as an empty message
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"error decoding stream: expected a JSON object, got {type(value).__name__}")
    _raise_for_error_payload(value, status_code)
    return value


def _status_text(value: Dict[str, Any]) -> str:
    status = value.get("status")
    if status is None:
        return ""
    if not isinstance(status, str):
        raise DecodeError(
            f"error decoding stream: status must be a string, got {type(status).__name__}"
        )
    return status

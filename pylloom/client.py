"""
Ollama client - one method per server endpoint.
Each call issues a single HTTP request and decodes the JSON (or streamed
JSON-lines) reply into domain models.
"""

from __future__ import annotations
import logging
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union
from urllib.parse import quote

import requests

from .domain.interfaces.transport import Transport
from .domain.models.chat import ChatRequest, ChatResponse
from .domain.models.embed import EmbedResult, build_embed_payload
from .domain.models.model import ModelInfoResult, ModelList, ModelProcessStatus, Version
from .domain.models.prompt import GenerateRequest, GenerateResult
from .domain.models.status import CreateModelRequest, StatusResult, StatusUpdate
from .errors import OllamaError, ResponseError, ValidationError
from .infrastructure.config.settings import ClientSettings
from .infrastructure.http.retry import RetryConfig
from .infrastructure.http.transport import DEFAULT_HOST, HttpTransport
from .utils import normalize_keep_alive


def _check_digest(digest: str) -> str:
    if not digest or "/" in digest or ".." in digest:
        raise ValidationError(f"invalid digest: {digest}")
    return quote(digest, safe=":@=+&$")


class OllamaClient:
    """Client for the model server HTTP API."""

    def __init__(
        self,
        base_url: str = DEFAULT_HOST,
        timeout: float = 300.0,
        *,
        connect_timeout: Optional[float] = None,
        api_key: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        keep_alive: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        session: Optional[requests.Session] = None,
        transport: Optional[Transport] = None,
        logger: Optional[logging.Logger] = None
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._keep_alive = normalize_keep_alive(keep_alive)

        if transport is None:
            all_headers = dict(headers or {})
            if api_key:
                all_headers.setdefault("Authorization", f"Bearer {api_key}")
            transport = HttpTransport(
                base_url,
                timeout=timeout,
                connect_timeout=connect_timeout,
                headers=all_headers,
                session=session,
                retry_config=retry_config,
                logger=self._logger,
            )
        self._transport = transport

        self._logger.debug(f"Ollama client initialized - Host: {base_url}")

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ClientSettings] = None,
        **kwargs: Any
    ) -> OllamaClient:
        """Build a client from ClientSettings (environment and .env by default)."""
        settings = settings or ClientSettings()
        return cls(
            settings.host,
            timeout=settings.timeout_s,
            connect_timeout=settings.connect_timeout_s,
            api_key=settings.api_key,
            keep_alive=settings.keep_alive,
            retry_config=settings.to_retry_config(),
            **kwargs,
        )

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> OllamaClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Status queries

    def version(self) -> Version:
        """Server version (GET /api/version)."""
        return Version.from_dict(self._transport.request_json("GET", "/api/version"))

    def list_models(self) -> ModelList:
        """Locally available models (GET /api/tags)."""
        return ModelList.from_dict(self._transport.request_json("GET", "/api/tags"))

    def process_status(self) -> ModelProcessStatus:
        """Models currently loaded in memory (GET /api/ps)."""
        return ModelProcessStatus.from_dict(self._transport.request_json("GET", "/api/ps"))

    def show(self, model: str, verbose: bool = False) -> ModelInfoResult:
        """Modelfile, template, parameters and details of a model (POST /api/show)."""
        if not model:
            raise ValidationError("model is required")
        data = self._transport.request_json(
            "POST",
            "/api/show",
            {"model": model, "verbose": verbose},
        )
        return ModelInfoResult.from_dict(data)

    def is_available(self) -> bool:
        """Check if the server answers; never raises for server or transport failures."""
        try:
            self.version()
            return True
        except OllamaError as e:
            self._logger.debug(f"Server not available: {e}")
            return False

    # Inference

    def generate(self, request: GenerateRequest) -> GenerateResult:
        """Single completion (POST /api/generate, non-streaming)."""
        payload = self._generate_payload(request, stream=False)
        data = self._transport.request_json("POST", "/api/generate", payload)
        return GenerateResult.from_dict(data)

    def generate_stream(self, request: GenerateRequest) -> Iterator[GenerateResult]:
        """Streamed completion; validation happens before the first chunk is requested."""
        payload = self._generate_payload(request, stream=True)
        return self._iter_chunks("/api/generate", payload, GenerateResult.from_dict)

    def chat(self, request: ChatRequest) -> ChatResponse:
        """Conversation turn (POST /api/chat, non-streaming)."""
        payload = self._chat_payload(request, stream=False)
        data = self._transport.request_json("POST", "/api/chat", payload)
        return ChatResponse.from_dict(data)

    def chat_stream(self, request: ChatRequest) -> Iterator[ChatResponse]:
        """Streamed conversation turn."""
        payload = self._chat_payload(request, stream=True)
        return self._iter_chunks("/api/chat", payload, ChatResponse.from_dict)

    def embed(
        self,
        model: str,
        input: Union[str, List[str]],
        options: Optional[Dict[str, Any]] = None,
        truncate: Optional[bool] = None,
        keep_alive: Optional[str] = None
    ) -> EmbedResult:
        """Embedding vectors for one or more inputs (POST /api/embed)."""
        payload = build_embed_payload(
            model,
            input,
            options=options,
            truncate=truncate,
            keep_alive=keep_alive or self._keep_alive,
        )
        return EmbedResult.from_dict(self._transport.request_json("POST", "/api/embed", payload))

    # Model lifecycle

    def pull(self, model: str, insecure: bool = False) -> StatusResult:
        """Download a model from the registry (POST /api/pull)."""
        return self._status("POST", "/api/pull", self._name_payload(model, insecure))

    def pull_stream(self, model: str, insecure: bool = False) -> Iterator[StatusUpdate]:
        """Download a model, yielding each progress update."""
        payload = self._name_payload(model, insecure)
        return self._iter_chunks("/api/pull", payload, StatusUpdate.from_dict)

    def push(self, model: str, insecure: bool = False) -> StatusResult:
        """Upload a model to the registry (POST /api/push)."""
        return self._status("POST", "/api/push", self._name_payload(model, insecure))

    def push_stream(self, model: str, insecure: bool = False) -> Iterator[StatusUpdate]:
        """Upload a model, yielding each progress update."""
        payload = self._name_payload(model, insecure)
        return self._iter_chunks("/api/push", payload, StatusUpdate.from_dict)

    def copy(self, source: str, destination: str) -> StatusResult:
        """Copy a model under a new name (POST /api/copy)."""
        if not source or not destination:
            raise ValidationError("source and destination are required")
        return self._status(
            "POST",
            "/api/copy",
            {"source": source, "destination": destination},
        )

    def delete(self, model: str) -> StatusResult:
        """Remove a model (DELETE /api/delete)."""
        if not model:
            raise ValidationError("model is required")
        return self._status("DELETE", "/api/delete", {"model": model})

    def create(self, request: CreateModelRequest) -> StatusResult:
        """Create a model (POST /api/create)."""
        request.validate()
        return self._status("POST", "/api/create", request.to_dict())

    # Blobs

    def blob_exists(self, digest: str) -> bool:
        """Whether the server already holds a blob (HEAD /api/blobs/<digest>)."""
        path = f"/api/blobs/{_check_digest(digest)}"
        status = self._transport.head(path)
        if status == 200:
            return True
        if status == 404:
            return False
        raise ResponseError(f"unexpected status code: {status}", status_code=status)

    def push_blob(self, digest: str, data: Union[bytes, BinaryIO]) -> None:
        """Upload a blob so it can be referenced by digest in create requests."""
        path = f"/api/blobs/{_check_digest(digest)}"
        resp = self._transport.post_bytes(path, data)
        try:
            if resp.status_code != 201:
                body = resp.text
                raise ResponseError(
                    f"failed to push blob: {body}",
                    status_code=resp.status_code,
                    body=body,
                )
        finally:
            resp.close()
        self._logger.debug(f"Pushed blob {digest}")

    # Helpers

    def _with_keep_alive(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self._keep_alive and "keep_alive" not in payload:
            payload["keep_alive"] = self._keep_alive
        return payload

    def _generate_payload(self, request: GenerateRequest, stream: bool) -> Dict[str, Any]:
        request.validate()
        payload = request.to_dict()
        payload["stream"] = stream
        return self._with_keep_alive(payload)

    def _chat_payload(self, request: ChatRequest, stream: bool) -> Dict[str, Any]:
        request.validate()
        payload = request.to_dict()
        payload["stream"] = stream
        return self._with_keep_alive(payload)

    @staticmethod
    def _name_payload(model: str, insecure: bool) -> Dict[str, Any]:
        if not model:
            raise ValidationError("model is required")
        payload: Dict[str, Any] = {"model": model}
        if insecure:
            payload["insecure"] = True
        return payload

    def _status(self, method: str, path: str, payload: Dict[str, Any]) -> StatusResult:
        messages = self._transport.status_stream(method, path, payload)
        return StatusResult(status_messages=messages)

    def _iter_chunks(self, path: str, payload: Dict[str, Any], decode) -> Iterator[Any]:
        for value in self._transport.stream_json("POST", path, payload):
            yield decode(value)

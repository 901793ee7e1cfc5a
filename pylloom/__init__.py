"""
pylloom - client library for the Ollama model server HTTP API.
"""

__version__ = "1.0.0"

from .client import OllamaClient
from .domain.models import (
    ChatRequest,
    ChatResponse,
    CreateModelRequest,
    EmbedResult,
    GenerateRequest,
    GenerateResult,
    Message,
    MessageRole,
    ModelDetails,
    ModelInfo,
    ModelInfoResult,
    ModelList,
    ModelProcessStatus,
    RunningModel,
    StatusResult,
    StatusUpdate,
    ToolCall,
    Version,
)
from .errors import (
    ConfigurationError,
    DecodeError,
    OllamaError,
    RequestError,
    ResponseError,
    StreamLimitError,
    ValidationError,
)
from .infrastructure.config.settings import ClientSettings
from .infrastructure.http.retry import RetryConfig
from .utils import blob_digest, setup_logging

__all__ = [
    "OllamaClient",
    "ClientSettings",
    "RetryConfig",
    "ChatRequest",
    "ChatResponse",
    "CreateModelRequest",
    "EmbedResult",
    "GenerateRequest",
    "GenerateResult",
    "Message",
    "MessageRole",
    "ModelDetails",
    "ModelInfo",
    "ModelInfoResult",
    "ModelList",
    "ModelProcessStatus",
    "RunningModel",
    "StatusResult",
    "StatusUpdate",
    "ToolCall",
    "Version",
    "ConfigurationError",
    "DecodeError",
    "OllamaError",
    "RequestError",
    "ResponseError",
    "StreamLimitError",
    "ValidationError",
    "blob_digest",
    "setup_logging",
]

"""Domain models package."""

from .chat import ChatRequest, ChatResponse, Message, MessageRole, ToolCall
from .embed import EmbedResult
from .model import (
    ModelDetails,
    ModelInfo,
    ModelInfoResult,
    ModelList,
    ModelProcessStatus,
    RunningModel,
    Version,
)
from .prompt import GenerateRequest, GenerateResult
from .status import CreateModelRequest, StatusResult, StatusUpdate

__all__ = [
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
]

"""
Chat domain models - messages, tool calls and the /api/chat payloads.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union
import json

from ...errors import ValidationError
from ...utils import drop_empty, parse_timestamp
from .prompt import validate_format


class MessageRole(Enum):
    """Message roles in conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class ToolCall:
    """A function call requested by the model."""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"function": {"name": self.name, "arguments": self.arguments}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ToolCall:
        """Create ToolCall from a response entry."""
        if "function" in data:
            func_data = data.get("function") or {}
            name = func_data.get("name", "")
            arguments = func_data.get("arguments", {})
        else:
            name = data.get("name", "")
            arguments = data.get("arguments", {})

        # Some servers send arguments as a JSON string
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments else {}
            except json.JSONDecodeError:
                arguments = {}

        return cls(name=name, arguments=arguments or {})


@dataclass
class Message:
    """Represents a single message in conversation."""
    role: MessageRole
    content: str = ""
    images: List[str] = field(default_factory=list)
    tool_calls: List[ToolCall] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for API calls."""
        data: Dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
        }
        if self.images:
            data["images"] = list(self.images)
        if self.tool_calls:
            data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Message:
        """Create Message from dictionary."""
        role_str = data.get("role", "user")
        try:
            role = MessageRole(role_str)
        except ValueError:
            role = MessageRole.USER

        return cls(
            role=role,
            content=data.get("content") or "",
            images=list(data.get("images") or []),
            tool_calls=[ToolCall.from_dict(c) for c in (data.get("tool_calls") or [])],
        )

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=content)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=MessageRole.SYSTEM, content=content)


@dataclass
class ChatRequest:
    """Payload for a conversation turn."""
    model: str
    messages: List[Union[Message, Dict[str, Any]]] = field(default_factory=list)
    format: Optional[Union[str, Dict[str, Any]]] = None
    options: Dict[str, Any] = field(default_factory=dict)
    stream: Optional[bool] = None
    keep_alive: Optional[str] = None
    tools: List[Dict[str, Any]] = field(default_factory=list)

    def validate(self) -> None:
        if not self.model:
            raise ValidationError("model is required")
        validate_format(self.format)
        for idx, message in enumerate(self.messages):
            if isinstance(message, Message):
                continue
            if not isinstance(message, Mapping) or "role" not in message:
                raise ValidationError(
                    f"invalid message at index {idx}; expected Message or mapping with a role"
                )

    def to_dict(self) -> Dict[str, Any]:
        messages = [
            m.to_dict() if isinstance(m, Message) else dict(m)
            for m in self.messages
        ]
        payload = drop_empty({
            "model": self.model,
            "format": self.format,
            "options": dict(self.options),
            "stream": self.stream,
            "keep_alive": self.keep_alive,
            "tools": list(self.tools),
        })
        # The server requires the messages key even for an empty history
        payload["messages"] = messages
        return payload


@dataclass
class ChatResponse:
    """A chat reply, or one chunk of a streamed reply."""
    model: str = ""
    created_at: Optional[datetime] = None
    message: Message = field(default_factory=lambda: Message(role=MessageRole.ASSISTANT))
    done: bool = False
    done_reason: str = ""
    total_duration: int = 0
    load_duration: int = 0
    prompt_eval_count: int = 0
    prompt_eval_duration: int = 0
    eval_count: int = 0
    eval_duration: int = 0

    @property
    def content(self) -> str:
        return self.message.content

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ChatResponse:
        raw_message = data.get("message")
        if isinstance(raw_message, Mapping):
            message = Message.from_dict({"role": "assistant", **raw_message})
        else:
            message = Message(role=MessageRole.ASSISTANT)

        return cls(
            model=data.get("model", ""),
            created_at=parse_timestamp(data.get("created_at")),
            message=message,
            done=bool(data.get("done", False)),
            done_reason=data.get("done_reason") or "",
            total_duration=data.get("total_duration") or 0,
            load_duration=data.get("load_duration") or 0,
            prompt_eval_count=data.get("prompt_eval_count") or 0,
            prompt_eval_duration=data.get("prompt_eval_duration") or 0,
            eval_count=data.get("eval_count") or 0,
            eval_duration=data.get("eval_duration") or 0,
        )

"""
Status models for the lifecycle endpoints (pull, push, copy, delete, create)
and the model creation request.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ...errors import ValidationError
from ...utils import drop_empty
from .chat import Message


@dataclass
class StatusUpdate:
    """One progress line of a streamed lifecycle operation."""
    status: str = ""
    digest: str = ""
    total: int = 0
    completed: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StatusUpdate:
        return cls(
            status=data.get("status") or "",
            digest=data.get("digest") or "",
            total=data.get("total") or 0,
            completed=data.get("completed") or 0,
        )


@dataclass
class StatusResult:
    """Every status message returned while the operation ran."""
    status_messages: List[str] = field(default_factory=list)

    @property
    def last_status(self) -> str:
        return self.status_messages[-1] if self.status_messages else ""


@dataclass
class CreateModelRequest:
    """Payload for creating a model from a base model, blobs or a template."""
    model: str
    from_: str = ""
    files: Dict[str, str] = field(default_factory=dict)
    adapters: Dict[str, str] = field(default_factory=dict)
    template: str = ""
    license: Optional[Union[str, List[str]]] = None
    system: str = ""
    parameters: Dict[str, Any] = field(default_factory=dict)
    messages: List[Union[Message, Dict[str, Any]]] = field(default_factory=list)
    stream: Optional[bool] = None
    quantize: str = ""

    def validate(self) -> None:
        if not self.model:
            raise ValidationError("model is required")

    def to_dict(self) -> Dict[str, Any]:
        return drop_empty({
            "model": self.model,
            "from": self.from_,
            "files": dict(self.files),
            "adapters": dict(self.adapters),
            "template": self.template,
            "license": self.license,
            "system": self.system,
            "parameters": dict(self.parameters),
            "messages": [
                m.to_dict() if isinstance(m, Message) else dict(m)
                for m in self.messages
            ],
            "stream": self.stream,
            "quantize": self.quantize,
        })

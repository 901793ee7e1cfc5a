"""
Generate domain models - request payload and result of /api/generate.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ...errors import ValidationError
from ...utils import drop_empty, parse_timestamp


def validate_format(value: Any) -> None:
    """A response format is either a string ('json') or a JSON schema mapping."""
    if value is None:
        return
    if not isinstance(value, (str, dict)):
        raise ValidationError("invalid type for format field; must be str or dict")


@dataclass
class GenerateRequest:
    """Payload for a single-prompt completion."""
    model: str
    prompt: str = ""
    suffix: str = ""
    system: str = ""
    template: str = ""
    images: List[str] = field(default_factory=list)
    format: Optional[Union[str, Dict[str, Any]]] = None
    options: Dict[str, Any] = field(default_factory=dict)
    stream: Optional[bool] = None
    raw: Optional[bool] = None
    keep_alive: Optional[str] = None
    context: Optional[List[int]] = None

    def validate(self) -> None:
        """Check field types the server cannot be trusted to reject cleanly."""
        if not self.model:
            raise ValidationError("model is required")

        validate_format(self.format)

        if self.context is not None:
            if not isinstance(self.context, (list, tuple)):
                raise ValidationError(
                    "invalid type for context field; expected a list of ints"
                )
            for idx, item in enumerate(self.context):
                # bool is an int subclass but never a valid token id
                if isinstance(item, bool) or not isinstance(item, int):
                    raise ValidationError(
                        f"invalid type for context at index {idx}; expected int"
                    )

    def to_dict(self) -> Dict[str, Any]:
        return drop_empty({
            "model": self.model,
            "prompt": self.prompt,
            "suffix": self.suffix,
            "system": self.system,
            "template": self.template,
            "images": list(self.images),
            "format": self.format,
            "options": dict(self.options),
            "stream": self.stream,
            "raw": self.raw,
            "keep_alive": self.keep_alive,
            "context": list(self.context) if self.context is not None else None,
        })


@dataclass
class GenerateResult:
    """A completion, or one chunk of a streamed completion."""
    model: str = ""
    response: str = ""
    created_at: Optional[datetime] = None
    context: Optional[List[int]] = None
    done: bool = False
    done_reason: str = ""
    total_duration: int = 0
    load_duration: int = 0
    prompt_eval_count: int = 0
    prompt_eval_duration: int = 0
    eval_count: int = 0
    eval_duration: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GenerateResult:
        return cls(
            model=data.get("model", ""),
            response=data.get("response", ""),
            created_at=parse_timestamp(data.get("created_at")),
            context=data.get("context"),
            done=bool(data.get("done", False)),
            done_reason=data.get("done_reason") or "",
            total_duration=data.get("total_duration") or 0,
            load_duration=data.get("load_duration") or 0,
            prompt_eval_count=data.get("prompt_eval_count") or 0,
            prompt_eval_duration=data.get("prompt_eval_duration") or 0,
            eval_count=data.get("eval_count") or 0,
            eval_duration=data.get("eval_duration") or 0,
        )

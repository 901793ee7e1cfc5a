"""
Embedding domain models.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ...errors import ValidationError
from ...utils import drop_empty, parse_timestamp


def build_embed_payload(
    model: str,
    input: Union[str, List[str]],
    options: Optional[Dict[str, Any]] = None,
    truncate: Optional[bool] = None,
    keep_alive: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate embed arguments and return the request body."""
    if not model:
        raise ValidationError("model is required")
    if isinstance(input, (list, tuple)):
        if not all(isinstance(item, str) for item in input):
            raise ValidationError("invalid type for input; expected str or list of str")
        input = list(input)
    elif not isinstance(input, str):
        raise ValidationError("invalid type for input; expected str or list of str")

    payload = drop_empty({
        "model": model,
        "options": dict(options or {}),
        "truncate": truncate,
        "keep_alive": keep_alive,
    })
    payload["input"] = input
    return payload


@dataclass
class EmbedResult:
    model: str = ""
    embeddings: List[List[float]] = field(default_factory=list)
    created_at: Optional[datetime] = None
    total_duration: int = 0
    load_duration: int = 0
    prompt_eval_count: int = 0

    @property
    def embedding(self) -> List[float]:
        """First vector, for single-input calls."""
        return self.embeddings[0] if self.embeddings else []

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EmbedResult:
        embeddings = data.get("embeddings")
        if embeddings is None:
            # Legacy single-vector shape
            single = data.get("embedding")
            embeddings = [single] if single else []
        return cls(
            model=data.get("model") or "",
            embeddings=[list(vec) for vec in embeddings],
            created_at=parse_timestamp(data.get("created_at")),
            total_duration=data.get("total_duration") or 0,
            load_duration=data.get("load_duration") or 0,
            prompt_eval_count=data.get("prompt_eval_count") or 0,
        )

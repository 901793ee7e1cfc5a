"""
Model information domain models - tags, running models, show and version.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...utils import parse_timestamp


@dataclass
class ModelDetails:
    """Format, family, size and quantization of a model."""
    format: str = ""
    family: str = ""
    families: List[str] = field(default_factory=list)
    parameter_size: str = ""
    quantization_level: str = ""
    parent_model: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> ModelDetails:
        data = data or {}
        return cls(
            format=data.get("format") or "",
            family=data.get("family") or "",
            families=list(data.get("families") or []),
            parameter_size=data.get("parameter_size") or "",
            quantization_level=data.get("quantization_level") or "",
            parent_model=data.get("parent_model") or "",
        )


@dataclass
class ModelInfo:
    """A locally available model, as listed by /api/tags."""
    name: str
    model: str = ""
    modified_at: Optional[datetime] = None
    size: int = 0
    digest: str = ""
    details: ModelDetails = field(default_factory=ModelDetails)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ModelInfo:
        return cls(
            name=data.get("name", ""),
            model=data.get("model") or "",
            modified_at=parse_timestamp(data.get("modified_at")),
            size=data.get("size") or 0,
            digest=data.get("digest") or "",
            details=ModelDetails.from_dict(data.get("details")),
        )


@dataclass
class ModelList:
    models: List[ModelInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ModelList:
        return cls(models=[ModelInfo.from_dict(m) for m in (data.get("models") or [])])

    def names(self) -> List[str]:
        return [m.name for m in self.models]


@dataclass
class RunningModel:
    """A model currently loaded in memory, as reported by /api/ps."""
    name: str
    model: str = ""
    size: int = 0
    digest: str = ""
    details: ModelDetails = field(default_factory=ModelDetails)
    expires_at: Optional[datetime] = None
    size_vram: int = 0

    @classmethod
    def from_value(cls, data: Any) -> RunningModel:
        # Older servers report bare model names
        if isinstance(data, str):
            return cls(name=data)
        return cls(
            name=data.get("name", ""),
            model=data.get("model") or "",
            size=data.get("size") or 0,
            digest=data.get("digest") or "",
            details=ModelDetails.from_dict(data.get("details")),
            expires_at=parse_timestamp(data.get("expires_at")),
            size_vram=data.get("size_vram") or 0,
        )


@dataclass
class ModelProcessStatus:
    models: List[RunningModel] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ModelProcessStatus:
        return cls(models=[RunningModel.from_value(m) for m in (data.get("models") or [])])

    def names(self) -> List[str]:
        return [m.name for m in self.models]


@dataclass
class ModelInfoResult:
    """Response of /api/show."""
    modelfile: str = ""
    parameters: str = ""
    template: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
    model_info: Dict[str, Any] = field(default_factory=dict)
    license: str = ""
    system: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ModelInfoResult:
        return cls(
            modelfile=data.get("modelfile") or "",
            parameters=data.get("parameters") or "",
            template=data.get("template") or "",
            details=dict(data.get("details") or {}),
            model_info=dict(data.get("model_info") or {}),
            license=data.get("license") or "",
            system=data.get("system") or "",
        )


@dataclass
class Version:
    version: str = ""
    build_time: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Version:
        return cls(
            version=data.get("version") or "",
            build_time=data.get("build_time") or "",
        )

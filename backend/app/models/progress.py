"""Progress events published to the per-session channel."""

from enum import Enum
from typing import Any, Optional

from pydantic import Field

from app.models.base import CamelModel


class ProgressType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    PROGRESS = "progress"
    CACHE_HIT = "cache-hit"
    CACHE_MISS = "cache-miss"


class ProgressEvent(CamelModel):
    type: ProgressType
    message: str
    timestamp: int = Field(..., description="Epoch milliseconds")
    phase: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

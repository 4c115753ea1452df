"""Focus session history models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TaskKind(StrEnum):
    """Where a focus task came from."""

    SCHEDULED = "scheduled"
    CUSTOM = "custom"
    VIDEO = "video"


class FocusTask(BaseModel):
    """The resolved task a focus timer runs against."""

    title: str
    duration_min: int
    type: str
    kind: TaskKind
    block_index: int | None = None
    original_duration: int | None = None

    @property
    def is_ad_hoc(self) -> bool:
        return self.kind != TaskKind.SCHEDULED


class ActiveVideo(BaseModel):
    """Video handed to the focus view (e.g. from the rewatch action)."""

    id: str | None = None
    url: str | None = None
    title: str | None = None


class Session(BaseModel):
    """Historical record of one completed focus period."""

    id: str | None = None
    task: str
    duration: int  # minutes
    breaches: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)
    type: str = ""
    video_id: str | None = None
    video_url: str | None = None

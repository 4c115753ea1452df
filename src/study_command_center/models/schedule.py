"""Daily plan models."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class BlockStatus(StrEnum):
    """Study block lifecycle states."""

    PENDING = "pending"
    COMPLETED = "completed"


class StudyBlock(BaseModel):
    """One scheduled unit of study time."""

    title: str
    duration_min: int
    type: str = "Deep Work"
    status: BlockStatus = BlockStatus.PENDING
    completed_min: int = 0

    @property
    def progress_percent(self) -> int:
        """Displayed progress; never exceeds 100 even when overrun."""
        if self.duration_min <= 0:
            return 100
        return min(100, round(self.completed_min * 100 / self.duration_min))


class DailySchedule(BaseModel):
    """A day's ordered plan, stored under its ISO date key."""

    date: datetime = Field(default_factory=datetime.now)
    blocks: list[StudyBlock] = Field(default_factory=list)
    total_minutes_done: int = 0
    target_minutes: int = 0

    @property
    def progress_percent(self) -> int:
        if self.target_minutes <= 0:
            return 0
        return min(100, round(self.total_minutes_done * 100 / self.target_minutes))

    @property
    def pending_blocks(self) -> list[StudyBlock]:
        return [b for b in self.blocks if b.status == BlockStatus.PENDING]


def date_key(day: date | None = None) -> str:
    """Return the document key for a calendar day (``YYYY-MM-DD``)."""
    return (day or date.today()).isoformat()

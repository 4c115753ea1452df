"""User profile model for discipline and study-time tracking."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    user_id: str
    name: str = "Aspirant"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    discipline_score: int = 85  # unclamped, may leave 0-100
    weak_subjects: list[str] = Field(default_factory=list)
    total_hours_studied: float = 0.0
    streak: int = 0

"""Study material models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class MaterialType(StrEnum):
    TEXT = "text"
    PDF = "pdf"


class MaterialCreate(BaseModel):
    """Payload for adding material to the library."""

    title: str = ""
    content: str = ""
    type: MaterialType = MaterialType.TEXT
    instruction: str = ""


class Material(MaterialCreate):
    id: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
    status: str = "active"

"""Vocabulary models."""

from pydantic import BaseModel, Field


class VocabEntry(BaseModel):
    word: str = Field(min_length=1)
    hindi: str = ""
    type: str = ""
    meaning: str = ""

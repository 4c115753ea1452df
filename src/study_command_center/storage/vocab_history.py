"""Vocabulary history persistence (device-local, never synced)."""

import fcntl
import json
import os
import tempfile
from pathlib import Path

from study_command_center.config import get_settings
from study_command_center.models.vocab import VocabEntry
from study_command_center.storage.documents import validate_segment


def get_history_path(user_id: str) -> Path:
    validate_segment(user_id, "user id")
    return get_settings().local_dir / f"vocab_history_{user_id}.json"


def load_history(user_id: str) -> list[VocabEntry]:
    path = get_history_path(user_id)
    if not path.exists():
        return []
    with open(path, encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        data = json.load(f)
        fcntl.flock(f, fcntl.LOCK_UN)
    return [VocabEntry(**item) for item in data]


def save_history(user_id: str, entries: list[VocabEntry]) -> None:
    path = get_history_path(user_id)
    with tempfile.NamedTemporaryFile(
        "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
    ) as tmp:
        json.dump([e.model_dump() for e in entries], tmp, ensure_ascii=False)
    os.replace(tmp.name, path)

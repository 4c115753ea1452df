"""User profile persistence on top of the document store."""

from datetime import datetime

import structlog

from study_command_center.models.profile import UserProfile
from study_command_center.storage.documents import DocumentStore, Increment

logger = structlog.get_logger()

PROFILE_COLLECTION = "profile"
PROFILE_DOC = "main"


def load_profile(
    store: DocumentStore,
    user_id: str,
    default_score: int = 85,
    default_weak_subjects: list[str] | None = None,
) -> UserProfile:
    """Return the user's profile, creating it with defaults on first access."""
    data = store.get(user_id, PROFILE_COLLECTION, PROFILE_DOC)
    if data is not None:
        data.pop("id", None)
        return UserProfile(user_id=user_id, **{k: v for k, v in data.items() if k != "user_id"})

    profile = UserProfile(
        user_id=user_id,
        discipline_score=default_score,
        weak_subjects=list(default_weak_subjects or []),
    )
    store.set(user_id, PROFILE_COLLECTION, PROFILE_DOC, profile.model_dump(mode="json"))
    logger.info("profile_created", user_id=user_id)
    return profile


def _update(store: DocumentStore, user_id: str, fields: dict) -> None:
    fields["updated_at"] = datetime.now().isoformat()
    try:
        store.update(user_id, PROFILE_COLLECTION, PROFILE_DOC, fields)
    except KeyError:
        load_profile(store, user_id)
        store.update(user_id, PROFILE_COLLECTION, PROFILE_DOC, fields)


def adjust_discipline(store: DocumentStore, user_id: str, delta: int) -> None:
    """Add ``delta`` to the discipline score. No floor or ceiling is applied."""
    if delta == 0:
        return
    _update(store, user_id, {"discipline_score": Increment(delta)})
    logger.info("discipline_adjusted", user_id=user_id, delta=delta)


def add_study_hours(store: DocumentStore, user_id: str, hours: float) -> None:
    _update(store, user_id, {"total_hours_studied": Increment(hours)})


def set_weak_subjects(store: DocumentStore, user_id: str, subjects: list[str]) -> UserProfile:
    cleaned = [s.strip() for s in subjects if s and s.strip()]
    _update(store, user_id, {"weak_subjects": cleaned})
    return load_profile(store, user_id)

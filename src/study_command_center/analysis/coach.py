"""Performance analysis and focus-session history."""

import structlog

from study_command_center.focus.session import SESSION_COLLECTION
from study_command_center.focus.video import thumbnail_url
from study_command_center.generation.client import GenerationClient
from study_command_center.generation.prompts import analysis_system_prompt
from study_command_center.models.profile import UserProfile
from study_command_center.models.session import ActiveVideo, Session
from study_command_center.storage.documents import DocumentStore

logger = structlog.get_logger()

DISCIPLINE_TARGET = 95


class Coach:
    """Reads session history and asks the generator for a critique.

    Args:
        store: Document store.
        generator: Content generation client.
        target_hours: Daily study target quoted to the analyst.
        recent_limit: Sessions shown in the history list.
    """

    def __init__(
        self,
        store: DocumentStore,
        generator: GenerationClient,
        target_hours: int = 7,
        recent_limit: int = 10,
    ):
        self.store = store
        self.generator = generator
        self.target_hours = target_hours
        self.recent_limit = recent_limit

    async def run_deep_analysis(self, profile: UserProfile) -> str:
        """Free-text analysis; fallback sentences are returned as-is."""
        context = {
            "currentDiscipline": profile.discipline_score,
            "targetHours": self.target_hours,
            "weakAreas": profile.weak_subjects,
        }
        result = await self.generator.generate(
            "Analyze my performance.", analysis_system_prompt(context)
        )
        logger.info("analysis_generated", user_id=profile.user_id)
        return result

    def recent_sessions(self, user_id: str) -> list[Session]:
        docs = self.store.query(
            user_id, SESSION_COLLECTION, order_by="timestamp", descending=True, limit=self.recent_limit
        )
        return [Session(**d) for d in docs]

    def delete_session(self, user_id: str, session_id: str) -> bool:
        deleted = self.store.delete(user_id, SESSION_COLLECTION, session_id)
        if deleted:
            logger.info("session_deleted", user_id=user_id, session_id=session_id)
        return deleted

    def rewatch(self, user_id: str, session_id: str) -> ActiveVideo | None:
        """Video hand-off for replaying a recorded session; None if it had none."""
        data = self.store.get(user_id, SESSION_COLLECTION, session_id)
        if data is None:
            return None
        session = Session(**data)
        if not session.video_id:
            return None
        return ActiveVideo(id=session.video_id, url=session.video_url, title=session.task)


def stats(profile: UserProfile) -> dict:
    return {
        "discipline_score": profile.discipline_score,
        "discipline_target": DISCIPLINE_TARGET,
        "total_hours": round(profile.total_hours_studied, 1),
    }


def session_card(session: Session) -> dict:
    data = session.model_dump(mode="json")
    data["thumbnail_url"] = thumbnail_url(session.video_id)
    return data

"""Focus session controller and completion side effects."""

from collections.abc import Callable

import structlog
from pydantic import BaseModel

from study_command_center.focus.timer import FocusTimer, InvalidTransition, TimerOutcome, TimerState
from study_command_center.focus.video import extract_video_id
from study_command_center.models.schedule import DailySchedule
from study_command_center.models.session import ActiveVideo, FocusTask, Session
from study_command_center.monitor.visibility import VisibilityMonitor
from study_command_center.planning.schedule import record_progress
from study_command_center.storage.documents import DocumentStore
from study_command_center.storage.profiles import add_study_hours, adjust_discipline

logger = structlog.get_logger()

SESSION_COLLECTION = "sessions"
INVALID_LINK = "Invalid YouTube Link. Please paste a valid URL."
EARLY_EXIT_WARNING = "DISCIPLINE PENALTY: Session abandoned early! (-{points} Points)"


class DisciplinePolicy(BaseModel):
    """Score changes applied around focus sessions."""

    breach_penalty: int = 2
    early_exit_penalty: int = 5
    early_exit_grace_seconds: int = 60
    clean_session_reward: int = 1

    @classmethod
    def from_settings(cls, settings) -> "DisciplinePolicy":
        return cls(
            breach_penalty=settings.focus_breach_penalty,
            early_exit_penalty=settings.early_exit_penalty,
            early_exit_grace_seconds=settings.early_exit_grace_seconds,
            clean_session_reward=settings.clean_session_reward,
        )

    def completion_delta(self, time_left: int, breaches: int) -> int:
        """Penalty for leaving with more than the grace period left, else a
        reward for a breach-free session. Breaches do not soften the penalty."""
        if time_left > self.early_exit_grace_seconds:
            return -self.early_exit_penalty
        if breaches == 0:
            return self.clean_session_reward
        return 0


class CompletionReport(BaseModel):
    session: Session
    spent_minutes: int
    discipline_delta: int
    warning: str | None = None
    schedule: DailySchedule | None = None


class FocusCompletion:
    """Persists everything a finished focus session changes."""

    def __init__(self, store: DocumentStore, user_id: str, policy: DisciplinePolicy):
        self.store = store
        self.user_id = user_id
        self.policy = policy

    def apply(
        self,
        task: FocusTask,
        outcome: TimerOutcome,
        breaches: int,
        video_id: str | None = None,
        video_url: str | None = None,
    ) -> CompletionReport:
        spent = outcome.spent_minutes
        delta = self.policy.completion_delta(outcome.time_left, breaches)

        # Counters are only touched once the session record is stored.
        session = Session(
            task=task.title,
            duration=spent,
            breaches=breaches,
            type=task.type,
            video_id=video_id or None,
            video_url=video_url or None,
        )
        session.id = self.store.add(
            self.user_id,
            SESSION_COLLECTION,
            session.model_dump(mode="json", exclude={"id"}),
        )

        add_study_hours(self.store, self.user_id, spent / 60)
        adjust_discipline(self.store, self.user_id, delta)
        warning = None
        if delta < 0:
            warning = EARLY_EXIT_WARNING.format(points=self.policy.early_exit_penalty)

        block_index = None if task.is_ad_hoc else task.block_index
        schedule = record_progress(self.store, self.user_id, spent, block_index=block_index)
        logger.info(
            "focus_session_saved",
            user_id=self.user_id,
            task=task.title,
            spent_minutes=spent,
            breaches=breaches,
            discipline_delta=delta,
        )
        return CompletionReport(
            session=session,
            spent_minutes=spent,
            discipline_delta=delta,
            warning=warning,
            schedule=schedule,
        )


class FocusSessionController:
    """One focus session: timer, breach monitor, pasted link and persistence.

    Args:
        store: Document store.
        user_id: Owner of the session.
        task: Resolved task to time.
        policy: Discipline scoring rules.
        video: Video handed over by navigation, if any.
        on_complete: Called with the report once side effects are stored.
    """

    def __init__(
        self,
        store: DocumentStore,
        user_id: str,
        task: FocusTask,
        policy: DisciplinePolicy | None = None,
        video: ActiveVideo | None = None,
        on_complete: Callable[[CompletionReport], None] | None = None,
    ):
        self.store = store
        self.user_id = user_id
        self.task = task
        self.policy = policy or DisciplinePolicy()
        self.video_url = (video.url or "") if video else ""
        self.video_id = video.id if video else None
        self.report: CompletionReport | None = None
        self._on_complete = on_complete
        self._completion = FocusCompletion(store, user_id, self.policy)

        self.timer = FocusTimer(task.duration_min * 60)
        self.timer.on("completed", self._on_completed)
        self.monitor = VisibilityMonitor(
            penalty=self.policy.breach_penalty,
            is_armed=lambda: self.timer.is_running,
            apply_penalty=lambda delta: adjust_discipline(store, user_id, delta),
            on_breach=self._on_breach,
        )

    @property
    def breaches(self) -> int:
        return self.monitor.breaches

    def set_link(self, url: str) -> None:
        self.video_url = url or ""

    def _activate_link(self) -> None:
        if not self.video_url.strip():
            return
        video_id = extract_video_id(self.video_url)
        if not video_id:
            raise ValueError(INVALID_LINK)
        self.video_id = video_id

    def start(self) -> None:
        """Validate any pasted link, then start the countdown."""
        self._activate_link()
        self.timer.start()

    def pause(self) -> None:
        self.timer.pause()

    def resume(self) -> None:
        self._activate_link()
        self.timer.resume()

    def toggle(self) -> None:
        if self.timer.state == TimerState.RUNNING:
            self.pause()
        elif self.timer.state == TimerState.PAUSED:
            self.resume()
        else:
            self.start()

    def tick(self) -> int:
        return self.timer.tick()

    def finish(self) -> CompletionReport:
        """Finish and save early; routed through the normal completion path."""
        self.timer.finish()
        if self.report is None:
            raise InvalidTransition("Session finished without a completion report.")
        return self.report

    def observe_visibility(self, hidden: bool) -> bool:
        return self.monitor.observe(hidden)

    def set_video_duration(self, seconds: float) -> None:
        """Adopt the media's real length once the player reports it."""
        if seconds > 0:
            self.timer.set_duration(int(seconds))

    def _on_breach(self, breaches: int) -> None:
        self.timer.pause(reason="breach")

    def _on_completed(self, outcome: TimerOutcome) -> None:
        video_id = self.video_id or extract_video_id(self.video_url)
        self.report = self._completion.apply(
            self.task,
            outcome,
            self.breaches,
            video_id=video_id,
            video_url=self.video_url,
        )
        if self._on_complete is not None:
            self._on_complete(self.report)

    def snapshot(self) -> dict:
        return {
            "task": self.task.model_dump(mode="json"),
            "timer": self.timer.snapshot(),
            "breaches": self.breaches,
            "video_id": self.video_id,
        }

"""Daily plan generation and progress accounting."""

from datetime import date, datetime
from typing import Annotated

import structlog
from pydantic import BaseModel, Field, TypeAdapter

from study_command_center.generation.client import GenerationClient
from study_command_center.generation.extractor import parse_generated
from study_command_center.generation.prompts import plan_system_prompt, plan_user_prompt
from study_command_center.models.schedule import BlockStatus, DailySchedule, StudyBlock, date_key
from study_command_center.storage.documents import DocumentStore

logger = structlog.get_logger()

SCHEDULE_COLLECTION = "schedules"
DEFAULT_FOCUS_AREA = "General Awareness"
PLAN_FAILED = "AI Planning Failed. Try again."
PLAN_INVALID_JSON = "AI returned invalid JSON. Please try again."


class PlanBlockSpec(BaseModel):
    """One element of the generated plan array."""

    title: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    type: str = "Deep Work"


_PLAN_ADAPTER = TypeAdapter(Annotated[list[PlanBlockSpec], Field(min_length=1)])


def get_schedule(store: DocumentStore, user_id: str, key: str | None = None) -> DailySchedule | None:
    data = store.get(user_id, SCHEDULE_COLLECTION, key or date_key())
    if data is None:
        return None
    data.pop("id", None)
    return DailySchedule(**data)


def build_schedule(specs: list[PlanBlockSpec], created: datetime | None = None) -> DailySchedule:
    blocks = [StudyBlock(title=s.title, duration_min=s.duration_min, type=s.type) for s in specs]
    return DailySchedule(
        date=created or datetime.now(),
        blocks=blocks,
        total_minutes_done=0,
        target_minutes=sum(b.duration_min for b in blocks),
    )


def record_progress(
    store: DocumentStore,
    user_id: str,
    minutes: int,
    block_index: int | None = None,
    key: str | None = None,
) -> DailySchedule | None:
    """Add studied minutes to the day and, optionally, to one block.

    Runs as a single locked transaction touching only the addressed block, so
    two sessions completing at once cannot overwrite each other. A block turns
    completed only once its accumulated minutes reach its duration. Returns
    None when no schedule exists for the day.
    """

    def apply(data: dict | None) -> dict | None:
        if data is None:
            return None
        data["total_minutes_done"] = int(data.get("total_minutes_done") or 0) + minutes
        blocks = data.get("blocks") or []
        if block_index is not None and 0 <= block_index < len(blocks):
            block = blocks[block_index]
            done = int(block.get("completed_min") or 0) + minutes
            block["completed_min"] = done
            if done >= int(block.get("duration_min") or 0):
                block["status"] = BlockStatus.COMPLETED.value
        return data

    updated = store.transact(user_id, SCHEDULE_COLLECTION, key or date_key(), apply)
    if updated is None:
        return None
    updated.pop("id", None)
    return DailySchedule(**updated)


class ScheduleService:
    """Creates and reads each day's plan.

    Args:
        store: Document store.
        generator: Content generation client.
        target_hours: Approximate length of a generated day.
    """

    def __init__(self, store: DocumentStore, generator: GenerationClient, target_hours: int = 7):
        self.store = store
        self.generator = generator
        self.target_hours = target_hours

    def today(self, user_id: str) -> DailySchedule | None:
        return get_schedule(self.store, user_id)

    async def generate_plan(
        self,
        user_id: str,
        weak_areas: list[str] | None = None,
        day: date | None = None,
    ) -> DailySchedule:
        """Generate and persist the plan for ``day`` (default today).

        Raises:
            GenerationFailed: The response held no valid plan; any existing
                schedule is left untouched.
        """
        focus = ", ".join(a for a in (weak_areas or []) if a) or DEFAULT_FOCUS_AREA
        raw = await self.generator.generate(
            plan_user_prompt(day),
            plan_system_prompt(focus, self.target_hours),
        )
        specs = parse_generated(raw, "array", _PLAN_ADAPTER, PLAN_FAILED, PLAN_INVALID_JSON)
        schedule = build_schedule(specs)
        self.store.set(
            user_id,
            SCHEDULE_COLLECTION,
            date_key(day),
            schedule.model_dump(mode="json"),
        )
        logger.info(
            "plan_generated",
            user_id=user_id,
            blocks=len(schedule.blocks),
            target_minutes=schedule.target_minutes,
        )
        return schedule

"""Resolution of the task a focus session runs against."""

from pydantic import BaseModel, Field

from study_command_center.models.schedule import DailySchedule
from study_command_center.models.session import ActiveVideo, FocusTask, TaskKind

MIN_BLOCK_SESSION_MIN = 5
DEFAULT_VIDEO_MIN = 30
DEFAULT_CUSTOM_MIN = 30


class CustomTaskInput(BaseModel):
    title: str = ""
    duration: int = Field(default=DEFAULT_CUSTOM_MIN, ge=1)


def is_custom_mode(
    schedule: DailySchedule | None,
    block_index: int | None,
    video: ActiveVideo | None,
) -> bool:
    """Custom mode applies when nothing else selects the task.

    Without a schedule (or with an empty one) and no video, custom mode is
    forced even if a block index was supplied.
    """
    if video is not None:
        return False
    if schedule is None or not schedule.blocks:
        return True
    return block_index is None


def resolve_task(
    schedule: DailySchedule | None,
    block_index: int | None = None,
    custom: CustomTaskInput | None = None,
    video: ActiveVideo | None = None,
) -> FocusTask | None:
    """Derive the current task; a video wins over custom, custom over a block.

    Returns None when a block index points at no block.
    """
    if video is not None:
        return FocusTask(
            title=video.title or "Video Revision",
            duration_min=DEFAULT_VIDEO_MIN,
            type="Revision",
            kind=TaskKind.VIDEO,
        )
    if is_custom_mode(schedule, block_index, video):
        custom = custom or CustomTaskInput()
        return FocusTask(
            title=custom.title.strip() or "Self Study Session",
            duration_min=custom.duration,
            type="Custom",
            kind=TaskKind.CUSTOM,
        )
    if block_index is None or not 0 <= block_index < len(schedule.blocks):
        return None
    block = schedule.blocks[block_index]
    return FocusTask(
        title=block.title,
        duration_min=max(MIN_BLOCK_SESSION_MIN, block.duration_min - block.completed_min),
        type=block.type,
        kind=TaskKind.SCHEDULED,
        block_index=block_index,
        original_duration=block.duration_min,
    )

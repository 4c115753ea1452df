"""REST API routes for profiles, plans, library, history and vocabulary."""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from study_command_center.analysis.coach import Coach, session_card, stats
from study_command_center.analysis.quotes import daily_quote
from study_command_center.api.deps import get_generator, get_store
from study_command_center.config import get_settings
from study_command_center.exam.engine import list_results
from study_command_center.exam.generator import generate_material_test
from study_command_center.focus.video import extract_video_id, thumbnail_url
from study_command_center.generation.extractor import GenerationFailed
from study_command_center.library.materials import (
    add_material,
    file_placeholder,
    get_material,
    list_materials,
)
from study_command_center.models.material import MaterialCreate
from study_command_center.notifications.push import notification_from_push
from study_command_center.planning.schedule import ScheduleService
from study_command_center.storage.documents import validate_segment
from study_command_center.storage.profiles import load_profile, set_weak_subjects
from study_command_center.vocab.builder import VocabularyBuilder

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class WeakSubjectsUpdate(BaseModel):
    subjects: list[str]


class PlanRequest(BaseModel):
    weak_areas: list[str] | None = None


class FileUpload(BaseModel):
    filename: str
    instruction: str = ""


@contextmanager
def service_errors() -> Iterator[None]:
    """Translate service exceptions into HTTP errors."""
    try:
        yield
    except GenerationFailed as e:
        logger.warning("generation_failed", message=e.message, detail=e.detail)
        raise HTTPException(status_code=502, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def validate_user_id(user_id: str) -> str:
    with service_errors():
        return validate_segment(user_id, "user id")


def _profile(user_id: str):
    settings = get_settings()
    return load_profile(
        get_store(),
        user_id,
        default_score=settings.default_discipline_score,
        default_weak_subjects=settings.default_weak_subjects,
    )


def _coach() -> Coach:
    settings = get_settings()
    return Coach(
        get_store(),
        get_generator(),
        target_hours=settings.target_hours,
        recent_limit=settings.recent_sessions_limit,
    )


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/users/{user_id}/profile")
async def get_profile(user_id: str) -> dict:
    user_id = validate_user_id(user_id)
    profile = _profile(user_id)
    return {"profile": profile.model_dump(mode="json"), "stats": stats(profile)}


@router.put("/users/{user_id}/profile/weak-subjects")
async def update_weak_subjects(user_id: str, body: WeakSubjectsUpdate) -> dict:
    user_id = validate_user_id(user_id)
    _profile(user_id)
    profile = set_weak_subjects(get_store(), user_id, body.subjects)
    return profile.model_dump(mode="json")


@router.get("/users/{user_id}/schedule")
async def get_today_schedule(user_id: str) -> dict:
    user_id = validate_user_id(user_id)
    schedule = ScheduleService(get_store(), get_generator()).today(user_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail="No plan for today")
    data = schedule.model_dump(mode="json")
    data["progress_percent"] = schedule.progress_percent
    return data


@router.post("/users/{user_id}/schedule/generate")
async def generate_schedule(user_id: str, body: PlanRequest | None = None) -> dict:
    user_id = validate_user_id(user_id)
    settings = get_settings()
    weak_areas = body.weak_areas if body and body.weak_areas is not None else None
    if weak_areas is None:
        weak_areas = _profile(user_id).weak_subjects
    service = ScheduleService(get_store(), get_generator(), target_hours=settings.target_hours)
    with service_errors():
        schedule = await service.generate_plan(user_id, weak_areas)
    return schedule.model_dump(mode="json")


@router.get("/users/{user_id}/materials")
async def get_materials(user_id: str) -> list[dict]:
    user_id = validate_user_id(user_id)
    return [m.model_dump(mode="json") for m in list_materials(get_store(), user_id)]


@router.post("/users/{user_id}/materials", status_code=201)
async def create_material(user_id: str, body: MaterialCreate) -> dict:
    user_id = validate_user_id(user_id)
    with service_errors():
        material = add_material(get_store(), user_id, body)
    return material.model_dump(mode="json")


@router.post("/users/{user_id}/materials/file", status_code=201)
async def create_file_material(user_id: str, body: FileUpload) -> dict:
    """Register an uploaded file by name only."""
    user_id = validate_user_id(user_id)
    payload = file_placeholder(body.filename)
    payload.instruction = body.instruction
    with service_errors():
        material = add_material(get_store(), user_id, payload)
    return material.model_dump(mode="json")


@router.post("/users/{user_id}/materials/{material_id}/test")
async def create_material_test(user_id: str, material_id: str) -> dict:
    user_id = validate_user_id(user_id)
    settings = get_settings()
    with service_errors():
        material = get_material(get_store(), user_id, material_id)
        if material is None:
            raise HTTPException(status_code=404, detail="Material not found")
        test = await generate_material_test(
            get_generator(),
            material,
            question_count=settings.mock_test_question_count,
            duration=settings.mock_test_duration_seconds,
            content_limit=settings.material_content_limit,
        )
    return test.model_dump(mode="json", by_alias=True)


@router.get("/users/{user_id}/sessions")
async def get_recent_sessions(user_id: str) -> list[dict]:
    user_id = validate_user_id(user_id)
    return [session_card(s) for s in _coach().recent_sessions(user_id)]


@router.delete("/users/{user_id}/sessions/{session_id}")
async def delete_session(user_id: str, session_id: str) -> dict:
    user_id = validate_user_id(user_id)
    with service_errors():
        deleted = _coach().delete_session(user_id, session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"deleted": session_id}


@router.get("/users/{user_id}/sessions/{session_id}/rewatch")
async def rewatch_session(user_id: str, session_id: str) -> dict:
    user_id = validate_user_id(user_id)
    with service_errors():
        video = _coach().rewatch(user_id, session_id)
    if video is None:
        raise HTTPException(status_code=404, detail="No video for this session")
    return video.model_dump(mode="json")


@router.get("/users/{user_id}/test-results")
async def get_test_results(user_id: str) -> list[dict]:
    user_id = validate_user_id(user_id)
    return [r.model_dump(mode="json") for r in list_results(get_store(), user_id)]


def _vocab() -> VocabularyBuilder:
    return VocabularyBuilder(get_generator(), batch_size=get_settings().vocab_batch_size)


@router.get("/users/{user_id}/vocab")
async def get_vocab(user_id: str) -> list[dict]:
    user_id = validate_user_id(user_id)
    return [w.model_dump(mode="json") for w in _vocab().history(user_id)]


@router.post("/users/{user_id}/vocab/fetch")
async def fetch_vocab(user_id: str) -> list[dict]:
    user_id = validate_user_id(user_id)
    with service_errors():
        words = await _vocab().fetch_new_words(user_id)
    return [w.model_dump(mode="json") for w in words]


@router.post("/users/{user_id}/vocab/test")
async def create_vocab_test(user_id: str) -> dict:
    user_id = validate_user_id(user_id)
    with service_errors():
        test = await _vocab().start_history_test(user_id)
    return test.model_dump(mode="json", by_alias=True)


@router.post("/users/{user_id}/analysis")
async def run_analysis(user_id: str) -> dict:
    user_id = validate_user_id(user_id)
    text = await _coach().run_deep_analysis(_profile(user_id))
    return {"analysis": text}


@router.get("/quote")
async def get_quote(language: str = "en") -> dict:
    with service_errors():
        return daily_quote(language)


@router.get("/video-id")
async def get_video_id(url: str) -> dict:
    video_id = extract_video_id(url)
    if video_id is None:
        raise HTTPException(status_code=400, detail="Invalid YouTube Link. Please paste a valid URL.")
    return {"video_id": video_id, "thumbnail_url": thumbnail_url(video_id)}


@router.post("/notifications/preview")
async def preview_notification(payload: dict) -> dict:
    with service_errors():
        return notification_from_push(payload).model_dump()

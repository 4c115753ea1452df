"""Study material library."""

import structlog

from study_command_center.models.material import Material, MaterialCreate, MaterialType
from study_command_center.storage.documents import DocumentStore

logger = structlog.get_logger()

MATERIALS_COLLECTION = "materials"
TITLE_REQUIRED = "Please enter a Title/Topic Name."
CONTENT_REQUIRED = "Please paste text content."


def file_placeholder(filename: str) -> MaterialCreate:
    """Material for an uploaded file; only its name is known to the generator."""
    return MaterialCreate(
        title=filename,
        content=(
            f"[FILE_UPLOADED_BY_USER: {filename}]\n"
            "[NOTE: This is a placeholder for a local file. "
            "Generate a test based on the TITLE and implied Topic.]"
        ),
        type=MaterialType.PDF,
    )


def validate_material(payload: MaterialCreate) -> None:
    if not payload.title.strip():
        raise ValueError(TITLE_REQUIRED)
    if payload.type == MaterialType.TEXT and not payload.content.strip():
        raise ValueError(CONTENT_REQUIRED)


def add_material(store: DocumentStore, user_id: str, payload: MaterialCreate) -> Material:
    validate_material(payload)
    material = Material(**payload.model_dump())
    material.id = store.add(
        user_id, MATERIALS_COLLECTION, material.model_dump(mode="json", exclude={"id"})
    )
    logger.info("material_added", user_id=user_id, title=material.title, type=material.type.value)
    return material


def get_material(store: DocumentStore, user_id: str, material_id: str) -> Material | None:
    data = store.get(user_id, MATERIALS_COLLECTION, material_id)
    return Material(**data) if data is not None else None


def list_materials(store: DocumentStore, user_id: str) -> list[Material]:
    docs = store.query(user_id, MATERIALS_COLLECTION, order_by="timestamp", descending=True)
    return [Material(**d) for d in docs]

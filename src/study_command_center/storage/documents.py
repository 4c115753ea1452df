"""Per-user document store (JSON + fcntl.flock + atomic write).

Layout: ``<root>/<user_id>/<collection>/<doc_id>.json``. Every user owns an
isolated namespace; there are no cross-user documents.
"""

import fcntl
import json
import os
import re
import tempfile
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

logger = structlog.get_logger()

_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")

Listener = Callable[[Any], None]


class Increment(BaseModel):
    """Field value that adds ``amount`` to the stored number inside the lock."""

    model_config = ConfigDict(frozen=True)

    amount: int | float

    def __init__(self, amount: int | float):
        super().__init__(amount=amount)


def validate_segment(value: str, what: str = "path segment") -> str:
    """Reject identifiers that could escape the store root."""
    if not isinstance(value, str) or not _SEGMENT_PATTERN.match(value) or value in {".", ".."}:
        raise ValueError(f"Invalid {what}: {value!r}")
    return value


def _apply_field(data: dict, dotted: str, value: Any) -> None:
    """Set ``a.b.0.c`` style paths; list indices are addressed numerically."""
    parts = dotted.split(".")
    target: Any = data
    for part in parts[:-1]:
        if isinstance(target, list):
            target = target[int(part)]
        else:
            target = target.setdefault(part, {})
    last = parts[-1]
    key: int | str = int(last) if isinstance(target, list) else last
    if isinstance(value, Increment):
        current = target[key] if isinstance(target, list) else target.get(key)
        value = (current or 0) + value.amount
    target[key] = value


class DocumentStore:
    """File-backed document database with push subscriptions.

    Args:
        root: Directory holding every user namespace.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._listeners: dict[tuple[str, ...], list[Listener]] = {}

    # -- paths -------------------------------------------------------------

    def _collection_dir(self, user_id: str, collection: str) -> Path:
        validate_segment(user_id, "user id")
        validate_segment(collection, "collection")
        return self.root / user_id / collection

    def _doc_path(self, user_id: str, collection: str, doc_id: str) -> Path:
        validate_segment(doc_id, "document id")
        return self._collection_dir(user_id, collection) / f"{doc_id}.json"

    @contextmanager
    def _locked(self, path: Path) -> Iterator[None]:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = path.with_suffix(".lock")
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    @staticmethod
    def _read(path: Path) -> dict | None:
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def _write(path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".tmp", encoding="utf-8"
        ) as tmp:
            json.dump(data, tmp, default=str, ensure_ascii=False)
        os.replace(tmp.name, path)

    # -- documents ---------------------------------------------------------

    def get(self, user_id: str, collection: str, doc_id: str) -> dict | None:
        path = self._doc_path(user_id, collection, doc_id)
        data = self._read(path)
        if data is not None:
            data.setdefault("id", doc_id)
        return data

    def set(self, user_id: str, collection: str, doc_id: str, data: dict) -> None:
        """Create or overwrite a whole document."""
        path = self._doc_path(user_id, collection, doc_id)
        with self._locked(path):
            self._write(path, {k: v for k, v in data.items() if k != "id"})
        self._notify(user_id, collection, doc_id)

    def update(self, user_id: str, collection: str, doc_id: str, fields: dict[str, Any]) -> dict:
        """Merge fields into an existing document.

        Keys may be dotted paths and values may be ``Increment``; both are
        resolved under the document lock so concurrent writers never lose
        increments.

        Raises:
            KeyError: If the document does not exist.
        """
        path = self._doc_path(user_id, collection, doc_id)
        with self._locked(path):
            data = self._read(path)
            if data is None:
                raise KeyError(f"{user_id}/{collection}/{doc_id}")
            for dotted, value in fields.items():
                _apply_field(data, dotted, value)
            self._write(path, data)
        self._notify(user_id, collection, doc_id)
        return data

    def transact(
        self,
        user_id: str,
        collection: str,
        doc_id: str,
        fn: Callable[[dict | None], dict | None],
    ) -> dict | None:
        """Locked read-modify-write. ``fn`` returning None leaves the file untouched."""
        path = self._doc_path(user_id, collection, doc_id)
        with self._locked(path):
            current = self._read(path)
            updated = fn(current)
            if updated is not None:
                self._write(path, updated)
        if updated is not None:
            self._notify(user_id, collection, doc_id)
        return updated

    def add(self, user_id: str, collection: str, data: dict) -> str:
        """Append a document with a generated id; returns the id."""
        doc_id = uuid.uuid4().hex
        path = self._doc_path(user_id, collection, doc_id)
        self._write(path, {k: v for k, v in data.items() if k != "id"})
        self._notify(user_id, collection, doc_id)
        return doc_id

    def delete(self, user_id: str, collection: str, doc_id: str) -> bool:
        path = self._doc_path(user_id, collection, doc_id)
        with self._locked(path):
            existed = path.exists()
            if existed:
                path.unlink()
        path.with_suffix(".lock").unlink(missing_ok=True)
        if existed:
            self._notify(user_id, collection, doc_id)
        return existed

    def query(
        self,
        user_id: str,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        """Return every document in a collection, each carrying its ``id``."""
        directory = self._collection_dir(user_id, collection)
        if not directory.exists():
            return []
        docs = []
        for path in directory.glob("*.json"):
            try:
                data = self._read(path)
            except (OSError, json.JSONDecodeError):
                logger.warning("document_read_error", path=str(path))
                continue
            if data is None:
                continue
            data.setdefault("id", path.stem)
            docs.append(data)
        if order_by:
            docs.sort(key=lambda d: str(d.get(order_by) or ""), reverse=descending)
        if limit is not None:
            docs = docs[:limit]
        return docs

    # -- subscriptions -----------------------------------------------------

    def subscribe(
        self,
        user_id: str,
        collection: str,
        listener: Listener,
        doc_id: str | None = None,
    ) -> Callable[[], None]:
        """Register a snapshot listener and deliver the current snapshot.

        A document listener receives the document (or None); a collection
        listener receives the full list. Returns an unsubscribe callable.
        """
        key = (user_id, collection, doc_id) if doc_id else (user_id, collection)
        self._collection_dir(user_id, collection)
        self._listeners.setdefault(key, []).append(listener)
        self._deliver(key, listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(key, None)

        return unsubscribe

    def _snapshot(self, key: tuple[str, ...]) -> Any:
        if len(key) == 3:
            return self.get(*key)
        return self.query(*key)

    def _deliver(self, key: tuple[str, ...], listener: Listener) -> None:
        try:
            listener(self._snapshot(key))
        except Exception:
            logger.exception("snapshot_listener_error", key="/".join(key))

    def _notify(self, user_id: str, collection: str, doc_id: str) -> None:
        for key in ((user_id, collection, doc_id), (user_id, collection)):
            for listener in list(self._listeners.get(key, [])):
                self._deliver(key, listener)

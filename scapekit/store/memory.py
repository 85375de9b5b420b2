"""In-memory storage backend for scapes, used by tests and ephemeral sessions."""

import copy
import threading
from dataclasses import replace

from .models import ScapeFields, ScapeRecord, ScapeSummary, WidgetRecord


class InMemoryScapeStore:
    """Dict-backed scape storage.

    Records are deep-copied on the way in and out, so callers never share
    state with the store.
    """

    def __init__(self) -> None:
        self._scapes: dict[str, ScapeRecord] = {}
        self._lock = threading.Lock()
        self.initialized = False

    def initialize(self) -> None:
        self.initialized = True

    def close(self) -> None:
        self.initialized = False

    def find_scape_by_title_for_user(
        self,
        title: str,
        user_id: str,
        exclude_id: str | None = None,
    ) -> str | None:
        with self._lock:
            for record in self._scapes.values():
                if (
                    record.creator_id == user_id
                    and record.title == title
                    and record.id != exclude_id
                ):
                    return record.id
        return None

    def fetch_scape(self, scape_id: str) -> ScapeRecord | None:
        with self._lock:
            record = self._scapes.get(scape_id)
            return copy.deepcopy(record) if record else None

    def get_scape_owner(self, scape_id: str) -> str | None:
        with self._lock:
            record = self._scapes.get(scape_id)
            return record.creator_id if record else None

    def list_user_scapes(self, creator_id: str) -> list[ScapeSummary]:
        with self._lock:
            records = [r for r in self._scapes.values() if r.creator_id == creator_id]
        records.sort(key=lambda r: r.updated_at, reverse=True)
        return [r.summary() for r in records]

    def upsert_scape(
        self,
        scape_id: str | None,
        creator_id: str,
        fields: ScapeFields,
    ) -> str:
        fields = copy.deepcopy(fields)
        with self._lock:
            if scape_id is None:
                record = ScapeRecord.create(creator_id, fields)
                self._scapes[record.id] = record
                return record.id
            if scape_id not in self._scapes:
                raise KeyError(f"Scape not found: {scape_id}")
            self._scapes[scape_id].apply(fields)
            return scape_id

    def replace_widgets(self, scape_id: str, widgets: list[WidgetRecord]) -> None:
        with self._lock:
            if scape_id not in self._scapes:
                raise KeyError(f"Scape not found: {scape_id}")
            self._scapes[scape_id].widgets = [
                replace(copy.deepcopy(widget), position=index)
                for index, widget in enumerate(widgets)
            ]

    def set_published(self, scape_id: str, published: bool) -> None:
        with self._lock:
            if scape_id in self._scapes:
                self._scapes[scape_id].is_published = published

    def delete_scape(self, scape_id: str) -> bool:
        with self._lock:
            return self._scapes.pop(scape_id, None) is not None


__all__ = ["InMemoryScapeStore"]

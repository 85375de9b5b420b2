"""SQLite storage backend for scapes."""

import functools
import json
import logging
import sqlite3
import threading
from datetime import UTC, datetime
from pathlib import Path

from .models import ScapeFields, ScapeRecord, ScapeSummary, WidgetRecord

logger = logging.getLogger(__name__)

# SQL Schema
SCHEMA_SQL = """
-- Scapes table
CREATE TABLE IF NOT EXISTS scapes (
    id TEXT PRIMARY KEY,
    creator_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT DEFAULT '',
    tagline TEXT DEFAULT '',
    banner TEXT,
    banner_static INTEGER DEFAULT 0,
    feature_widget_id TEXT,
    is_published INTEGER DEFAULT 0,
    visibility TEXT DEFAULT 'public',
    permissions TEXT,  -- JSON dict
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Widgets table; ids are client-generated and only unique per scape
CREATE TABLE IF NOT EXISTS widgets (
    id TEXT NOT NULL,
    scape_id TEXT NOT NULL,
    type TEXT NOT NULL,
    variant TEXT NOT NULL,
    channel TEXT DEFAULT 'neutral',
    position INTEGER NOT NULL,
    is_feature INTEGER DEFAULT 0,
    featured_caption TEXT,
    data TEXT,  -- JSON
    PRIMARY KEY (scape_id, id),
    FOREIGN KEY (scape_id) REFERENCES scapes(id) ON DELETE CASCADE
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_scapes_creator_title ON scapes(creator_id, title);
CREATE INDEX IF NOT EXISTS idx_scapes_updated ON scapes(updated_at);
CREATE INDEX IF NOT EXISTS idx_widgets_scape_position ON widgets(scape_id, position);
"""


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _locked(method):
    """Run a store method under the instance lock.

    The one connection is shared by ``asyncio.to_thread`` workers; each method
    owns it, transaction included, for its whole call.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class SQLiteScapeStore:
    """SQLite-based scape storage.

    Features:
    - Persistent storage in a single SQLite file (or ``:memory:``)
    - Widget replacement inside one transaction
    - Cascade delete of widgets with their scape

    Args:
        db_path: Path to SQLite database file.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = ":memory:" if str(db_path) == ":memory:" else Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection."""
        if self._conn is None:
            raise RuntimeError("Storage not initialized. Call initialize() first.")
        return self._conn

    @_locked
    def initialize(self) -> None:
        """Initialize storage (create database and tables)."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.execute("PRAGMA journal_mode = WAL")

        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

        logger.info(f"Initialized SQLite scape store at {self.db_path}")

    @_locked
    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    # =========================================================================
    # Queries
    # =========================================================================

    @_locked
    def find_scape_by_title_for_user(
        self,
        title: str,
        user_id: str,
        exclude_id: str | None = None,
    ) -> str | None:
        conn = self._get_conn()
        sql = "SELECT id FROM scapes WHERE creator_id = ? AND title = ?"
        params: list[str] = [user_id, title]
        if exclude_id:
            sql += " AND id != ?"
            params.append(exclude_id)
        row = conn.execute(sql + " LIMIT 1", params).fetchone()
        return row["id"] if row else None

    @_locked
    def fetch_scape(self, scape_id: str) -> ScapeRecord | None:
        conn = self._get_conn()
        row = conn.execute("SELECT * FROM scapes WHERE id = ?", (scape_id,)).fetchone()
        if row is None:
            return None
        widget_rows = conn.execute(
            "SELECT * FROM widgets WHERE scape_id = ? ORDER BY position",
            (scape_id,),
        ).fetchall()
        record = self._row_to_scape(row)
        record.widgets = [self._row_to_widget(w) for w in widget_rows]
        return record

    @_locked
    def get_scape_owner(self, scape_id: str) -> str | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT creator_id FROM scapes WHERE id = ?", (scape_id,)
        ).fetchone()
        return row["creator_id"] if row else None

    @_locked
    def list_user_scapes(self, creator_id: str) -> list[ScapeSummary]:
        conn = self._get_conn()
        rows = conn.execute(
            """
            SELECT s.*, COUNT(w.id) AS widget_count
            FROM scapes s
            LEFT JOIN widgets w ON w.scape_id = s.id
            WHERE s.creator_id = ?
            GROUP BY s.id
            ORDER BY s.updated_at DESC
            """,
            (creator_id,),
        ).fetchall()
        return [
            ScapeSummary(
                id=row["id"],
                title=row["title"],
                tagline=row["tagline"] or "",
                is_published=bool(row["is_published"]),
                visibility=row["visibility"],
                widget_count=row["widget_count"],
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
            for row in rows
        ]

    # =========================================================================
    # Writes
    # =========================================================================

    @_locked
    def upsert_scape(
        self,
        scape_id: str | None,
        creator_id: str,
        fields: ScapeFields,
    ) -> str:
        conn = self._get_conn()
        if scape_id is None:
            record = ScapeRecord.create(creator_id, fields)
            with conn:
                conn.execute(
                    """
                    INSERT INTO scapes (
                        id, creator_id, title, description, tagline, banner,
                        banner_static, feature_widget_id, is_published,
                        visibility, permissions, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.creator_id,
                        record.title,
                        record.description,
                        record.tagline,
                        record.banner,
                        int(record.banner_static),
                        record.feature_widget_id,
                        int(record.is_published),
                        record.visibility,
                        json.dumps(record.permissions),
                        record.created_at.isoformat(),
                        record.updated_at.isoformat(),
                    ),
                )
            return record.id

        with conn:
            cursor = conn.execute(
                """
                UPDATE scapes SET
                    title = ?, description = ?, tagline = ?, banner = ?,
                    banner_static = ?, feature_widget_id = ?, visibility = ?,
                    permissions = COALESCE(?, permissions), updated_at = ?
                WHERE id = ?
                """,
                (
                    fields.title,
                    fields.description,
                    fields.tagline,
                    fields.banner,
                    int(fields.banner_static),
                    fields.feature_widget_id,
                    fields.visibility,
                    (
                        json.dumps(fields.permissions)
                        if fields.permissions is not None
                        else None
                    ),
                    _now_iso(),
                    scape_id,
                ),
            )
        if cursor.rowcount == 0:
            raise KeyError(f"Scape not found: {scape_id}")
        return scape_id

    @_locked
    def replace_widgets(self, scape_id: str, widgets: list[WidgetRecord]) -> None:
        conn = self._get_conn()
        with conn:
            conn.execute("DELETE FROM widgets WHERE scape_id = ?", (scape_id,))
            conn.executemany(
                """
                INSERT INTO widgets (
                    id, scape_id, type, variant, channel, position,
                    is_feature, featured_caption, data
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        widget.id,
                        scape_id,
                        widget.type,
                        widget.variant,
                        widget.channel,
                        index,
                        int(widget.is_feature),
                        widget.featured_caption,
                        json.dumps(widget.data),
                    )
                    for index, widget in enumerate(widgets)
                ],
            )

    @_locked
    def set_published(self, scape_id: str, published: bool) -> None:
        conn = self._get_conn()
        with conn:
            conn.execute(
                "UPDATE scapes SET is_published = ?, updated_at = ? WHERE id = ?",
                (int(published), _now_iso(), scape_id),
            )

    @_locked
    def delete_scape(self, scape_id: str) -> bool:
        conn = self._get_conn()
        with conn:
            cursor = conn.execute("DELETE FROM scapes WHERE id = ?", (scape_id,))
        return cursor.rowcount > 0

    # =========================================================================
    # Row Conversion
    # =========================================================================

    def _row_to_scape(self, row: sqlite3.Row) -> ScapeRecord:
        return ScapeRecord(
            id=row["id"],
            creator_id=row["creator_id"],
            title=row["title"],
            description=row["description"] or "",
            tagline=row["tagline"] or "",
            banner=row["banner"],
            banner_static=bool(row["banner_static"]),
            feature_widget_id=row["feature_widget_id"],
            is_published=bool(row["is_published"]),
            visibility=row["visibility"],
            permissions=json.loads(row["permissions"]) if row["permissions"] else {},
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_widget(self, row: sqlite3.Row) -> WidgetRecord:
        return WidgetRecord(
            id=row["id"],
            type=row["type"],
            variant=row["variant"],
            position=row["position"],
            channel=row["channel"],
            is_feature=bool(row["is_feature"]),
            featured_caption=row["featured_caption"],
            data=json.loads(row["data"]) if row["data"] else {},
        )


__all__ = ["SQLiteScapeStore", "SCHEMA_SQL"]

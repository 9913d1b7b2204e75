import json
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from opentelemetry import trace
from opentelemetry.trace import SpanKind

from datadget.models.widgets import Widget

DB_PATH = Path(os.environ.get("DATABASE_PATH", str(Path(__file__).parent.parent / "widgets.db")))

# One JSON document per widget (configuration + history), plus the flattened
# records handed to the home-screen widget extension.
SCHEMA = """
CREATE TABLE IF NOT EXISTS widgets (
    id TEXT PRIMARY KEY,
    document TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_widgets_created_at ON widgets(created_at);

CREATE TABLE IF NOT EXISTS widget_sync (
    widget_id TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    synced_at INTEGER NOT NULL
);
"""


def _get_db_path() -> Path:
    return DB_PATH


def init_db():
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    should_reset = os.environ.get("DB_RESET_ON_START", "false").lower() == "true"

    with sqlite3.connect(str(db_path)) as conn:
        if should_reset:
            conn.execute("DROP TABLE IF EXISTS widgets")
            conn.execute("DROP TABLE IF EXISTS widget_sync")
        conn.executescript(SCHEMA)


@contextmanager
def get_connection():
    conn = sqlite3.connect(str(_get_db_path()))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def _db_span(name: str, operation: str, **attributes):
    tracer = trace.get_tracer(__name__)
    return tracer.start_as_current_span(
        name,
        kind=SpanKind.INTERNAL,
        attributes={"db.system": "sqlite", "db.operation": operation, **attributes},
    )


# ── Widgets ──────────────────────────────────────────────────────


def save_widget(widget: Widget) -> None:
    """Insert or fully replace a widget document."""
    with _db_span("db save_widget", "UPSERT", **{"widget.id": widget.id}):
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO widgets (id, document, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    document = excluded.document,
                    updated_at = excluded.updated_at
                """,
                (widget.id, widget.model_dump_json(), widget.created_at, widget.updated_at),
            )


def get_widget(widget_id: str) -> Widget | None:
    with get_connection() as conn:
        row = conn.execute("SELECT document FROM widgets WHERE id = ?", (widget_id,)).fetchone()
    if row is None:
        return None
    return Widget.model_validate_json(row["document"])


def list_widgets() -> list[Widget]:
    """All widgets, oldest first."""
    with _db_span("db list_widgets", "SELECT") as span:
        with get_connection() as conn:
            rows = conn.execute("SELECT document FROM widgets ORDER BY created_at, id").fetchall()
        widgets = [Widget.model_validate_json(row["document"]) for row in rows]
        span.set_attribute("db.result_count", len(widgets))
        return widgets


def delete_widget(widget_id: str) -> bool:
    """Remove a widget together with its history."""
    with _db_span("db delete_widget", "DELETE", **{"widget.id": widget_id}):
        with get_connection() as conn:
            cursor = conn.execute("DELETE FROM widgets WHERE id = ?", (widget_id,))
        return cursor.rowcount > 0


def count_widgets() -> int:
    with get_connection() as conn:
        row = conn.execute("SELECT COUNT(*) AS cnt FROM widgets").fetchone()
    return row["cnt"]


# ── Widget sync records ──────────────────────────────────────────


def save_sync_record(widget_id: str, payload: dict, synced_at: int) -> None:
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO widget_sync (widget_id, payload, synced_at)
            VALUES (?, ?, ?)
            ON CONFLICT(widget_id) DO UPDATE SET
                payload = excluded.payload,
                synced_at = excluded.synced_at
            """,
            (widget_id, json.dumps(payload), synced_at),
        )


def get_sync_record(widget_id: str) -> dict | None:
    with get_connection() as conn:
        row = conn.execute(
            "SELECT payload FROM widget_sync WHERE widget_id = ?", (widget_id,)
        ).fetchone()
    if row is None:
        return None
    return json.loads(row["payload"])


def delete_sync_record(widget_id: str) -> bool:
    with get_connection() as conn:
        cursor = conn.execute("DELETE FROM widget_sync WHERE widget_id = ?", (widget_id,))
    return cursor.rowcount > 0


def check_connection() -> bool:
    try:
        with get_connection() as conn:
            conn.execute("SELECT 1")
        return True
    except sqlite3.Error:
        return False

"""SQLite-backed assessment log for EngageRisk.

Stores one row per submission: the form inputs, the scoring result and
the usage metadata that is filled in afterwards (time to result, report
download, feedback).
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from engagerisk_shared.types.enums import ContractType, Feedback, RiskLevel
from engagerisk_shared.types.models import AssessmentRecord

from engagerisk.ratelimit import Window

logger = logging.getLogger(__name__)

# Default store location
_DEFAULT_STORE_DIR = Path.home() / ".engagerisk"
_DEFAULT_STORE_DB = _DEFAULT_STORE_DIR / "assessments.db"

_COLUMNS = (
    "id",
    "timestamp",
    "email",
    "country",
    "contract_type",
    "contract_value_usd",
    "data_processing",
    "score",
    "level",
    "time_to_result_ms",
    "downloaded_pdf",
    "feedback",
    "user_agent",
    "ip_last_octet",
    "reasons",
)

# Columns that may change after the row is written
UPDATABLE_FIELDS = frozenset({"time_to_result_ms", "downloaded_pdf", "feedback"})


class AssessmentStore:
    """Append-mostly row store for assessment records.

    Rows are written once at submission time; only the usage columns
    in ``UPDATABLE_FIELDS`` are updated later.
    """

    def __init__(self, db_path: str | Path | None = None):
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file. Defaults to
                     ~/.engagerisk/assessments.db
        """
        self.db_path = Path(db_path) if db_path else _DEFAULT_STORE_DB
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create the database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS assessments (
                    id                  TEXT PRIMARY KEY,
                    timestamp           TEXT NOT NULL,
                    email               TEXT NOT NULL,
                    country             TEXT NOT NULL,
                    contract_type       TEXT NOT NULL,
                    contract_value_usd  REAL NOT NULL,
                    data_processing     INTEGER NOT NULL,
                    score               INTEGER NOT NULL,
                    level               TEXT NOT NULL,
                    time_to_result_ms   INTEGER,
                    downloaded_pdf      INTEGER NOT NULL DEFAULT 0,
                    feedback            TEXT,
                    user_agent          TEXT NOT NULL DEFAULT '',
                    ip_last_octet       TEXT NOT NULL DEFAULT '',
                    reasons             TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_assessments_timestamp
                ON assessments (timestamp)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS rate_limits (
                    identifier  TEXT PRIMARY KEY,
                    count       INTEGER NOT NULL,
                    reset_at    REAL NOT NULL
                )
            """)

    def _connect(self) -> sqlite3.Connection:
        """Open a connection to the SQLite database."""
        return sqlite3.connect(str(self.db_path))

    # ─── Public API ───────────────────────────────────────────────────────

    def append(self, record: AssessmentRecord) -> None:
        """Write a new assessment row."""
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO assessments ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                _to_row(record),
            )
        logger.debug("Stored assessment %s (score=%d)", record.id, record.score)

    def get(self, assessment_id: str) -> Optional[AssessmentRecord]:
        """Fetch one assessment, or None if the id is unknown."""
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM assessments WHERE id = ?",
                (assessment_id,),
            ).fetchone()

        if row is None:
            return None
        return _from_row(row)

    def update(self, assessment_id: str, **fields: Any) -> bool:
        """Update usage columns of an existing assessment.

        Returns:
            True if a row was updated, False if the id is unknown.

        Raises:
            ValueError: If a field outside ``UPDATABLE_FIELDS`` is given.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if not fields:
            return self.get(assessment_id) is not None

        assignments = ", ".join(f"{name} = ?" for name in fields)
        values = [_encode_value(name, value) for name, value in fields.items()]

        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE assessments SET {assignments} WHERE id = ?",
                (*values, assessment_id),
            )
            updated = cursor.rowcount > 0

        if not updated:
            logger.warning("Update for unknown assessment %s", assessment_id)
        return updated

    def recent(self, limit: int = 20) -> list[AssessmentRecord]:
        """Most recent assessments, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {', '.join(_COLUMNS)} FROM assessments
                ORDER BY timestamp DESC, rowid DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [_from_row(r) for r in rows]

    def all(self) -> list[AssessmentRecord]:
        """Every assessment, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM assessments ORDER BY timestamp, rowid"
            ).fetchall()
        return [_from_row(r) for r in rows]

    def count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM assessments").fetchone()[0]

    def clear(self) -> int:
        """Remove all rows.

        Returns:
            Number of rows removed.
        """
        with self._connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM assessments").fetchone()[0]
            conn.execute("DELETE FROM assessments")
        return count

    # ─── Rate limit windows ───────────────────────────────────────────────

    def get_window(self, identifier: str) -> Optional[Window]:
        """Fetch the stored window for a rate-limited identifier."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT count, reset_at FROM rate_limits WHERE identifier = ?",
                (identifier,),
            ).fetchone()
        if row is None:
            return None
        return Window(count=row[0], reset_at=row[1])

    def put_window(self, identifier: str, window: Window) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO rate_limits (identifier, count, reset_at) VALUES (?, ?, ?)",
                (identifier, window.count, window.reset_at),
            )

    def purge_windows(self, now: float) -> int:
        """Delete windows that expired before ``now``.

        Returns:
            Number of windows removed.
        """
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM rate_limits WHERE reset_at < ?", (now,))
            return cursor.rowcount

    def window_count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM rate_limits").fetchone()[0]


# ─── Row encoding ─────────────────────────────────────────────────────────────


def _encode_value(name: str, value: Any) -> Any:
    if name == "downloaded_pdf":
        return int(bool(value))
    if name == "feedback":
        return Feedback(value).value if value is not None else None
    return value


def _to_row(record: AssessmentRecord) -> tuple:
    return (
        record.id,
        record.timestamp.isoformat(),
        record.email,
        record.country,
        record.contract_type.value,
        record.contract_value_usd,
        int(record.data_processing),
        record.score,
        record.level.value,
        record.time_to_result_ms,
        int(record.downloaded_pdf),
        record.feedback.value if record.feedback else None,
        record.user_agent,
        record.ip_last_octet,
        json.dumps(record.reasons, ensure_ascii=False),
    )


def _from_row(row: tuple) -> AssessmentRecord:
    data = dict(zip(_COLUMNS, row))
    return AssessmentRecord(
        id=data["id"],
        timestamp=datetime.fromisoformat(data["timestamp"]),
        email=data["email"],
        country=data["country"],
        contract_type=ContractType.parse(data["contract_type"]),
        contract_value_usd=data["contract_value_usd"],
        data_processing=bool(data["data_processing"]),
        score=data["score"],
        level=RiskLevel(data["level"]),
        time_to_result_ms=data["time_to_result_ms"],
        downloaded_pdf=bool(data["downloaded_pdf"]),
        feedback=Feedback(data["feedback"]) if data["feedback"] else None,
        user_agent=data["user_agent"],
        ip_last_octet=data["ip_last_octet"],
        reasons=json.loads(data["reasons"]),
    )

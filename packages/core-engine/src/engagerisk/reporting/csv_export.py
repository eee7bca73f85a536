"""CSV exports of stored assessments.

Two shapes are supported:
  - raw: one row per assessment, optionally privacy-safe (masked email,
    value range instead of exact value, no user agent or IP data)
  - aggregated: one row per group (day, week, month, country,
    contract type or level) with submission and outcome statistics
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from engagerisk_shared.constants.constants import CSV_HEADERS, REASON_SEPARATOR
from engagerisk_shared.types.enums import Feedback, RiskLevel
from engagerisk_shared.types.models import AssessmentRecord

from engagerisk.privacy import mask_email

EXPORT_FORMATS = ("standard", "privacy-safe")
GROUP_BY_OPTIONS = ("day", "week", "month", "country", "contract_type", "level")

_PRIVACY_HEADERS = [
    "ID",
    "Timestamp",
    "Masked Email",
    "Country",
    "Contract Type",
    "Contract Value Range",
    "Data Processing",
    "Risk Score",
    "Risk Level",
    "Time to Result (ms)",
    "PDF Downloaded",
    "Feedback",
    "Risk Reasons",
]

_TIME_BUCKETS = (
    ("<15s %", 0, 15_000),
    ("15-30s %", 15_000, 30_000),
    ("30-60s %", 30_000, 60_000),
    ("60-120s %", 60_000, 120_000),
    (">120s %", 120_000, float("inf")),
)


@dataclass(frozen=True)
class ExportFilters:
    """Row filters for raw exports; None means "no filter"."""

    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    risk_level: Optional[RiskLevel] = None
    country: Optional[str] = None

    def matches(self, record: AssessmentRecord) -> bool:
        ts = _as_utc(record.timestamp)
        if self.date_from and ts < _as_utc(self.date_from):
            return False
        if self.date_to and ts > _as_utc(self.date_to):
            return False
        if self.risk_level and record.level != self.risk_level:
            return False
        if self.country and record.country != self.country.strip().upper():
            return False
        return True


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _writer(buffer: io.StringIO):
    return csv.writer(buffer, lineterminator="\n")


def value_range(value: float) -> str:
    """Coarse contract value bracket used in privacy-safe exports."""
    if value < 10_000:
        return "<$10K"
    elif value < 50_000:
        return "$10K-$50K"
    elif value < 100_000:
        return "$50K-$100K"
    elif value < 250_000:
        return "$100K-$250K"
    return ">$250K"


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# ─── Raw export ───────────────────────────────────────────────────────────────


def export_assessments_csv(
    records: Iterable[AssessmentRecord],
    filters: ExportFilters | None = None,
    format: str = "standard",
) -> str:
    """Export assessments as CSV, one row each.

    Args:
        records: Stored assessments, oldest first.
        filters: Optional date, level and country filters.
        format: "standard" or "privacy-safe".

    Returns:
        CSV text with a header row.

    Raises:
        ValueError: If the format is not supported.
    """
    if format not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {format}")

    filters = filters or ExportFilters()
    rows = [r for r in records if filters.matches(r)]

    buffer = io.StringIO()
    writer = _writer(buffer)

    if format == "privacy-safe":
        writer.writerow(_PRIVACY_HEADERS)
        for r in rows:
            writer.writerow([
                r.id,
                r.timestamp.isoformat(),
                mask_email(r.email),
                r.country,
                r.contract_type.value,
                value_range(r.contract_value_usd),
                _bool(r.data_processing),
                r.score,
                r.level.value,
                r.time_to_result_ms if r.time_to_result_ms is not None else "",
                _bool(r.downloaded_pdf),
                r.feedback.value if r.feedback else "",
                REASON_SEPARATOR.join(r.reasons),
            ])
    else:
        writer.writerow(CSV_HEADERS)
        for r in rows:
            writer.writerow([
                r.id,
                r.timestamp.isoformat(),
                r.email,
                r.country,
                r.contract_type.value,
                _number(r.contract_value_usd),
                _bool(r.data_processing),
                r.score,
                r.level.value,
                r.time_to_result_ms if r.time_to_result_ms is not None else "",
                _bool(r.downloaded_pdf),
                r.feedback.value if r.feedback else "",
                r.user_agent,
                r.ip_last_octet,
                REASON_SEPARATOR.join(r.reasons),
            ])

    return buffer.getvalue()


# ─── Aggregated export ────────────────────────────────────────────────────────


def _group_key(record: AssessmentRecord, group_by: str) -> str:
    ts = _as_utc(record.timestamp)
    if group_by == "week":
        year, week, _ = ts.isocalendar()
        return f"{year}-W{week:02d}"
    if group_by == "month":
        return ts.strftime("%Y-%m")
    if group_by == "country":
        return record.country or "Unknown"
    if group_by == "contract_type":
        return record.contract_type.value
    if group_by == "level":
        return record.level.value
    return ts.strftime("%Y-%m-%d")


def _pct(part: int, whole: int) -> str:
    return f"{part / whole * 100:.1f}" if whole else "0.0"


def export_aggregated_csv(
    records: Iterable[AssessmentRecord],
    group_by: str = "day",
    include_time_distribution: bool = False,
    include_feedback_stats: bool = False,
) -> str:
    """Export per-group statistics as CSV.

    Raises:
        ValueError: If ``group_by`` is not one of ``GROUP_BY_OPTIONS``.
    """
    if group_by not in GROUP_BY_OPTIONS:
        raise ValueError(f"Unsupported grouping: {group_by}")

    groups: dict[str, list[AssessmentRecord]] = {}
    for record in records:
        groups.setdefault(_group_key(record, group_by), []).append(record)

    headers = [
        "Group",
        "Total Submissions",
        "Unique Users",
        "Avg Risk Score",
        "Low Risk %",
        "Medium Risk %",
        "High Risk %",
        "Avg Time to Result (s)",
        "PDF Download Rate %",
    ]
    if include_time_distribution:
        headers.extend(label for label, _, _ in _TIME_BUCKETS)
    if include_feedback_stats:
        headers.extend(["Useful Feedback %", "Not Useful %", "No Feedback %"])

    buffer = io.StringIO()
    writer = _writer(buffer)
    writer.writerow(headers)

    for key in sorted(groups):
        rows = groups[key]
        total = len(rows)
        times = [r.time_to_result_ms for r in rows if r.time_to_result_ms and r.time_to_result_ms > 0]

        row = [
            key,
            total,
            len({r.email.lower() for r in rows}),
            f"{sum(r.score for r in rows) / total:.1f}",
            *(_pct(sum(1 for r in rows if r.level == level), total) for level in RiskLevel),
            f"{sum(times) / len(times) / 1000:.1f}" if times else "0.0",
            _pct(sum(1 for r in rows if r.downloaded_pdf), total),
        ]

        if include_time_distribution:
            row.extend(
                _pct(sum(1 for t in times if low <= t < high), len(times))
                for _, low, high in _TIME_BUCKETS
            )
        if include_feedback_stats:
            row.extend([
                _pct(sum(1 for r in rows if r.feedback == Feedback.YES), total),
                _pct(sum(1 for r in rows if r.feedback == Feedback.NO), total),
                _pct(sum(1 for r in rows if r.feedback is None), total),
            ])

        writer.writerow(row)

    return buffer.getvalue()

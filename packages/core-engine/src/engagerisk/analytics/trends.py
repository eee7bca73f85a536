"""Time series and trend insights over stored assessments."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from engagerisk_shared.constants.constants import MAX_SCORE
from engagerisk_shared.types.enums import ContractType, RiskLevel
from engagerisk_shared.types.models import (
    AssessmentRecord,
    Dataset,
    Insight,
    TimeSeries,
    TrendAnalysis,
)

from engagerisk.analytics.aggregates import percent

logger = logging.getLogger(__name__)

PERIODS = ("hour", "day", "week", "month")
METRICS = ("submissions", "risk-levels", "countries", "contract-types", "performance")
ANALYSIS_TYPES = ("growth", "risk-patterns", "user-behavior", "geographical", "overview")

_TOP_COUNTRIES = 5


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def period_key(ts: datetime, period: str) -> str:
    """Bucket key for a timestamp; weeks start on Sunday."""
    ts = _as_utc(ts)
    if period == "hour":
        return ts.strftime("%Y-%m-%dT%H:00")
    if period == "week":
        start = ts - timedelta(days=(ts.weekday() + 1) % 7)
        return start.strftime("%Y-%m-%d")
    if period == "month":
        return ts.strftime("%Y-%m")
    return ts.strftime("%Y-%m-%d")


def group_by_period(
    records: Iterable[AssessmentRecord],
    period: str,
) -> dict[str, list[AssessmentRecord]]:
    """Group records by period key, keys in ascending order."""
    grouped: dict[str, list[AssessmentRecord]] = defaultdict(list)
    for record in records:
        grouped[period_key(record.timestamp, period)].append(record)
    return dict(sorted(grouped.items()))


def top_countries(records: Iterable[AssessmentRecord], limit: int) -> list[tuple[str, int]]:
    """Most frequent countries; ties are ordered alphabetically."""
    counts = Counter(r.country for r in records)
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]


# ─── Time Series ──────────────────────────────────────────────────────────────


def build_time_series(
    records: Iterable[AssessmentRecord],
    metric: str = "submissions",
    period: str = "day",
    days: int = 30,
    now: Optional[datetime] = None,
) -> TimeSeries:
    """Build a chart-ready time series.

    Args:
        records: Stored assessments.
        metric: One of ``METRICS``; anything else means "submissions".
        period: One of ``PERIODS``; anything else means "day".
        days: Only records from the last ``days`` days are included.
        now: Reference time, defaults to the current UTC time.

    Returns:
        TimeSeries with one label per period that has data.
    """
    if metric not in METRICS:
        logger.debug("Unknown metric %r, using submissions", metric)
        metric = "submissions"
    if period not in PERIODS:
        period = "day"

    cutoff = _as_utc(now or datetime.now(tz=timezone.utc)) - timedelta(days=days)
    recent = [r for r in records if _as_utc(r.timestamp) >= cutoff]
    grouped = group_by_period(recent, period)

    builder = _SERIES_BUILDERS[metric]
    return TimeSeries(
        metric=metric,
        period=period,
        labels=list(grouped),
        datasets=builder(grouped),
    )


def _submissions_series(grouped: dict[str, list[AssessmentRecord]]) -> list[Dataset]:
    return [
        Dataset(label="Total Submissions", data=[len(rows) for rows in grouped.values()]),
        Dataset(
            label="Unique Users",
            data=[len({r.email.lower() for r in rows}) for rows in grouped.values()],
        ),
    ]


def _risk_levels_series(grouped: dict[str, list[AssessmentRecord]]) -> list[Dataset]:
    return [
        Dataset(
            label=f"{level.value} Risk",
            data=[sum(1 for r in rows if r.level == level) for rows in grouped.values()],
        )
        for level in RiskLevel
    ]


def _countries_series(grouped: dict[str, list[AssessmentRecord]]) -> list[Dataset]:
    everything = [r for rows in grouped.values() for r in rows]
    return [
        Dataset(
            label=country,
            data=[sum(1 for r in rows if r.country == country) for rows in grouped.values()],
        )
        for country, _ in top_countries(everything, _TOP_COUNTRIES)
    ]


_CONTRACT_TYPE_LABELS = {
    ContractType.INDEPENDENT: "Independent",
    ContractType.AGENCY: "Agency",
    ContractType.EOR: "EOR",
}


def _contract_types_series(grouped: dict[str, list[AssessmentRecord]]) -> list[Dataset]:
    return [
        Dataset(
            label=label,
            data=[sum(1 for r in rows if r.contract_type == ct) for rows in grouped.values()],
        )
        for ct, label in _CONTRACT_TYPE_LABELS.items()
    ]


def _performance_series(grouped: dict[str, list[AssessmentRecord]]) -> list[Dataset]:
    avg_seconds = []
    download_rates = []
    for rows in grouped.values():
        times = [r.time_to_result_ms for r in rows if r.time_to_result_ms and r.time_to_result_ms > 0]
        avg_seconds.append(sum(times) / len(times) / 1000 if times else 0.0)
        download_rates.append(
            sum(1 for r in rows if r.downloaded_pdf) / len(rows) * 100 if rows else 0.0
        )
    return [
        Dataset(label="Avg Response Time (s)", data=avg_seconds),
        Dataset(label="Report Download Rate (%)", data=download_rates),
    ]


_SERIES_BUILDERS: dict[str, Callable[[dict[str, list[AssessmentRecord]]], list[Dataset]]] = {
    "submissions": _submissions_series,
    "risk-levels": _risk_levels_series,
    "countries": _countries_series,
    "contract-types": _contract_types_series,
    "performance": _performance_series,
}


# ─── Trend Analysis ───────────────────────────────────────────────────────────


def analyze_trends(
    records: Iterable[AssessmentRecord],
    analysis_type: str = "overview",
    period: str = "day",
) -> TrendAnalysis:
    """Summarize stored assessments into trend rows and insight messages.

    Unknown analysis types fall back to "overview". With no records the
    result has no trends and no insights.
    """
    records = list(records)
    if analysis_type not in ANALYSIS_TYPES:
        analysis_type = "overview"
    if period not in PERIODS:
        period = "day"

    if not records:
        return TrendAnalysis(analysis_type=analysis_type)

    if analysis_type == "growth":
        return _growth(records, period)
    elif analysis_type == "risk-patterns":
        return _risk_patterns(records)
    elif analysis_type == "user-behavior":
        return _user_behavior(records)
    elif analysis_type == "geographical":
        return _geographical(records)
    return _overview(records, period)


def _growth(records: list[AssessmentRecord], period: str) -> TrendAnalysis:
    grouped = group_by_period(records, period)
    keys = list(grouped)

    trends = []
    for previous, current in zip(keys, keys[1:]):
        prev_count = len(grouped[previous])
        cur_count = len(grouped[current])
        rate = (cur_count - prev_count) / prev_count * 100 if prev_count else 0.0
        trends.append({
            "period": current,
            "growth_rate": round(rate, 1),
            "submissions": cur_count,
        })

    if trends:
        average = sum(t["growth_rate"] for t in trends) / len(trends)
        message = f"Average growth rate: {average:.1f}%"
    else:
        message = "Insufficient data for growth analysis"

    return TrendAnalysis(
        analysis_type="growth",
        trends=trends,
        insights=[Insight(type="growth", message=message)],
    )


def _risk_patterns(records: list[AssessmentRecord]) -> TrendAnalysis:
    counts = {level: sum(1 for r in records if r.level == level) for level in RiskLevel}
    high_share = counts[RiskLevel.HIGH] / len(records) * 100

    if counts[RiskLevel.LOW] > counts[RiskLevel.HIGH]:
        dominant = "Most assessments are classified as Low risk"
    else:
        dominant = "High risk assessments are common"

    return TrendAnalysis(
        analysis_type="risk-patterns",
        trends=[{"level": level.value, "count": count} for level, count in counts.items()],
        insights=[
            Insight(type="risk", message=f"{high_share:.1f}% of assessments result in High risk"),
            Insight(type="risk", message=dominant),
        ],
    )


def _user_behavior(records: list[AssessmentRecord]) -> TrendAnalysis:
    total = len(records)
    download_rate = sum(1 for r in records if r.downloaded_pdf) / total * 100
    feedback_rate = sum(1 for r in records if r.feedback is not None) / total * 100

    return TrendAnalysis(
        analysis_type="user-behavior",
        trends=[
            {"metric": "Report Downloads", "percentage": round(download_rate, 1)},
            {"metric": "Feedback Rate", "percentage": round(feedback_rate, 1)},
        ],
        insights=[
            Insight(type="behavior", message=f"{download_rate:.1f}% of users download the report"),
            Insight(type="behavior", message=f"{feedback_rate:.1f}% of users provide feedback"),
        ],
    )


def _geographical(records: list[AssessmentRecord]) -> TrendAnalysis:
    ranked = top_countries(records, 10)
    distinct = len({r.country for r in records})
    top_country, top_count = ranked[0]

    return TrendAnalysis(
        analysis_type="geographical",
        trends=[{"country": country, "count": count} for country, count in ranked],
        insights=[
            Insight(type="geographical", message=f"Top country: {top_country} ({top_count} submissions)"),
            Insight(type="geographical", message=f"{distinct} countries represented"),
        ],
    )


def _overview(records: list[AssessmentRecord], period: str) -> TrendAnalysis:
    grouped = group_by_period(records, period)
    recent_keys = list(grouped)[-7:]

    avg_submissions = sum(len(grouped[k]) for k in recent_keys) / len(recent_keys)
    avg_score = sum(r.score for r in records) / len(records)

    return TrendAnalysis(
        analysis_type="overview",
        trends=[
            {
                "period": key,
                "submissions": len(grouped[key]),
                "avg_risk_score": round(sum(r.score for r in grouped[key]) / len(grouped[key]), 2),
            }
            for key in recent_keys
        ],
        insights=[
            Insight(type="overview", message=f"Average {avg_submissions:.1f} submissions per {period}"),
            Insight(type="overview", message=f"Average risk score: {avg_score:.1f}/{MAX_SCORE}"),
            Insight(
                type="overview",
                message=f"{percent(sum(1 for r in records if r.level == RiskLevel.HIGH), len(records))}% "
                "of all assessments are High risk",
            ),
        ],
    )

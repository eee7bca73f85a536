"""Admin dashboard aggregates for EngageRisk.

Buckets stored assessments into the usage statistics shown to admins:
distinct users, time-to-result histogram, report download rate,
feedback split and risk level distribution.
"""

from __future__ import annotations

import math
from typing import Iterable

from engagerisk_shared.types.enums import Feedback, RiskLevel
from engagerisk_shared.types.models import (
    AdminAggregates,
    AssessmentRecord,
    FeedbackDistribution,
    TimeDistribution,
)


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, rounding halves up; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def bucket_time(seconds: float, distribution: TimeDistribution) -> None:
    """Count one time-to-result sample into its histogram bucket."""
    if seconds < 15:
        distribution.under_15s += 1
    elif seconds < 30:
        distribution.from_15_to_30s += 1
    elif seconds < 60:
        distribution.from_30_to_60s += 1
    elif seconds < 120:
        distribution.from_60_to_120s += 1
    else:
        distribution.over_120s += 1


def compute_aggregates(records: Iterable[AssessmentRecord]) -> AdminAggregates:
    """Compute dashboard statistics over a set of assessments.

    Args:
        records: Stored assessments, in any order.

    Returns:
        AdminAggregates; all zeros when there are no records.
    """
    records = list(records)
    if not records:
        return AdminAggregates()

    emails: set[str] = set()
    timings: list[float] = []
    time_distribution = TimeDistribution()
    feedback = FeedbackDistribution()
    levels = {level.value: 0 for level in RiskLevel}
    downloads = 0
    score_total = 0

    for record in records:
        if record.email:
            emails.add(record.email.lower())

        if record.time_to_result_ms:
            seconds = record.time_to_result_ms / 1000
            timings.append(seconds)
            bucket_time(seconds, time_distribution)

        if record.downloaded_pdf:
            downloads += 1

        if record.feedback == Feedback.YES:
            feedback.useful += 1
        elif record.feedback == Feedback.NO:
            feedback.not_useful += 1
        else:
            feedback.no_response += 1

        levels[record.level.value] += 1
        score_total += record.score

    total = len(records)
    answered = feedback.useful + feedback.not_useful

    return AdminAggregates(
        total_users=len(emails),
        total_submissions=total,
        avg_time_to_result=sum(timings) / len(timings) if timings else 0.0,
        avg_score=round(score_total / total, 2),
        pdf_download_rate=percent(downloads, total),
        feedback_useful_rate=percent(feedback.useful, answered),
        time_distribution=time_distribution,
        feedback_distribution=feedback,
        level_distribution=levels,
    )

"""
Engagement funnel: invitations -> registrations -> check-ins -> completions.

``build_funnel_report`` is a pure function of the summary counts. It does not
check that the counts shrink from stage to stage. Any percentage whose
denominator is zero comes back as ``None`` and renders as "N/A".
"""

import math
from typing import Optional

from app.constants.constants import FUNNEL_STAGES
from app.schemas.analyticsSchema import FunnelDropOff, FunnelReport, FunnelStage, FunnelSummary

NOT_AVAILABLE = "N/A"


def percent(part: int, whole: int) -> Optional[int]:
    """Integer percentage rounded half-up, or None for a zero denominator."""
    if not whole:
        return None
    return int(math.floor(part * 100 / whole + 0.5))


def format_percentage(value: Optional[int]) -> str:
    return NOT_AVAILABLE if value is None else f"{value}%"


def build_funnel_report(summary: FunnelSummary) -> FunnelReport:
    counts = [getattr(summary, field) for field, _, _ in FUNNEL_STAGES]
    max_count = max(counts)

    stages = []
    for index, (field, label, color) in enumerate(FUNNEL_STAGES):
        count = counts[index]
        stages.append(FunnelStage(
            name=label,
            count=count,
            color=color,
            percentage=percent(count, summary.invited),
            conversion_from_previous=percent(count, counts[index - 1]) if index > 0 else None,
            width=(count * 100 / max_count) if max_count else 0.0,
        ))

    drop_offs = []
    for previous, current in zip(stages, stages[1:]):
        dropped = previous.count - current.count
        drop_offs.append(FunnelDropOff(
            from_stage=previous.name,
            to_stage=current.name,
            count=dropped,
            percentage=percent(dropped, previous.count),
        ))

    return FunnelReport(
        stages=stages,
        registration_rate=percent(summary.registered, summary.invited),
        completion_rate=percent(summary.completed, summary.registered),
        drop_offs=drop_offs,
    )

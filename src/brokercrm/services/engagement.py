"""Relationship engagement metrics for a customer dashboard.

Everything here is a pure function of the policies, opportunities and
activities handed in plus the reference instant ``now``. Nothing is cached
or persisted; callers recompute on every render.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from brokercrm.domain.models import (
    Activity,
    ActivityFrequency,
    EngagementMetrics,
    Opportunity,
    Policy,
    RelationshipHealth,
    TrendPoint,
)
from brokercrm.domain.rules import coerce_datetime
from brokercrm.domain.stages import HealthLevel, Trend

TREND_MONTHS = 6


@dataclass(frozen=True)
class ScoringWeights:
    """Business parameters of the relationship health score.

    The defaults reproduce the product's current heuristic; a workspace may
    override any field under its ``scoring:`` section.
    """

    policy_points: int = 5
    policy_max: int = 25
    opportunity_points: int = 4
    opportunity_max: int = 20
    recent_activity_points: int = 3
    recent_activity_max: int = 30
    recent_window_days: int = 30
    diversity_points: int = 3
    diversity_max: int = 15
    consistency_max: int = 10
    consistency_window_days: int = 180
    consistency_months: int = 6
    trend_points_per_activity: int = 10
    excellent_cut: int = 80
    good_cut: int = 60
    fair_cut: int = 40


DEFAULT_WEIGHTS = ScoringWeights()

HEALTH_LABELS = {
    HealthLevel.EXCELLENT.value: "Excelente",
    HealthLevel.GOOD.value: "Bom",
    HealthLevel.FAIR.value: "Regular",
    HealthLevel.POOR.value: "Ruim",
}

TREND_LABELS = {
    Trend.UP.value: "Aumentou",
    Trend.DOWN.value: "Diminuiu",
    Trend.STABLE.value: "Estável",
}


def calculate_engagement_metrics(
    policies: Sequence[Policy],
    opportunities: Sequence[Opportunity],
    activities: Sequence[Activity],
    now: datetime | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> EngagementMetrics:
    now = _local_naive(now or datetime.now())
    moments = [_activity_moment(activity) for activity in activities]
    dated = [moment for moment in moments if moment is not None]

    this_month = (now.year, now.month)
    last_month = _shift_month(now.year, now.month, -1)
    this_month_count = sum(1 for moment in dated if (moment.year, moment.month) == this_month)
    last_month_count = sum(1 for moment in dated if (moment.year, moment.month) == last_month)

    if this_month_count > last_month_count:
        trend = Trend.UP
    elif this_month_count < last_month_count:
        trend = Trend.DOWN
    else:
        trend = Trend.STABLE

    return EngagementMetrics(
        policy_count=len(policies),
        opportunity_count=len(opportunities),
        activity_frequency=ActivityFrequency(
            total=len(activities),
            this_month=this_month_count,
            last_month=last_month_count,
            trend=trend.value,
        ),
        relationship_health=relationship_health(policies, opportunities, activities, now, weights),
        engagement_trend=engagement_trend(activities, now, weights),
    )


def relationship_health(
    policies: Sequence[Policy],
    opportunities: Sequence[Opportunity],
    activities: Sequence[Activity],
    now: datetime,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> RelationshipHealth:
    now = _local_naive(now)
    dated = [m for m in (_activity_moment(a) for a in activities) if m is not None]
    factors: list[str] = []
    score = 0

    policy_score = min(len(policies) * weights.policy_points, weights.policy_max)
    score += policy_score
    if policy_score > 0:
        factors.append(_plural(len(policies), "apólice ativa", "apólices ativas"))

    opportunity_score = min(len(opportunities) * weights.opportunity_points, weights.opportunity_max)
    score += opportunity_score
    if opportunity_score > 0:
        factors.append(_plural(len(opportunities), "oportunidade em andamento", "oportunidades em andamento"))

    recent_cutoff = now - timedelta(days=weights.recent_window_days)
    recent = sum(1 for moment in dated if moment >= recent_cutoff)
    recent_score = min(recent * weights.recent_activity_points, weights.recent_activity_max)
    score += recent_score
    if recent_score > 0:
        factors.append(
            _plural(recent, "atividade", "atividades") + f" nos últimos {weights.recent_window_days} dias"
        )

    kinds = {activity.type for activity in activities if activity.type}
    diversity_score = min(len(kinds) * weights.diversity_points, weights.diversity_max)
    score += diversity_score
    if diversity_score > 0:
        factors.append(
            _plural(len(kinds), "tipo de interação", "tipos diferentes de interação")
        )

    consistency_score, active_months = _consistency(dated, len(activities), now, weights)
    score += consistency_score
    if consistency_score > 0:
        factors.append(
            f"Interações em {active_months} dos últimos {weights.consistency_months} meses"
        )

    score = max(0, min(score, 100))
    return RelationshipHealth(score=score, level=health_level(score, weights), factors=tuple(factors))


def engagement_trend(
    activities: Sequence[Activity],
    now: datetime,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> tuple[TrendPoint, ...]:
    now = _local_naive(now)
    counts: dict[tuple[int, int], int] = {}
    for activity in activities:
        moment = _activity_moment(activity)
        if moment is None:
            continue
        key = (moment.year, moment.month)
        counts[key] = counts.get(key, 0) + 1

    points = []
    for offset in range(TREND_MONTHS - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        count = counts.get((year, month), 0)
        points.append(
            TrendPoint(
                period=f"{year:04d}-{month:02d}",
                activities=count,
                score=min(count * weights.trend_points_per_activity, 100),
            )
        )
    return tuple(points)


def health_level(score: int, weights: ScoringWeights = DEFAULT_WEIGHTS) -> str:
    if score >= weights.excellent_cut:
        return HealthLevel.EXCELLENT.value
    if score >= weights.good_cut:
        return HealthLevel.GOOD.value
    if score >= weights.fair_cut:
        return HealthLevel.FAIR.value
    return HealthLevel.POOR.value


def health_level_label(level: str) -> str:
    return HEALTH_LABELS.get(level, "Indefinido")


def trend_label(trend: str) -> str:
    return TREND_LABELS.get(trend, TREND_LABELS[Trend.STABLE.value])


def _consistency(
    dated: list[datetime], total: int, now: datetime, weights: ScoringWeights
) -> tuple[int, int]:
    if total < 2 or weights.consistency_months <= 0:
        return 0, 0
    cutoff = now - timedelta(days=weights.consistency_window_days)
    recent = [moment for moment in dated if moment >= cutoff]
    if len(recent) < 2:
        return 0, 0
    months = len({(moment.year, moment.month) for moment in recent})
    raw = months / weights.consistency_months * weights.consistency_max
    return min(math.floor(raw + 0.5), weights.consistency_max), months


def _activity_moment(activity: Activity) -> datetime | None:
    moment = coerce_datetime(activity.date)
    if moment is None:
        return None
    return _local_naive(moment)


def _local_naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"

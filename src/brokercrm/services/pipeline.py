from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from brokercrm.domain.models import Opportunity
from brokercrm.domain.stages import CLOSED_STAGES, STAGE_PROBABILITY, OpportunityStage


@dataclass(frozen=True)
class StageSummary:
    stage: str
    count: int
    value: float
    probability: int


@dataclass(frozen=True)
class PipelineSummary:
    total_value: float
    average_value: float
    win_rate: float
    active: int
    won: int
    lost: int
    weighted_value: float
    stages: tuple[StageSummary, ...]


def stage_probability(stage: str) -> int:
    try:
        return STAGE_PROBABILITY[OpportunityStage(stage)]
    except ValueError:
        return 0


def summarize_pipeline(opportunities: Sequence[Opportunity]) -> PipelineSummary:
    total_value = sum(opp.value for opp in opportunities)
    won = sum(1 for opp in opportunities if opp.stage == OpportunityStage.WON.value)
    lost = sum(1 for opp in opportunities if opp.stage == OpportunityStage.LOST.value)
    closed = {stage.value for stage in CLOSED_STAGES}
    active = sum(1 for opp in opportunities if opp.stage not in closed)
    count = len(opportunities)

    stages = []
    for stage in OpportunityStage:
        members = [opp for opp in opportunities if opp.stage == stage.value]
        stages.append(
            StageSummary(
                stage=stage.value,
                count=len(members),
                value=sum(opp.value for opp in members),
                probability=STAGE_PROBABILITY[stage],
            )
        )

    return PipelineSummary(
        total_value=total_value,
        average_value=total_value / count if count else 0.0,
        win_rate=won / count * 100 if count else 0.0,
        active=active,
        won=won,
        lost=lost,
        weighted_value=sum(opp.value * stage_probability(opp.stage) / 100 for opp in opportunities),
        stages=tuple(stages),
    )


def filter_opportunities(
    opportunities: Sequence[Opportunity],
    search: str | None = None,
    stage: str | None = None,
) -> list[Opportunity]:
    needle = (search or "").strip().lower()
    result = []
    for opp in opportunities:
        if stage and opp.stage != stage:
            continue
        if needle:
            haystack = [opp.name, opp.product_name or "", opp.user_name or ""]
            if not any(needle in text.lower() for text in haystack):
                continue
        result.append(opp)
    return result

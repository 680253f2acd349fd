from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from brokercrm.adapters.api.client import BrokerApiClient, call_with_retry
from brokercrm.domain.models import EngagementMetrics, Policy
from brokercrm.services import engagement, renewals
from brokercrm.services.pipeline import PipelineSummary, summarize_pipeline
from brokercrm.services.records import CustomerProfile, get_customer_profile


@dataclass(frozen=True)
class RenewalRow:
    policy: Policy
    alert: renewals.RenewalAlert


@dataclass(frozen=True)
class Dashboard:
    profile: CustomerProfile
    metrics: EngagementMetrics
    policy_stats: renewals.PolicyStats
    renewals_due: list[RenewalRow]
    pipeline: PipelineSummary


def load_dashboard(
    client: BrokerApiClient,
    customer_id: str,
    attempts: int = 3,
    delay: float = 1.0,
    weights: engagement.ScoringWeights = engagement.DEFAULT_WEIGHTS,
    now: datetime | None = None,
) -> Dashboard:
    """Fetch the customer profile (retrying transient failures) and derive every read-model."""
    profile = call_with_retry(
        lambda: get_customer_profile(client, customer_id), attempts=attempts, delay=delay
    )
    return build_dashboard(profile, weights=weights, now=now)


def build_dashboard(
    profile: CustomerProfile,
    weights: engagement.ScoringWeights = engagement.DEFAULT_WEIGHTS,
    now: datetime | None = None,
) -> Dashboard:
    now = now or datetime.now()
    today: date = now.date()
    rows = []
    for policy in profile.policies:
        alert = renewals.renewal_alert(policy.issue_date, policy.renewal, today)
        if alert.show:
            rows.append(RenewalRow(policy=policy, alert=alert))
    rows.sort(key=lambda row: row.alert.days)
    return Dashboard(
        profile=profile,
        metrics=engagement.calculate_engagement_metrics(
            profile.policies, profile.opportunities, profile.activities, now=now, weights=weights
        ),
        policy_stats=renewals.policy_stats(profile.policies, today),
        renewals_due=rows,
        pipeline=summarize_pipeline(profile.opportunities),
    )

from datetime import date, datetime, timezone

from brokercrm.domain.models import Activity, Opportunity, Policy
from brokercrm.services.engagement import (
    ScoringWeights,
    calculate_engagement_metrics,
    engagement_trend,
    health_level,
    health_level_label,
    trend_label,
)

NOW = datetime(2025, 6, 15, 12, 0)


def _policy(pid: str = "p1") -> Policy:
    return Policy(id=pid, situation_document="4", renewal="1", issue_date="2024-07-01", total_prize=1000.0)


def _opportunity(oid: str = "o1") -> Opportunity:
    return Opportunity(id=oid, name="Auto", stage="Nova", value=500.0)


def _activity(when, kind: str = "call", aid: str = "a") -> Activity:
    return Activity(id=aid, type=kind, date=when)


def test_empty_inputs_give_baseline() -> None:
    metrics = calculate_engagement_metrics([], [], [], now=NOW)

    assert metrics.policy_count == 0
    assert metrics.opportunity_count == 0
    assert metrics.activity_frequency.total == 0
    assert metrics.activity_frequency.this_month == 0
    assert metrics.activity_frequency.last_month == 0
    assert metrics.activity_frequency.trend == "stable"
    assert metrics.relationship_health.score == 0
    assert metrics.relationship_health.level == "poor"
    assert metrics.relationship_health.factors == ()
    assert [p.period for p in metrics.engagement_trend] == [
        "2025-01",
        "2025-02",
        "2025-03",
        "2025-04",
        "2025-05",
        "2025-06",
    ]
    assert all(p.activities == 0 and p.score == 0 for p in metrics.engagement_trend)


def test_counts_and_weighted_health_score() -> None:
    activities = [
        _activity(datetime(2025, 6, 1, 9), "call"),
        _activity(datetime(2025, 6, 10, 9), "email"),
        _activity(datetime(2025, 6, 14, 9), "note"),
        _activity(datetime(2025, 5, 20, 9), "call"),
    ]
    metrics = calculate_engagement_metrics(
        [_policy("p1"), _policy("p2")], [_opportunity()], activities, now=NOW
    )

    assert metrics.policy_count == 2
    assert metrics.opportunity_count == 1
    assert metrics.activity_frequency.total == 4
    assert metrics.activity_frequency.this_month == 3
    assert metrics.activity_frequency.last_month == 1
    assert metrics.activity_frequency.trend == "up"

    health = metrics.relationship_health
    # 2 policies (10) + 1 opportunity (4) + 4 recent (12) + 3 types (9) + 2 of 6 months (3)
    assert health.score == 38
    assert health.level == "poor"
    assert len(health.factors) == 5
    assert health.factors[0] == "2 apólices ativas"
    assert health.factors[1] == "1 oportunidade em andamento"


def test_trend_down_when_last_month_was_busier() -> None:
    activities = [
        _activity(datetime(2025, 5, 2), aid="1"),
        _activity(datetime(2025, 5, 3), aid="2"),
        _activity(datetime(2025, 6, 1), aid="3"),
    ]
    metrics = calculate_engagement_metrics([], [], activities, now=NOW)
    assert metrics.activity_frequency.trend == "down"
    assert trend_label(metrics.activity_frequency.trend) == "Diminuiu"


def test_month_boundaries_follow_the_calendar() -> None:
    now = datetime(2025, 3, 1, 0, 30)
    activities = [
        _activity(datetime(2025, 2, 28, 23, 59)),
        _activity(datetime(2025, 3, 1, 0, 0)),
        _activity(datetime(2025, 1, 31, 12, 0)),
    ]
    metrics = calculate_engagement_metrics([], [], activities, now=now)
    assert metrics.activity_frequency.this_month == 1
    assert metrics.activity_frequency.last_month == 1


def test_score_is_clamped_to_100() -> None:
    weights = ScoringWeights(policy_points=50, policy_max=200)
    metrics = calculate_engagement_metrics(
        [_policy("p1"), _policy("p2"), _policy("p3")], [], [], now=NOW, weights=weights
    )
    assert metrics.relationship_health.score == 100
    assert metrics.relationship_health.level == "excellent"


def test_component_caps_apply() -> None:
    policies = [_policy(str(i)) for i in range(10)]
    opportunities = [_opportunity(str(i)) for i in range(10)]
    metrics = calculate_engagement_metrics(policies, opportunities, [], now=NOW)
    assert metrics.relationship_health.score == 45


def test_consistency_needs_two_activities() -> None:
    metrics = calculate_engagement_metrics([], [], [_activity(datetime(2025, 6, 1))], now=NOW)
    # 1 recent activity (3) + 1 type (3), no consistency points
    assert metrics.relationship_health.score == 6
    assert len(metrics.relationship_health.factors) == 2


def test_undated_activities_only_count_towards_total() -> None:
    activities = [_activity(None, aid="1"), _activity(datetime(2025, 6, 2), aid="2")]
    metrics = calculate_engagement_metrics([], [], activities, now=NOW)
    assert metrics.activity_frequency.total == 2
    assert metrics.activity_frequency.this_month == 1
    assert sum(p.activities for p in metrics.engagement_trend) == 1


def test_date_only_values_are_accepted() -> None:
    metrics = calculate_engagement_metrics([], [], [_activity(date(2025, 6, 3))], now=NOW)
    assert metrics.activity_frequency.this_month == 1


def test_engagement_trend_crosses_year_and_caps_score() -> None:
    activities = [_activity(datetime(2025, 1, day), aid=str(day)) for day in range(1, 13)]
    activities.append(_activity(datetime(2024, 10, 5), aid="old"))
    points = engagement_trend(activities, datetime(2025, 2, 10))

    assert [p.period for p in points] == [
        "2024-09",
        "2024-10",
        "2024-11",
        "2024-12",
        "2025-01",
        "2025-02",
    ]
    assert points[1].activities == 1
    assert points[1].score == 10
    assert points[4].activities == 12
    assert points[4].score == 100


def test_metrics_are_deterministic_for_fixed_now() -> None:
    activities = [_activity(datetime(2025, 6, 1), "meeting"), _activity(datetime(2025, 4, 1), "call")]
    first = calculate_engagement_metrics([_policy()], [_opportunity()], activities, now=NOW)
    second = calculate_engagement_metrics([_policy()], [_opportunity()], activities, now=NOW)
    assert first == second


def test_health_level_cut_points() -> None:
    assert health_level(80) == "excellent"
    assert health_level(79) == "good"
    assert health_level(60) == "good"
    assert health_level(59) == "fair"
    assert health_level(40) == "fair"
    assert health_level(39) == "poor"
    assert health_level_label("good") == "Bom"


def test_iso_string_dates_from_the_api() -> None:
    raw = [
        {"id": "1", "type": "call", "date": "2025-06-10T09:00:00Z"},
        {"id": "2", "type": "email", "date": "2025-06-12T15:30:00.000Z"},
        {"id": "3", "type": "note", "date": "2025-05-14T08:00:00-03:00"},
        {"id": "4", "type": "meeting", "date": "2025-04-15"},
    ]
    activities = [Activity.from_api(item) for item in raw]
    metrics = calculate_engagement_metrics([], [], activities, now=NOW)

    assert metrics.activity_frequency.this_month == 2
    assert metrics.activity_frequency.last_month == 1
    assert [p.activities for p in metrics.engagement_trend][-3:] == [1, 1, 2]


def test_equal_string_and_datetime_inputs_give_equal_metrics() -> None:
    from_strings = [
        Activity.from_api({"id": "1", "type": "call", "date": "2025-06-10T09:00:00Z"}),
        Activity.from_api({"id": "2", "type": "email", "date": "2025-05-14T12:00:00Z"}),
    ]
    from_datetimes = [
        _activity(datetime(2025, 6, 10, 9, 0, tzinfo=timezone.utc), "call", "1"),
        _activity(datetime(2025, 5, 14, 12, 0, tzinfo=timezone.utc), "email", "2"),
    ]
    first = calculate_engagement_metrics([_policy()], [], from_strings, now=NOW)
    second = calculate_engagement_metrics([_policy()], [], from_strings, now=NOW)
    third = calculate_engagement_metrics([_policy()], [], from_datetimes, now=NOW)
    assert first == second == third

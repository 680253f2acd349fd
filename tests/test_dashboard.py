import time
from datetime import datetime

import pytest

from brokercrm.adapters.api.client import ApiError, TransportError
from brokercrm.services.dashboard import load_dashboard

NOW = datetime(2025, 6, 15, 12, 0)

CUSTOMER = {
    "id": "c1",
    "name": "Maria Souza",
    "policies": [
        {"id": "p1", "policyNumber": "A-1", "situationDocument": "4", "renewal": "1", "issueDate": "2024-07-20", "totalPrize": 900},
        {"id": "p2", "policyNumber": "A-2", "situationDocument": "4", "renewal": "1", "issueDate": "2024-06-25", "totalPrize": 100},
        {"id": "p3", "situationDocument": "1", "renewal": "2", "issueDate": "2024-06-25"},
    ],
    "opportunities": [{"id": "o1", "name": "Vida", "stage": "Ganha", "value": 2000}],
    "activities": [{"id": "a1", "type": "call", "date": "2025-06-10T09:00:00"}],
}


class FlakyClient:
    def __init__(self, failures) -> None:
        self.failures = list(failures)
        self.calls = 0

    def get(self, path, params=None):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return {"customer": CUSTOMER}


def test_dashboard_derives_every_read_model() -> None:
    dashboard = load_dashboard(FlakyClient([]), "c1", now=NOW)

    assert dashboard.metrics.policy_count == 3
    assert dashboard.metrics.activity_frequency.this_month == 1
    assert [row.policy.id for row in dashboard.renewals_due] == ["p2", "p1"]
    assert dashboard.renewals_due[0].alert.urgent
    assert dashboard.policy_stats.renewals_due == 2
    assert dashboard.policy_stats.total_premium == 1000.0
    assert dashboard.pipeline.won == 1


def test_dashboard_retries_transient_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    client = FlakyClient([TransportError("down"), ApiError("busy", status_code=502)])
    delays = []
    monkeypatch.setattr(time, "sleep", delays.append)
    dashboard = load_dashboard(client, "c1", attempts=3, delay=0.1, now=NOW)
    assert client.calls == 3
    assert len(delays) == 2
    assert dashboard.profile.customer.id == "c1"


def test_dashboard_does_not_retry_not_found() -> None:
    client = FlakyClient([ApiError("Cliente não encontrado", status_code=404)])
    with pytest.raises(ApiError):
        load_dashboard(client, "c1", attempts=3, delay=0, now=NOW)
    assert client.calls == 1

import json
from datetime import datetime
from pathlib import Path

import openpyxl
import pytest
from typer.testing import CliRunner

from brokercrm import cli
from brokercrm.adapters.api.client import ApiError

runner = CliRunner()


class FakeClient:
    def __init__(self, responses=None) -> None:
        self.calls = []
        self.responses = responses or {}

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    def _reply(self, method, path, **kwargs):
        self.calls.append({"method": method, "path": path, **kwargs})
        reply = self.responses.get((method, path), {"id": "new-id"})
        if isinstance(reply, Exception):
            raise reply
        return reply

    def get(self, path, params=None):
        return self._reply("GET", path, params=params)

    def post(self, path, json=None):
        return self._reply("POST", path, json=json)

    def put(self, path, json=None):
        return self._reply("PUT", path, json=json)

    def patch(self, path, json=None):
        return self._reply("PATCH", path, json=json)

    def delete(self, path, params=None):
        return self._reply("DELETE", path, params=params)


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(cli.app, ["workspace", "add", "demo", "--base-url", "http://crm.test"])
    assert result.exit_code == 0, result.output
    return tmp_path


def _use(monkeypatch: pytest.MonkeyPatch, client: FakeClient) -> FakeClient:
    monkeypatch.setattr(cli, "_client", lambda ws: client)
    return client


def test_workspace_add_refuses_to_overwrite(workspace: Path) -> None:
    result = runner.invoke(cli.app, ["workspace", "add", "demo"])
    assert result.exit_code != 0
    assert (workspace / "workspaces" / ".current").read_text(encoding="utf-8").strip() == "demo"


def test_commands_require_a_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(cli.app, ["customer", "list"])
    assert result.exit_code == 1
    assert "No active workspace" in result.output


def test_customer_dashboard(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    now = datetime.now().replace(microsecond=0).isoformat()
    client = _use(
        monkeypatch,
        FakeClient(
            {
                ("GET", "/api/clientes/c1"): {
                    "customer": {
                        "id": "c1",
                        "name": "Maria Souza",
                        "policies": [{"id": "p1", "situationDocument": "4", "renewal": "2"}],
                        "activities": [{"id": "a1", "type": "call", "date": now}],
                    }
                }
            }
        ),
    )

    result = runner.invoke(cli.app, ["customer", "dashboard", "c1"])

    assert result.exit_code == 0, result.output
    assert "Maria Souza" in result.output
    assert "Relationship health: 11/100 (Ruim)" in result.output
    assert "1 apólice ativa" in result.output
    assert client.calls[0]["path"] == "/api/clientes/c1"


def test_validation_errors_exit_before_any_request(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client = _use(monkeypatch, FakeClient())

    result = runner.invoke(
        cli.app, ["opportunity", "add", "c1", "--name", "Auto", "--stage", "Fechada", "--no-events"]
    )

    assert result.exit_code == 1
    assert "Error: stage must be one of" in result.output
    assert client.calls == []


def test_auth_errors_exit_with_code_2(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _use(monkeypatch, FakeClient({("GET", "/api/clientes"): ApiError("Unauthorized", status_code=401)}))
    result = runner.invoke(cli.app, ["customer", "list"])
    assert result.exit_code == 2
    assert "Unauthorized" in result.output


def test_opportunity_add_logs_event(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _use(monkeypatch, FakeClient({("POST", "/api/opportunities"): {"id": "o1", "name": "Auto", "stage": "Nova"}}))

    result = runner.invoke(
        cli.app, ["opportunity", "add", "c1", "--name", "Auto", "--stage", "Nova", "--value", "1200"]
    )

    assert result.exit_code == 0, result.output
    assert "Created opportunity: o1" in result.output
    events_path = workspace / "workspaces" / "demo" / "events.jsonl"
    event = json.loads(events_path.read_text(encoding="utf-8").splitlines()[0])
    assert event["entity_type"] == "opportunity"
    assert event["entity_id"] == "o1"


def test_activity_list_filters_and_paginates(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client = _use(
        monkeypatch,
        FakeClient(
            {
                ("GET", "/api/clientes/c1/activities"): {
                    "activities": [
                        {"id": "a1", "type": "call", "date": "2025-06-01T10:00:00", "title": "Renovação auto"},
                        {"id": "a2", "type": "call", "date": "2025-06-02T10:00:00", "title": "Cobrança"},
                    ],
                    "pagination": {"currentPage": 2, "totalPages": 3, "totalCount": 25, "limit": 10},
                }
            }
        ),
    )

    result = runner.invoke(
        cli.app, ["activity", "list", "c1", "--type", "call", "--search", "renovação", "--page", "2"]
    )

    assert result.exit_code == 0, result.output
    assert "a1" in result.output
    assert "a2" not in result.output
    assert "Page 2/3 (25 total)" in result.output
    assert client.calls[0]["params"] == {"page": 2, "limit": 10, "type": "call"}


def test_opportunity_pipeline(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _use(
        monkeypatch,
        FakeClient(
            {
                ("GET", "/api/opportunities"): [
                    {"id": "o1", "name": "Auto", "stage": "Ganha", "value": 1000},
                    {"id": "o2", "name": "Vida", "stage": "Perdida", "value": 500},
                ]
            }
        ),
    )
    result = runner.invoke(cli.app, ["opportunity", "pipeline", "c1"])
    assert result.exit_code == 0, result.output
    assert "Win rate: 50.0%" in result.output
    assert "Active: 0 | Won: 1 | Lost: 1" in result.output


def test_claim_status_requires_reason_to_close(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client = _use(monkeypatch, FakeClient())
    result = runner.invoke(cli.app, ["claim", "status", "k1", "--status", "CLOSED"])
    assert result.exit_code == 1
    assert "reason is required" in result.output
    assert client.calls == []


def test_claim_list_is_paginated(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    claims = [
        {"id": f"k{i}", "title": f"Sinistro {i}", "status": "REPORTED", "priority": "LOW"} for i in range(1, 13)
    ]
    _use(monkeypatch, FakeClient({("GET", "/api/customers/c1/claims"): claims}))

    result = runner.invoke(cli.app, ["claim", "list", "c1", "--page", "2", "--limit", "5"])

    assert result.exit_code == 0, result.output
    assert "k6 |" in result.output
    assert "k10 |" in result.output
    assert "k5 |" not in result.output
    assert "k11 |" not in result.output
    assert "Page 2/3 (12 total)" in result.output


def test_claim_message_maps_sender_to_channel(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client = _use(monkeypatch, FakeClient())
    result = runner.invoke(
        cli.app,
        ["claim", "message", "k1", "--content", "Ligação", "--type", "PHONE", "--to", "(11) 98888-7777", "--no-events"],
    )
    assert result.exit_code == 0, result.output
    assert client.calls[0]["path"] == "/api/claims/k1/communications"
    assert client.calls[0]["json"]["toPhone"] == "11988887777"


def test_customer_import_dry_run(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client = _use(monkeypatch, FakeClient())
    wb = openpyxl.Workbook()
    wb.active.append(["nome", "tipoPessoa", "cnpjCpf"])
    wb.active.append(["Maria Souza", "PF", "529.982.247-25"])
    wb.active.append(["Sem Documento", "XX", None])
    wb.save(workspace / "clientes.xlsx")

    result = runner.invoke(cli.app, ["customer", "import", "clientes.xlsx", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Row 3 (Sem Documento): person type must be PF or PJ" in result.output
    assert "1 valid of 2 rows." in result.output
    assert client.calls == []

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from brokercrm.adapters.cep import DEFAULT_CEP_URL
from brokercrm.services.engagement import ScoringWeights

WORKSPACES_DIR = Path("workspaces")
CURRENT_WORKSPACE_FILE = WORKSPACES_DIR / ".current"
WORKSPACE_FILENAME = "workspace.yaml"

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TOKEN_ENV = "BROKERCRM_API_TOKEN"


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    token_env: str
    timeout_seconds: float

    def token(self) -> str | None:
        return os.getenv(self.token_env) or None


@dataclass(frozen=True)
class RetryConfig:
    attempts: int
    delay_seconds: float


@dataclass(frozen=True)
class EventsConfig:
    enabled: bool
    path: Path


@dataclass(frozen=True)
class WorkspaceConfig:
    name: str
    api: ApiConfig
    retry: RetryConfig
    cep_base_url: str
    scoring: ScoringWeights
    events: EventsConfig
    path: Path


class WorkspaceError(RuntimeError):
    pass


def ensure_workspaces_dir() -> None:
    WORKSPACES_DIR.mkdir(parents=True, exist_ok=True)


def set_current_workspace(name: str) -> None:
    ensure_workspaces_dir()
    CURRENT_WORKSPACE_FILE.write_text(f"{name}\n", encoding="utf-8")


def get_current_workspace_name() -> str:
    if not CURRENT_WORKSPACE_FILE.exists():
        raise WorkspaceError("No active workspace. Run `brokercrm workspace use <name>`.")
    return CURRENT_WORKSPACE_FILE.read_text(encoding="utf-8").strip()


def workspace_path(name: str) -> Path:
    return WORKSPACES_DIR / name


def workspace_config_path(name: str) -> Path:
    return workspace_path(name) / WORKSPACE_FILENAME


def load_workspace(name: str | None = None) -> WorkspaceConfig:
    if name is None:
        name = get_current_workspace_name()
    config_path = workspace_config_path(name)
    if not config_path.exists():
        raise WorkspaceError(f"Workspace config not found: {config_path}")
    return load_workspace_file(config_path, name)


def load_workspace_file(config_path: Path, name: str | None = None) -> WorkspaceConfig:
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise WorkspaceError(f"Invalid workspace config: {config_path}")
    cep = data.get("cep") or {}
    if not isinstance(cep, dict):
        raise WorkspaceError("Invalid workspace cep configuration.")
    return WorkspaceConfig(
        name=name or str(data.get("workspace") or config_path.parent.name),
        api=_parse_api(data.get("api")),
        retry=_parse_retry(data.get("retry")),
        cep_base_url=str(cep.get("base_url") or DEFAULT_CEP_URL).rstrip("/"),
        scoring=_parse_scoring(data.get("scoring")),
        events=_parse_events(data.get("events"), config_path),
        path=config_path.parent,
    )


def write_workspace_config(name: str, base_url: str | None) -> Path:
    ensure_workspaces_dir()
    ws_dir = workspace_path(name)
    ws_dir.mkdir(parents=True, exist_ok=True)
    config = {
        "workspace": name,
        "api": {
            "base_url": base_url or DEFAULT_BASE_URL,
            "token_env": DEFAULT_TOKEN_ENV,
            "timeout_seconds": 10,
        },
        "retry": {"attempts": 3, "delay_seconds": 1.0},
        "cep": {"base_url": DEFAULT_CEP_URL},
        "events": {"enabled": True, "path": "./events.jsonl"},
    }
    config_path = workspace_config_path(name)
    config_path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return config_path


def _parse_api(api_data: Any) -> ApiConfig:
    if api_data is None:
        api_data = {}
    if not isinstance(api_data, dict):
        raise WorkspaceError("Invalid workspace api configuration.")
    base_url = api_data.get("base_url") or DEFAULT_BASE_URL
    if not isinstance(base_url, str):
        raise WorkspaceError("Workspace api.base_url must be a string.")
    return ApiConfig(
        base_url=base_url.rstrip("/"),
        token_env=str(api_data.get("token_env") or DEFAULT_TOKEN_ENV),
        timeout_seconds=_positive_number(api_data.get("timeout_seconds", 10), "api.timeout_seconds"),
    )


def _parse_retry(retry_data: Any) -> RetryConfig:
    if retry_data is None:
        retry_data = {}
    if not isinstance(retry_data, dict):
        raise WorkspaceError("Invalid workspace retry configuration.")
    attempts = retry_data.get("attempts", 3)
    if not isinstance(attempts, int) or attempts < 1:
        raise WorkspaceError("Workspace retry.attempts must be a positive integer.")
    delay = retry_data.get("delay_seconds", 1.0)
    if not isinstance(delay, (int, float)) or delay < 0:
        raise WorkspaceError("Workspace retry.delay_seconds must be zero or positive.")
    return RetryConfig(attempts=attempts, delay_seconds=float(delay))


def _parse_scoring(scoring_data: Any) -> ScoringWeights:
    if scoring_data is None:
        return ScoringWeights()
    if not isinstance(scoring_data, dict):
        raise WorkspaceError("Workspace scoring must be a mapping.")
    known = {f.name for f in fields(ScoringWeights)}
    unknown = set(scoring_data) - known
    if unknown:
        raise WorkspaceError(f"Unknown scoring keys: {', '.join(sorted(unknown))}")
    for key, value in scoring_data.items():
        if not isinstance(value, int) or value < 0:
            raise WorkspaceError(f"Workspace scoring.{key} must be a non-negative integer.")
    return ScoringWeights(**scoring_data)


def _parse_events(events_data: Any, config_path: Path) -> EventsConfig:
    if events_data is None:
        events_data = {}
    if not isinstance(events_data, dict):
        raise WorkspaceError("Invalid workspace events configuration.")
    raw_path = Path(str(events_data.get("path") or "./events.jsonl"))
    if not raw_path.is_absolute():
        raw_path = (config_path.parent / raw_path).resolve()
    return EventsConfig(enabled=bool(events_data.get("enabled", True)), path=raw_path)


def _positive_number(value: Any, field: str) -> float:
    if not isinstance(value, (int, float)) or value <= 0:
        raise WorkspaceError(f"Workspace {field} must be a positive number.")
    return float(value)

from __future__ import annotations

import csv
from collections.abc import Iterable
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook

from brokercrm.services.dashboard import Dashboard


def dashboard_tables(dashboard: Dashboard) -> dict[str, list[dict[str, Any]]]:
    profile = dashboard.profile
    metrics = dashboard.metrics
    health = metrics.relationship_health
    return {
        "policies": [_flatten(asdict(policy)) for policy in profile.policies],
        "opportunities": [_flatten(asdict(opp)) for opp in profile.opportunities],
        "activities": [_flatten(asdict(activity)) for activity in profile.activities],
        "claims": [_claim_row(claim) for claim in profile.claims],
        "engagement_trend": [asdict(point) for point in metrics.engagement_trend],
        "engagement": [
            {
                "policy_count": metrics.policy_count,
                "opportunity_count": metrics.opportunity_count,
                "activities_this_month": metrics.activity_frequency.this_month,
                "activities_last_month": metrics.activity_frequency.last_month,
                "trend": metrics.activity_frequency.trend,
                "health_score": health.score,
                "health_level": health.level,
                "factors": "; ".join(health.factors),
            }
        ],
    }


def export_excel(dashboard: Dashboard, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    wb.remove(wb.active)

    for table, rows in dashboard_tables(dashboard).items():
        ws = wb.create_sheet(title=table)
        _write_sheet(ws, rows)

    wb.save(out_path)


def export_csv_tables(dashboard: Dashboard, out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    for table, rows in dashboard_tables(dashboard).items():
        headers = list(rows[0].keys()) if rows else []
        csv_path = out_dir / f"{table}.csv"
        with csv_path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(headers)
            for row in rows:
                writer.writerow([row[h] for h in headers])


def _write_sheet(ws, rows: Iterable[dict[str, Any]]) -> None:
    rows = list(rows)
    if not rows:
        return
    headers = list(rows[0].keys())
    ws.append(headers)
    for row in rows:
        ws.append([row[h] for h in headers])


def _claim_row(claim) -> dict[str, Any]:
    row = asdict(claim)
    row["documents"] = len(claim.documents)
    row["communications"] = len(claim.communications)
    return _flatten(row)


def _flatten(row: dict[str, Any]) -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                flat[f"{key}_{sub_key}"] = sub_value
        elif isinstance(value, datetime):
            flat[key] = value.replace(tzinfo=None)
        elif isinstance(value, (list, tuple)):
            flat[key] = ", ".join(str(item) for item in value)
        else:
            flat[key] = value
    return flat

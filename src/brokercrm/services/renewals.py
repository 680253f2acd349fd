from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime

from brokercrm.domain.models import Policy
from brokercrm.domain.rules import ValidationError, parse_date
from brokercrm.domain.stages import PolicySituation

RENEWABLE = "1"
DUE_WINDOW_DAYS = 60
URGENT_WINDOW_DAYS = 30

SITUATION_LABELS = {
    PolicySituation.APPROVED.value: "Aprovada",
    PolicySituation.REFUSED.value: "Recusada",
    PolicySituation.ISSUED.value: "Apólice Emitida",
    PolicySituation.CANCELED.value: "Cancelada",
}


@dataclass(frozen=True)
class RenewalAlert:
    show: bool
    days: int
    urgent: bool


@dataclass(frozen=True)
class PolicyStats:
    total: int
    proposals: int
    active: int
    pending: int
    renewals_due: int
    total_premium: float


NO_ALERT = RenewalAlert(show=False, days=0, urgent=False)


def renewal_date(issue: date) -> date:
    try:
        return issue.replace(year=issue.year + 1)
    except ValueError:
        # 29 February
        return issue.replace(year=issue.year + 1, day=28)


def renewal_alert(issue_date: str | date | None, renewal: str | None, today: date | None = None) -> RenewalAlert:
    if not issue_date or renewal != RENEWABLE:
        return NO_ALERT
    if isinstance(issue_date, datetime):
        issue = issue_date.date()
    elif isinstance(issue_date, date):
        issue = issue_date
    elif not isinstance(issue_date, str):
        return NO_ALERT
    else:
        try:
            issue = parse_date(issue_date, "issue_date")
        except ValidationError:
            return NO_ALERT
        if issue is None:
            return NO_ALERT
    today = today or date.today()
    try:
        days = (renewal_date(issue) - today).days
    except (OverflowError, ValueError):
        return NO_ALERT
    if 0 <= days <= DUE_WINDOW_DAYS:
        return RenewalAlert(show=True, days=days, urgent=days <= URGENT_WINDOW_DAYS)
    return RenewalAlert(show=False, days=days, urgent=False)


def is_renewal_due(issue_date: str | date | None, renewal: str | None, today: date | None = None) -> bool:
    return renewal_alert(issue_date, renewal, today).show


def policy_stats(policies: Sequence[Policy], today: date | None = None) -> PolicyStats:
    if not policies:
        return PolicyStats(total=0, proposals=0, active=0, pending=0, renewals_due=0, total_premium=0.0)
    return PolicyStats(
        total=len(policies),
        proposals=sum(1 for p in policies if p.is_proposal),
        active=sum(
            1 for p in policies if p.situation_document == PolicySituation.ISSUED.value and p.policy_number
        ),
        pending=sum(1 for p in policies if p.situation_document == PolicySituation.UNDER_ANALYSIS.value),
        renewals_due=sum(1 for p in policies if is_renewal_due(p.issue_date, p.renewal, today)),
        total_premium=sum(p.total_prize or 0.0 for p in policies),
    )


def situation_label(code: str, policy_number: str | None = None) -> str:
    if code == PolicySituation.UNDER_ANALYSIS.value:
        return "Aguardando Emissão" if policy_number else "Proposta - Em Análise"
    return SITUATION_LABELS.get(code, "Desconhecido")

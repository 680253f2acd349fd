from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from brokercrm.domain.rules import coerce_date, coerce_datetime


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _name_of(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    if isinstance(value, str):
        return value
    return None


def _number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    status: str | None = None
    person_type: str | None = None
    cnpj_cpf: str | None = None
    email: str | None = None
    phone: str | None = None
    client_since: date | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Customer:
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            status=data.get("status"),
            person_type=data.get("personType"),
            cnpj_cpf=data.get("cnpjCpf"),
            email=data.get("email"),
            phone=data.get("phone"),
            client_since=coerce_date(data.get("clientSince")),
        )


@dataclass(frozen=True)
class Policy:
    id: str
    situation_document: str
    renewal: str
    issue_date: str | None
    total_prize: float | None
    proposal_number: str | None = None
    policy_number: str | None = None
    product_name: str | None = None
    insurer_name: str | None = None
    liquid_prize: float | None = None
    commission_value: float | None = None

    @property
    def is_proposal(self) -> bool:
        return not self.policy_number

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Policy:
        return cls(
            id=str(data.get("id") or ""),
            situation_document=str(_pick(data, "situationDocument", default="")),
            renewal=str(_pick(data, "renewal", default="")),
            issue_date=data.get("issueDate"),
            total_prize=_number(data.get("totalPrize")),
            proposal_number=data.get("proposalNumber"),
            policy_number=data.get("policyNumber"),
            product_name=_name_of(data.get("product")),
            insurer_name=_name_of(data.get("insuranceCompany")),
            liquid_prize=_number(data.get("liquidPrize")),
            commission_value=_number(data.get("commissionValue")),
        )


@dataclass(frozen=True)
class Opportunity:
    id: str
    name: str
    stage: str
    value: float
    product_name: str | None = None
    user_name: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Opportunity:
        return cls(
            id=str(data.get("id") or ""),
            name=data.get("name") or "",
            stage=data.get("stage") or "",
            value=_number(data.get("value")) or 0.0,
            product_name=_name_of(data.get("product")),
            user_name=_name_of(data.get("user")),
        )


@dataclass(frozen=True)
class UserRef:
    id: str
    name: str


@dataclass(frozen=True)
class Activity:
    id: str
    type: str
    date: datetime | None
    title: str = ""
    description: str | None = None
    user: UserRef | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Activity:
        user = data.get("user")
        return cls(
            id=str(data.get("id") or ""),
            type=data.get("type") or "",
            date=coerce_datetime(data.get("date")),
            title=data.get("title") or "",
            description=data.get("description"),
            user=UserRef(id=str(user.get("id")), name=user.get("name") or "") if isinstance(user, dict) else None,
        )


@dataclass(frozen=True)
class ClaimDocument:
    id: str
    file_name: str
    mime_type: str | None = None
    size: int | None = None
    description: str | None = None
    uploaded_by: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ClaimDocument:
        size = data.get("size")
        return cls(
            id=str(data.get("id") or ""),
            file_name=_pick(data, "originalName", "name", default=""),
            mime_type=data.get("mimeType"),
            size=int(size) if size is not None else None,
            description=data.get("description"),
            uploaded_by=_name_of(data.get("user")),
            created_at=coerce_datetime(data.get("createdAt")),
        )


@dataclass(frozen=True)
class ClaimCommunication:
    id: str
    type: str
    direction: str
    content: str
    subject: str | None = None
    timestamp: datetime | None = None
    author: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ClaimCommunication:
        return cls(
            id=str(data.get("id") or ""),
            type=data.get("type") or "",
            direction=data.get("direction") or "",
            content=data.get("content") or "",
            subject=data.get("subject") or None,
            timestamp=coerce_datetime(data.get("timestamp")),
            author=_name_of(data.get("user")),
        )


@dataclass(frozen=True)
class Claim:
    id: str
    claim_number: str | None
    title: str
    status: str
    priority: str
    claim_type: str | None = None
    incident_date: date | None = None
    estimated_value: float | None = None
    approved_value: float | None = None
    description: str | None = None
    location: str | None = None
    documents: tuple[ClaimDocument, ...] = ()
    communications: tuple[ClaimCommunication, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Claim:
        return cls(
            id=str(data.get("id") or ""),
            claim_number=data.get("claimNumber"),
            title=data.get("title") or "",
            status=data.get("status") or "",
            priority=data.get("priority") or "",
            claim_type=data.get("claimType"),
            incident_date=coerce_date(data.get("incidentDate")),
            estimated_value=_number(data.get("estimatedValue")),
            approved_value=_number(data.get("approvedValue")),
            description=data.get("description"),
            location=data.get("location"),
            documents=tuple(
                ClaimDocument.from_api(item) for item in _pick(data, "documents", "claimdocument", default=[])
            ),
            communications=tuple(
                ClaimCommunication.from_api(item)
                for item in _pick(data, "communications", "claimcommunication", default=[])
            ),
        )


@dataclass(frozen=True)
class Contact:
    id: str
    name: str
    type: str | None = None
    email: str | None = None
    phone: str | None = None
    cell_phone: str | None = None
    position: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Contact:
        return cls(
            id=str(data.get("id") or ""),
            name=data.get("name") or "",
            type=data.get("type"),
            email=data.get("email"),
            phone=data.get("phone"),
            cell_phone=data.get("cellPhone"),
            position=data.get("position"),
        )


@dataclass(frozen=True)
class Phone:
    id: str
    kind: str | None
    number: str
    extension: str | None = None
    contact: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Phone:
        return cls(
            id=str(data.get("id") or ""),
            kind=_pick(data, "tipo", "type"),
            number=_pick(data, "numero", "number", default=""),
            extension=_pick(data, "ramal", "extension"),
            contact=_pick(data, "contato", "contact"),
        )


@dataclass(frozen=True)
class Address:
    id: str
    type: str | None
    street: str | None
    number: str | None
    complement: str | None
    district: str | None
    city: str | None
    state: str | None
    zip_code: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Address:
        return cls(
            id=str(data.get("id") or ""),
            type=data.get("type"),
            street=data.get("street"),
            number=data.get("number"),
            complement=data.get("complement"),
            district=data.get("district"),
            city=data.get("city"),
            state=data.get("state"),
            zip_code=data.get("zipCode"),
        )


@dataclass(frozen=True)
class Document:
    id: str
    file_name: str
    category: str
    mime_type: str | None = None
    size: int | None = None
    description: str | None = None
    version: int = 1

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Document:
        size = data.get("size")
        return cls(
            id=str(data.get("id") or ""),
            file_name=_pick(data, "originalName", "fileName", "name", default=""),
            category=data.get("category") or "",
            mime_type=data.get("mimeType"),
            size=int(size) if size is not None else None,
            description=data.get("description"),
            version=int(data.get("version") or 1),
        )


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    code: str | None = None
    insurer_name: str | None = None
    branch_name: str | None = None
    status: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Product:
        return cls(
            id=str(data.get("id") or ""),
            name=data.get("name") or "",
            code=data.get("code"),
            insurer_name=_name_of(data.get("insuranceCompany")),
            branch_name=_name_of(data.get("branch")),
            status=data.get("status"),
        )


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next: bool
    has_prev: bool


@dataclass(frozen=True)
class Page:
    items: list[Any]
    pagination: Pagination


@dataclass(frozen=True)
class ActivityFrequency:
    total: int
    this_month: int
    last_month: int
    trend: str


@dataclass(frozen=True)
class RelationshipHealth:
    score: int
    level: str
    factors: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TrendPoint:
    period: str
    activities: int
    score: int


@dataclass(frozen=True)
class EngagementMetrics:
    policy_count: int
    opportunity_count: int
    activity_frequency: ActivityFrequency
    relationship_health: RelationshipHealth
    engagement_trend: tuple[TrendPoint, ...]

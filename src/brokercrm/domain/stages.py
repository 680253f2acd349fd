from __future__ import annotations

from enum import Enum


class OpportunityStage(str, Enum):
    NEW = "Nova"
    CONTACTED = "Contactada"
    PROPOSAL_SENT = "Proposta Enviada"
    WON = "Ganha"
    LOST = "Perdida"


class ActivityType(str, Enum):
    CALL = "call"
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    MEETING = "meeting"
    NOTE = "note"


class PolicySituation(str, Enum):
    UNDER_ANALYSIS = "1"
    APPROVED = "2"
    REFUSED = "3"
    ISSUED = "4"
    CANCELED = "5"


class ClaimStatus(str, Enum):
    REPORTED = "REPORTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    INVESTIGATING = "INVESTIGATING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SETTLED = "SETTLED"
    CLOSED = "CLOSED"


class ClaimPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ClaimCommunicationType(str, Enum):
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    SMS = "SMS"
    WHATSAPP = "WHATSAPP"
    INTERNAL_NOTE = "INTERNAL_NOTE"


class CommunicationDirection(str, Enum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class DocumentCategory(str, Enum):
    IDENTIFICATION = "IDENTIFICATION"
    CONTRACT = "CONTRACT"
    POLICY = "POLICY"
    PROPOSAL = "PROPOSAL"
    PHOTO = "PHOTO"
    FINANCIAL = "FINANCIAL"
    LEGAL = "LEGAL"
    OTHER = "OTHER"


class ContactGender(str, Enum):
    MALE = "MASCULINO"
    FEMALE = "FEMININO"
    OTHER = "OUTRO"


class HealthLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


STAGE_PROBABILITY = {
    OpportunityStage.NEW: 10,
    OpportunityStage.CONTACTED: 25,
    OpportunityStage.PROPOSAL_SENT: 60,
    OpportunityStage.WON: 100,
    OpportunityStage.LOST: 0,
}

CLOSED_STAGES = {OpportunityStage.WON, OpportunityStage.LOST}

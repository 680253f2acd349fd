from brokercrm.domain.models import (
    Activity,
    Address,
    Claim,
    Contact,
    Customer,
    Document,
    EngagementMetrics,
    Opportunity,
    Page,
    Pagination,
    Phone,
    Policy,
    Product,
)
from brokercrm.domain.rules import ValidationError

__all__ = [
    "Activity",
    "Address",
    "Claim",
    "Contact",
    "Customer",
    "Document",
    "EngagementMetrics",
    "Opportunity",
    "Page",
    "Pagination",
    "Phone",
    "Policy",
    "Product",
    "ValidationError",
]

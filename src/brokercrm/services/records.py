from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from brokercrm.adapters.api.client import ApiError
from brokercrm.adapters.api.pages import parse_page
from brokercrm.domain import rules
from brokercrm.domain.models import (
    Activity,
    Address,
    Claim,
    ClaimCommunication,
    ClaimDocument,
    Contact,
    Customer,
    Document,
    Opportunity,
    Page,
    Phone,
    Policy,
    Product,
)
from brokercrm.domain.stages import (
    ActivityType,
    ClaimCommunicationType,
    ClaimPriority,
    ClaimStatus,
    CommunicationDirection,
    ContactGender,
    DocumentCategory,
    OpportunityStage,
)
from brokercrm.services.events import EventLogger


class _ClientLike(Protocol):
    def get(self, path: str, params: dict[str, Any] | None = None) -> Any: ...

    def post(self, path: str, json: Any | None = None) -> Any: ...

    def put(self, path: str, json: Any | None = None) -> Any: ...

    def patch(self, path: str, json: Any | None = None) -> Any: ...

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any: ...

    def upload(self, path: str, files: dict[str, Any], data: dict[str, Any] | None = None) -> Any: ...


MAX_CLAIM_UPLOAD_BYTES = 10 * 1024 * 1024
PHONE_CHANNELS = {
    ClaimCommunicationType.PHONE.value,
    ClaimCommunicationType.SMS.value,
    ClaimCommunicationType.WHATSAPP.value,
}


class RecordError(RuntimeError):
    pass


@dataclass(frozen=True)
class CustomerProfile:
    customer: Customer
    policies: list[Policy]
    opportunities: list[Opportunity]
    activities: list[Activity]
    claims: list[Claim]


# Customers


def list_customers(client: _ClientLike) -> Page:
    return parse_page(client.get("/api/clientes"), Customer.from_api)


def get_customer_profile(client: _ClientLike, customer_id: str) -> CustomerProfile:
    data = client.get(f"/api/clientes/{customer_id}")
    if isinstance(data, dict) and isinstance(data.get("customer"), dict):
        data = data["customer"]
    if not isinstance(data, dict) or "id" not in data:
        raise RecordError(f"Customer not found: {customer_id}")
    return CustomerProfile(
        customer=Customer.from_api(data),
        policies=[Policy.from_api(item) for item in _nested(data, "policies", "policy")],
        opportunities=[Opportunity.from_api(item) for item in _nested(data, "opportunities", "opportunity")],
        activities=[Activity.from_api(item) for item in _nested(data, "activities", "activity")],
        claims=[Claim.from_api(item) for item in _nested(data, "claims", "claim")],
    )


def create_customer(
    client: _ClientLike,
    *,
    name: str,
    person_type: str,
    cnpj_cpf: str,
    email: str | None = None,
    phone: str | None = None,
    logger: EventLogger | None = None,
) -> Customer:
    payload = _customer_payload(name, person_type, cnpj_cpf, email, phone)
    data = client.post("/api/clientes", json=payload)
    customer = Customer.from_api(_unwrap(data, "customer"))
    _log(logger, "create", "customer", customer.id, payload)
    return customer


def update_customer(
    client: _ClientLike,
    customer_id: str,
    *,
    name: str,
    person_type: str,
    cnpj_cpf: str,
    email: str | None = None,
    phone: str | None = None,
    logger: EventLogger | None = None,
) -> Customer:
    payload = _customer_payload(name, person_type, cnpj_cpf, email, phone)
    data = client.put(f"/api/clientes/{customer_id}", json=payload)
    customer = Customer.from_api(_unwrap(data, "customer"))
    _log(logger, "update", "customer", customer_id, payload)
    return customer


def delete_customer(client: _ClientLike, customer_id: str, logger: EventLogger | None = None) -> None:
    client.delete(f"/api/clientes/{customer_id}")
    _log(logger, "delete", "customer", customer_id)


def _customer_payload(
    name: str, person_type: str, cnpj_cpf: str, email: str | None, phone: str | None
) -> dict[str, Any]:
    rules.require(name, "name")
    rules.validate_length(name, "name", min_len=3)
    rules.validate_enum(person_type, ["PF", "PJ"], "person_type")
    rules.require(cnpj_cpf, "cnpj_cpf")
    cleaned = rules.digits(cnpj_cpf)
    if person_type == "PF" and not rules.is_valid_cpf(cleaned):
        raise rules.ValidationError("cnpj_cpf must be a valid CPF for PF customers.")
    if person_type == "PJ" and not rules.is_valid_cnpj(cleaned):
        raise rules.ValidationError("cnpj_cpf must be a valid CNPJ for PJ customers.")
    rules.validate_email(email)
    return {
        "name": name.strip(),
        "personType": person_type,
        "cnpjCpf": cleaned,
        "email": email.strip().lower() if email else None,
        "phone": phone,
    }


# Products


def list_products(
    client: _ClientLike,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    insurer_search: str | None = None,
) -> Page:
    params = {"page": page, "limit": limit, "search": search, "insurerSearch": insurer_search}
    return parse_page(client.get("/api/produtos", params=params), Product.from_api)


def save_product(
    client: _ClientLike,
    *,
    name: str,
    insurance_company_id: str,
    branch_id: str,
    code: str | None = None,
    product_id: str | None = None,
    logger: EventLogger | None = None,
) -> Product:
    rules.validate_length(name, "name", min_len=3)
    rules.require(insurance_company_id, "insurance_company_id")
    rules.require(branch_id, "branch_id")
    payload = {
        "name": name.strip(),
        "code": code,
        "insuranceCompanyId": insurance_company_id,
        "branchId": branch_id,
    }
    if product_id:
        data = client.put(f"/api/produtos/{product_id}", json=payload)
    else:
        data = client.post("/api/produtos", json=payload)
    product = Product.from_api(_unwrap(data, "product"))
    _log(logger, "update" if product_id else "create", "product", product.id, payload)
    return product


# Opportunities


def list_opportunities(client: _ClientLike, customer_id: str) -> list[Opportunity]:
    data = client.get("/api/opportunities", params={"customerId": customer_id})
    return parse_page(data, Opportunity.from_api).items


def create_opportunity(
    client: _ClientLike,
    customer_id: str,
    *,
    name: str,
    stage: str,
    value: float,
    product_id: str | None = None,
    user_id: str | None = None,
    logger: EventLogger | None = None,
) -> Opportunity:
    payload = _opportunity_payload(name, stage, value, product_id, user_id)
    payload["customerId"] = customer_id
    data = client.post("/api/opportunities", json=payload)
    opportunity = Opportunity.from_api(_unwrap(data, "opportunity"))
    _log(logger, "create", "opportunity", opportunity.id, payload)
    return opportunity


def update_opportunity(
    client: _ClientLike,
    opportunity_id: str,
    *,
    name: str,
    stage: str,
    value: float,
    product_id: str | None = None,
    user_id: str | None = None,
    logger: EventLogger | None = None,
) -> Opportunity:
    payload = _opportunity_payload(name, stage, value, product_id, user_id)
    data = client.put(f"/api/opportunities/{opportunity_id}", json=payload)
    opportunity = Opportunity.from_api(_unwrap(data, "opportunity"))
    _log(logger, "update", "opportunity", opportunity_id, payload)
    return opportunity


def delete_opportunity(client: _ClientLike, opportunity_id: str, logger: EventLogger | None = None) -> None:
    client.delete(f"/api/opportunities/{opportunity_id}")
    _log(logger, "delete", "opportunity", opportunity_id)


def _opportunity_payload(
    name: str, stage: str, value: float, product_id: str | None, user_id: str | None
) -> dict[str, Any]:
    rules.require(name, "name")
    rules.require(stage, "stage")
    rules.validate_enum(stage, [s.value for s in OpportunityStage], "stage")
    rules.validate_non_negative(value, "value")
    return {
        "name": name.strip(),
        "stage": stage,
        "value": float(value),
        "productId": product_id or None,
        "userId": user_id or None,
    }


# Activities


def list_activities(
    client: _ClientLike,
    customer_id: str,
    page: int = 1,
    limit: int = 10,
    activity_type: str | None = None,
) -> Page:
    rules.validate_enum(activity_type, [t.value for t in ActivityType], "type")
    params = {"page": page, "limit": limit, "type": activity_type}
    data = client.get(f"/api/clientes/{customer_id}/activities", params=params)
    return parse_page(data, Activity.from_api)


def create_activity(
    client: _ClientLike,
    customer_id: str,
    *,
    activity_type: str,
    title: str,
    when: datetime,
    description: str | None = None,
    logger: EventLogger | None = None,
) -> Activity:
    payload = _activity_payload(activity_type, title, when, description)
    payload["customerId"] = customer_id
    data = client.post(f"/api/clientes/{customer_id}/activities", json=payload)
    activity = Activity.from_api(_unwrap(data, "activity"))
    _log(logger, "create", "activity", activity.id, payload)
    return activity


def update_activity(
    client: _ClientLike,
    customer_id: str,
    activity_id: str,
    *,
    activity_type: str,
    title: str,
    when: datetime,
    description: str | None = None,
    logger: EventLogger | None = None,
) -> Activity:
    payload = _activity_payload(activity_type, title, when, description)
    data = client.put(f"/api/clientes/{customer_id}/activities/{activity_id}", json=payload)
    activity = Activity.from_api(_unwrap(data, "activity"))
    _log(logger, "update", "activity", activity_id, payload)
    return activity


def delete_activity(
    client: _ClientLike, customer_id: str, activity_id: str, logger: EventLogger | None = None
) -> None:
    client.delete(f"/api/clientes/{customer_id}/activities/{activity_id}")
    _log(logger, "delete", "activity", activity_id)


def _activity_payload(
    activity_type: str, title: str, when: datetime | None, description: str | None
) -> dict[str, Any]:
    rules.require(activity_type, "type")
    rules.validate_enum(activity_type, [t.value for t in ActivityType], "type")
    rules.require(title, "title")
    rules.validate_length(title, "title", min_len=1, max_len=200)
    if when is None:
        raise rules.ValidationError("date is required.")
    return {
        "type": activity_type,
        "title": title.strip(),
        "description": description or None,
        "date": when.isoformat(),
    }


# Claims


def list_claims(client: _ClientLike, customer_id: str) -> list[Claim]:
    return parse_page(client.get(f"/api/customers/{customer_id}/claims"), Claim.from_api).items


def create_claim(
    client: _ClientLike,
    customer_id: str,
    *,
    title: str,
    description: str,
    incident_date: str,
    claim_type: str,
    priority: str = ClaimPriority.MEDIUM.value,
    policy_id: str | None = None,
    estimated_value: float | None = None,
    location: str | None = None,
    logger: EventLogger | None = None,
) -> Claim:
    rules.require(title, "title")
    rules.validate_length(title, "title", min_len=3, max_len=200)
    rules.require(description, "description")
    rules.validate_length(description, "description", min_len=10)
    incident = rules.parse_date(incident_date, "incident_date")
    if incident is None:
        raise rules.ValidationError("incident_date is required.")
    rules.require(claim_type, "claim_type")
    rules.validate_enum(priority, [p.value for p in ClaimPriority], "priority")
    rules.validate_non_negative(estimated_value, "estimated_value")
    payload = {
        "title": title.strip(),
        "description": description.strip(),
        "incidentDate": incident.isoformat(),
        "claimType": claim_type,
        "priority": priority,
        "policyId": policy_id,
        "estimatedValue": estimated_value,
        "location": location,
    }
    payload = {key: value for key, value in payload.items() if value is not None}
    data = client.post(f"/api/customers/{customer_id}/claims", json=payload)
    claim = Claim.from_api(_unwrap(data, "claim"))
    _log(logger, "create", "claim", claim.id, payload)
    return claim


def update_claim_status(
    client: _ClientLike,
    claim_id: str,
    *,
    status: str,
    reason: str | None = None,
    approved_value: float | None = None,
    deductible: float | None = None,
    logger: EventLogger | None = None,
) -> Claim:
    rules.require(status, "status")
    rules.validate_enum(status, [s.value for s in ClaimStatus], "status")
    if status == ClaimStatus.CLOSED.value and not (reason or "").strip():
        raise rules.ValidationError("reason is required to close a claim.")
    payload: dict[str, Any] = {"status": status, "reason": reason or ""}
    if status == ClaimStatus.APPROVED.value:
        rules.validate_non_negative(approved_value, "approved_value")
        rules.validate_non_negative(deductible, "deductible")
        if approved_value is not None:
            payload["approvedValue"] = approved_value
        if deductible is not None:
            payload["deductible"] = deductible
    data = client.patch(f"/api/claims/{claim_id}/status", json=payload)
    claim = Claim.from_api(_unwrap(data, "claim"))
    _log(logger, "status", "claim", claim_id, payload)
    return claim


def get_claim(client: _ClientLike, customer_id: str, claim_id: str) -> Claim:
    data = client.get(f"/api/customers/{customer_id}/claims/{claim_id}")
    if isinstance(data, dict) and data.get("error"):
        raise RecordError(str(data["error"]))
    return Claim.from_api(_unwrap(data, "claim"))


def update_claim(
    client: _ClientLike,
    customer_id: str,
    claim_id: str,
    *,
    title: str | None = None,
    description: str | None = None,
    incident_date: str | None = None,
    claim_type: str | None = None,
    priority: str | None = None,
    estimated_value: float | None = None,
    location: str | None = None,
    logger: EventLogger | None = None,
) -> Claim:
    rules.validate_length(title, "title", min_len=3, max_len=200)
    rules.validate_length(description, "description", min_len=10)
    incident = rules.parse_date(incident_date, "incident_date")
    rules.validate_enum(priority, [p.value for p in ClaimPriority], "priority")
    rules.validate_non_negative(estimated_value, "estimated_value")
    payload = {
        "title": title.strip() if title else None,
        "description": description.strip() if description else None,
        "incidentDate": incident.isoformat() if incident else None,
        "claimType": claim_type,
        "priority": priority,
        "estimatedValue": estimated_value,
        "location": location,
    }
    payload = {key: value for key, value in payload.items() if value is not None}
    if not payload:
        raise rules.ValidationError("Nothing to update.")
    data = client.patch(f"/api/customers/{customer_id}/claims/{claim_id}", json=payload)
    claim = Claim.from_api(_unwrap(data, "claim"))
    _log(logger, "update", "claim", claim_id, payload)
    return claim


def delete_claim(
    client: _ClientLike, customer_id: str, claim_id: str, logger: EventLogger | None = None
) -> None:
    client.delete(f"/api/customers/{customer_id}/claims/{claim_id}")
    _log(logger, "delete", "claim", claim_id)


def list_claim_documents(client: _ClientLike, customer_id: str, claim_id: str) -> list[ClaimDocument]:
    data = client.get(f"/api/customers/{customer_id}/claims/{claim_id}/documents")
    return parse_page(data, ClaimDocument.from_api).items


def upload_claim_document(
    client: _ClientLike,
    customer_id: str,
    claim_id: str,
    *,
    file_path: Path,
    name: str | None = None,
    description: str | None = None,
    logger: EventLogger | None = None,
) -> ClaimDocument:
    if not file_path.is_file():
        raise rules.ValidationError(f"file not found: {file_path}")
    if file_path.stat().st_size > MAX_CLAIM_UPLOAD_BYTES:
        raise rules.ValidationError("file is larger than the 10MB limit.")
    mime_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    with file_path.open("rb") as handle:
        data = client.upload(
            f"/api/customers/{customer_id}/claims/{claim_id}/documents",
            files={"file": (file_path.name, handle, mime_type)},
            data={"name": (name or file_path.name).strip(), "description": description or ""},
        )
    if isinstance(data, dict) and data.get("error"):
        raise RecordError(str(data["error"]))
    document = ClaimDocument.from_api(_unwrap(data, "document"))
    _log(logger, "create", "claim_document", document.id, ["file", "name", "description"])
    return document


def delete_claim_document(
    client: _ClientLike, claim_id: str, document_id: str, logger: EventLogger | None = None
) -> None:
    client.delete(f"/api/claims/{claim_id}/documents", params={"documentId": document_id})
    _log(logger, "delete", "claim_document", document_id)


def add_claim_communication(
    client: _ClientLike,
    claim_id: str,
    *,
    content: str,
    communication_type: str = ClaimCommunicationType.INTERNAL_NOTE.value,
    direction: str = CommunicationDirection.OUTBOUND.value,
    subject: str | None = None,
    from_email: str | None = None,
    to_email: str | None = None,
    from_phone: str | None = None,
    to_phone: str | None = None,
    logger: EventLogger | None = None,
) -> ClaimCommunication:
    rules.require(content, "content")
    rules.validate_enum(communication_type, [t.value for t in ClaimCommunicationType], "communication_type")
    rules.validate_enum(direction, [d.value for d in CommunicationDirection], "direction")
    payload: dict[str, Any] = {
        "type": communication_type,
        "direction": direction,
        "subject": (subject or "").strip(),
        "content": content.strip(),
    }
    # Contact fields only travel with the channel they belong to.
    if communication_type == ClaimCommunicationType.EMAIL.value:
        rules.validate_email(from_email, "from_email")
        rules.validate_email(to_email, "to_email")
        payload["fromEmail"] = (from_email or "").strip().lower()
        payload["toEmail"] = (to_email or "").strip().lower()
    elif communication_type in PHONE_CHANNELS:
        payload["fromPhone"] = rules.digits(from_phone)
        payload["toPhone"] = rules.digits(to_phone)
    data = client.post(f"/api/claims/{claim_id}/communications", json=payload)
    communication = ClaimCommunication.from_api(_unwrap(data, "communication"))
    _log(logger, "create", "claim_communication", communication.id or claim_id, payload)
    return communication


# Contacts and phones


def list_contacts(client: _ClientLike, customer_id: str) -> list[Contact]:
    return parse_page(client.get(f"/api/customers/{customer_id}/contacts"), Contact.from_api).items


def save_contact(
    client: _ClientLike,
    customer_id: str,
    *,
    name: str,
    contact_type: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    cell_phone: str | None = None,
    position: str | None = None,
    gender: str | None = None,
    birth_date: str | None = None,
    contact_id: str | None = None,
    logger: EventLogger | None = None,
) -> Contact:
    rules.require(name, "name")
    rules.validate_length(name, "name", min_len=1, max_len=100)
    rules.validate_email(email)
    rules.validate_length(position, "position", max_len=100)
    rules.validate_enum(gender, [g.value for g in ContactGender], "gender")
    birth = rules.parse_date(birth_date, "birth_date") if birth_date else None
    payload = {
        "name": name.strip(),
        "type": contact_type,
        "email": email or None,
        "phone": phone or None,
        "cellPhone": cell_phone or None,
        "position": position or None,
        "gender": gender,
        "birthDate": birth.isoformat() if birth else None,
    }
    base = f"/api/customers/{customer_id}/contacts"
    if contact_id:
        data = client.put(f"{base}/{contact_id}", json=payload)
    else:
        data = client.post(base, json=payload)
    contact = Contact.from_api(_unwrap(data, "contact"))
    _log(logger, "update" if contact_id else "create", "contact", contact.id, payload)
    return contact


def delete_contact(
    client: _ClientLike, customer_id: str, contact_id: str, logger: EventLogger | None = None
) -> None:
    client.delete(f"/api/customers/{customer_id}/contacts/{contact_id}")
    _log(logger, "delete", "contact", contact_id)


def list_phones(client: _ClientLike, customer_id: str) -> list[Phone]:
    return parse_page(client.get(f"/api/customers/{customer_id}/phones"), Phone.from_api).items


def save_phone(
    client: _ClientLike,
    customer_id: str,
    *,
    kind: str,
    number: str,
    extension: str | None = None,
    contact: str | None = None,
    phone_id: str | None = None,
    logger: EventLogger | None = None,
) -> Phone:
    rules.require(kind, "kind")
    rules.require(number, "number")
    if len(rules.digits(number)) < 10:
        raise rules.ValidationError("number must have at least 10 digits including area code.")
    payload = {"tipo": kind, "numero": rules.digits(number), "ramal": extension, "contato": contact}
    base = f"/api/customers/{customer_id}/phones"
    if phone_id:
        data = client.put(f"{base}/{phone_id}", json=payload)
    else:
        data = client.post(base, json=payload)
    phone = Phone.from_api(_unwrap(data, "phone"))
    _log(logger, "update" if phone_id else "create", "phone", phone.id, payload)
    return phone


def delete_phone(client: _ClientLike, customer_id: str, phone_id: str, logger: EventLogger | None = None) -> None:
    client.delete(f"/api/customers/{customer_id}/phones/{phone_id}")
    _log(logger, "delete", "phone", phone_id)


# Addresses


def list_addresses(client: _ClientLike, customer_id: str) -> list[Address]:
    return parse_page(client.get(f"/api/clientes/{customer_id}/enderecos"), Address.from_api).items


def save_address(
    client: _ClientLike,
    customer_id: str,
    *,
    address_type: str,
    street: str,
    district: str,
    city: str,
    state: str,
    zip_code: str,
    number: str | None = None,
    complement: str | None = None,
    address_id: str | None = None,
    logger: EventLogger | None = None,
) -> Address:
    rules.require(address_type, "type")
    rules.require(street, "street")
    rules.require(district, "district")
    rules.require(city, "city")
    rules.validate_state(state)
    cep = rules.validate_cep(zip_code)
    payload = {
        "type": address_type,
        "street": street.strip(),
        "number": number or None,
        "complement": complement or None,
        "district": district.strip(),
        "city": city.strip(),
        "state": state.strip().upper(),
        "zipCode": cep,
    }
    base = f"/api/clientes/{customer_id}/enderecos"
    if address_id:
        data = client.put(f"{base}/{address_id}", json=payload)
    else:
        data = client.post(base, json=payload)
    address = Address.from_api(_unwrap(data, "address"))
    _log(logger, "update" if address_id else "create", "address", address.id, payload)
    return address


def delete_address(
    client: _ClientLike, customer_id: str, address_id: str, logger: EventLogger | None = None
) -> None:
    client.delete(f"/api/clientes/{customer_id}/enderecos/{address_id}")
    _log(logger, "delete", "address", address_id)


# Documents


def list_documents(client: _ClientLike, customer_id: str) -> list[Document]:
    data = client.get(f"/api/customers/{customer_id}/documents")
    return parse_page(data, Document.from_api).items


def upload_document(
    client: _ClientLike,
    customer_id: str,
    *,
    file_path: Path,
    category: str,
    description: str | None = None,
    logger: EventLogger | None = None,
) -> Document:
    rules.require(category, "category")
    rules.validate_enum(category, [c.value for c in DocumentCategory], "category")
    if not file_path.is_file():
        raise rules.ValidationError(f"file not found: {file_path}")
    mime_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    with file_path.open("rb") as handle:
        data = client.upload(
            f"/api/customers/{customer_id}/documents",
            files={"file": (file_path.name, handle, mime_type)},
            data={"category": category, "description": description or ""},
        )
    if isinstance(data, dict) and data.get("success") is False:
        raise RecordError(data.get("error") or "Document upload failed.")
    document = Document.from_api(_unwrap(data, "document"))
    _log(logger, "create", "document", document.id, ["file", "category", "description"])
    return document


def update_document(
    client: _ClientLike,
    customer_id: str,
    document_id: str,
    *,
    category: str,
    description: str | None = None,
    logger: EventLogger | None = None,
) -> Document:
    rules.validate_enum(category, [c.value for c in DocumentCategory], "category")
    payload = {"category": category, "description": description or ""}
    data = client.put(f"/api/customers/{customer_id}/documents/{document_id}", json=payload)
    document = Document.from_api(_unwrap(data, "document"))
    _log(logger, "update", "document", document_id, payload)
    return document


def delete_document(
    client: _ClientLike, customer_id: str, document_id: str, logger: EventLogger | None = None
) -> None:
    client.delete(f"/api/customers/{customer_id}/documents/{document_id}")
    _log(logger, "delete", "document", document_id)


# WhatsApp


def whatsapp_available(client: _ClientLike) -> bool:
    try:
        data = client.get("/api/whatsapp/config")
    except ApiError as exc:
        if exc.status_code == 404:
            return False
        raise
    return bool(isinstance(data, dict) and data.get("isActive"))


def send_whatsapp(
    client: _ClientLike,
    customer_id: str,
    *,
    customer_name: str,
    phone_number: str,
    message: str,
    logger: EventLogger | None = None,
) -> Activity:
    rules.require(phone_number, "phone_number")
    rules.require(message, "message")
    if not whatsapp_available(client):
        raise RecordError("WhatsApp integration is not active.")
    client.post(
        "/api/whatsapp/send",
        json={
            "to": rules.digits(phone_number),
            "content": message,
            "messageType": "TEXT",
            "customerId": customer_id,
        },
    )
    _log(logger, "send", "whatsapp", customer_id, ["to", "content"])
    return create_activity(
        client,
        customer_id,
        activity_type=ActivityType.WHATSAPP.value,
        title=f"WhatsApp para {customer_name}",
        description=f'Mensagem enviada: "{message}"',
        when=datetime.now(),
        logger=logger,
    )


def default_whatsapp_message(customer_name: str) -> str:
    return f"Olá {customer_name}, como posso ajudá-lo hoje?"


def _nested(data: dict[str, Any], *keys: str) -> list[dict[str, Any]]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]
    return []


def _unwrap(data: Any, key: str) -> dict[str, Any]:
    if isinstance(data, dict) and isinstance(data.get(key), dict):
        return data[key]
    if isinstance(data, dict):
        return data
    raise RecordError(f"Unexpected response for {key}.")


def _log(
    logger: EventLogger | None,
    event_type: str,
    entity_type: str,
    entity_id: str,
    changed: dict[str, Any] | list[str] | None = None,
) -> None:
    if logger is None:
        return
    logger.log(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        changed_fields=list(changed) if changed else None,
    )

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import typer

from brokercrm import __version__
from brokercrm.adapters.api.client import ApiError, BrokerApiClient, TransportError
from brokercrm.adapters.api.pages import PageFormatError
from brokercrm.adapters.cep import CepClient, CepLookupError, format_cep
from brokercrm.config import (
    WorkspaceConfig,
    WorkspaceError,
    ensure_workspaces_dir,
    load_workspace,
    set_current_workspace,
    workspace_config_path,
    write_workspace_config,
)
from brokercrm.domain import rules
from brokercrm.domain.rules import ValidationError
from brokercrm.domain.stages import ClaimCommunicationType, ClaimPriority, CommunicationDirection
from brokercrm.services import engagement, exports, imports, pipeline, records, renewals
from brokercrm.services.dashboard import load_dashboard
from brokercrm.services.events import EventLogger
from brokercrm.services.imports import ImportFileError
from brokercrm.services.listing import ListQuery, ListState, filter_activities, paginate
from brokercrm.services.records import RecordError
from brokercrm.services.utils import format_currency, format_date

T = TypeVar("T")

app = typer.Typer(help="Insurance broker CRM CLI")
workspace_app = typer.Typer(help="Workspace management")
customer_app = typer.Typer(help="Customers and dashboards")
policy_app = typer.Typer(help="Policies and proposals")
opportunity_app = typer.Typer(help="Sales opportunities")
activity_app = typer.Typer(help="Customer activity timeline")
claim_app = typer.Typer(help="Claims")
contact_app = typer.Typer(help="Customer contacts")
phone_app = typer.Typer(help="Customer phones")
address_app = typer.Typer(help="Customer addresses")
document_app = typer.Typer(help="Customer documents")
product_app = typer.Typer(help="Product catalog")
whatsapp_app = typer.Typer(help="WhatsApp messaging")

app.add_typer(workspace_app, name="workspace")
app.add_typer(customer_app, name="customer")
app.add_typer(policy_app, name="policy")
app.add_typer(opportunity_app, name="opportunity")
app.add_typer(activity_app, name="activity")
app.add_typer(claim_app, name="claim")
app.add_typer(contact_app, name="contact")
app.add_typer(phone_app, name="phone")
app.add_typer(address_app, name="address")
app.add_typer(document_app, name="document")
app.add_typer(product_app, name="product")
app.add_typer(whatsapp_app, name="whatsapp")

SERVICE_ERRORS = (
    ApiError,
    TransportError,
    ValidationError,
    RecordError,
    PageFormatError,
    CepLookupError,
    ImportFileError,
)


@app.callback()
def version_callback(version: bool = typer.Option(False, "--version", help="Show version and exit.")):
    if version:
        typer.echo(__version__)
        raise typer.Exit()


@app.command("init")
def init() -> None:
    """Initialize directories for workspaces and exports."""
    ensure_workspaces_dir()
    Path("exports").mkdir(exist_ok=True)
    typer.echo("Initialized brokercrm directories.")


@workspace_app.command("add")
def workspace_add(
    name: str = typer.Argument(...),
    base_url: str | None = typer.Option(None, "--base-url", help="REST API base URL."),
    use: bool = typer.Option(True, "--use/--no-use", help="Set as current workspace."),
    force: bool = typer.Option(
        False, "--force", help="Overwrite existing workspace config if it exists."
    ),
) -> None:
    config_path = workspace_config_path(name)
    if config_path.exists() and not force:
        raise typer.BadParameter(
            f"Workspace already exists: {config_path}. Use --force to overwrite."
        )
    config_path = write_workspace_config(name, base_url)
    if use:
        set_current_workspace(name)
    typer.echo(f"Workspace created: {config_path}")


@workspace_app.command("use")
def workspace_use(name: str = typer.Argument(...)) -> None:
    if not workspace_config_path(name).exists():
        raise typer.BadParameter(f"Workspace config not found: {workspace_config_path(name)}")
    set_current_workspace(name)
    typer.echo(f"Active workspace: {name}")


# Customers


@customer_app.command("list")
def customer_list() -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        page = _call(records.list_customers, client)
    if not page.items:
        typer.echo("No customers.")
        return
    for customer in page.items:
        typer.echo(
            f"{customer.id} | {customer.name} | {customer.person_type or '-'} | {customer.cnpj_cpf or '-'} | {customer.status or '-'}"
        )
    _echo_pagination(page)


@customer_app.command("add")
def customer_add(
    name: str = typer.Option(..., "--name"),
    person_type: str = typer.Option("PF", "--type", help="PF or PJ."),
    cnpj_cpf: str = typer.Option(..., "--doc", help="CPF or CNPJ."),
    email: str | None = typer.Option(None, "--email"),
    phone: str | None = typer.Option(None, "--phone"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        customer = _call(
            records.create_customer,
            client,
            name=name,
            person_type=person_type,
            cnpj_cpf=cnpj_cpf,
            email=email,
            phone=phone,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Created customer: {customer.id}")


@customer_app.command("delete")
def customer_delete(
    customer_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_customer, client, customer_id, logger=_event_logger(ws, events))
    typer.echo(f"Deleted customer: {customer_id}")


@customer_app.command("show")
def customer_show(customer_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        profile = _call(records.get_customer_profile, client, customer_id)
    customer = profile.customer
    typer.echo(f"{customer.name} ({customer.person_type or '-'})")
    typer.echo(f"Document: {customer.cnpj_cpf or '-'}")
    typer.echo(f"Email: {customer.email or '-'}")
    typer.echo(f"Phone: {customer.phone or '-'}")
    typer.echo(f"Client since: {format_date(customer.client_since)}")
    typer.echo(
        f"Policies: {len(profile.policies)} | Opportunities: {len(profile.opportunities)} | "
        f"Activities: {len(profile.activities)} | Claims: {len(profile.claims)}"
    )


@customer_app.command("dashboard")
def customer_dashboard(customer_id: str = typer.Argument(...)) -> None:
    """Show engagement metrics, renewal alerts and the opportunity pipeline."""
    ws = _load_workspace()
    with _client(ws) as client:
        dashboard = _call(
            load_dashboard,
            client,
            customer_id,
            attempts=ws.retry.attempts,
            delay=ws.retry.delay_seconds,
            weights=ws.scoring,
        )
    metrics = dashboard.metrics
    health = metrics.relationship_health
    frequency = metrics.activity_frequency

    typer.echo(dashboard.profile.customer.name)
    typer.echo(f"Policies: {metrics.policy_count} | Opportunities: {metrics.opportunity_count}")
    typer.echo(
        f"Activities: {frequency.total} total | {frequency.this_month} this month | "
        f"{frequency.last_month} last month | {engagement.trend_label(frequency.trend)}"
    )
    typer.echo(
        f"Relationship health: {health.score}/100 ({engagement.health_level_label(health.level)})"
    )
    for factor in health.factors:
        typer.echo(f"  - {factor}")
    typer.echo("Engagement trend:")
    for point in metrics.engagement_trend:
        typer.echo(f"  {point.period} | {point.activities} | {point.score}")

    if dashboard.renewals_due:
        typer.echo("Renewals due:")
        for row in dashboard.renewals_due:
            marker = "URGENT" if row.alert.urgent else "due"
            number = row.policy.policy_number or row.policy.proposal_number or row.policy.id
            typer.echo(f"  {number} | {row.alert.days} days | {marker}")

    summary = dashboard.pipeline
    typer.echo(
        f"Pipeline: {format_currency(summary.total_value)} total | "
        f"{format_currency(summary.weighted_value)} weighted | win rate {summary.win_rate:.1f}%"
    )


@customer_app.command("export")
def customer_export(
    customer_id: str = typer.Argument(...),
    out: str = typer.Option(..., "--out", help="Target .xlsx file or CSV directory."),
    csv_output: bool = typer.Option(False, "--csv", help="Write one CSV file per table."),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        dashboard = _call(
            load_dashboard,
            client,
            customer_id,
            attempts=ws.retry.attempts,
            delay=ws.retry.delay_seconds,
            weights=ws.scoring,
        )
    if csv_output:
        exports.export_csv_tables(dashboard, Path(out))
    else:
        exports.export_excel(dashboard, Path(out))
    typer.echo(f"Exported to {out}")


@customer_app.command("import")
def customer_import(
    file_path: Path = typer.Argument(..., help="Excel sheet with one customer per row."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate the sheet without importing."),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    """Import customers from an .xlsx sheet (nome, tipoPessoa, cnpjCpf, ...)."""
    rows = _call(imports.read_customer_sheet, file_path)
    valid = [row for row in rows if row.is_valid]
    for row in rows:
        if not row.is_valid:
            typer.echo(f"Row {row.row_number} ({row.name or '-'}): {', '.join(row.errors)}")
    typer.echo(f"{len(valid)} valid of {len(rows)} rows.")
    if dry_run:
        return
    ws = _load_workspace()
    with _client(ws) as client:
        result = _call(
            imports.import_customers,
            client,
            rows,
            source=file_path.name,
            logger=_event_logger(ws, events),
        )
    typer.echo(
        f"Imported {result.succeeded} of {result.total} | failed {result.failed} | "
        f"{result.customers_created} customers, {result.addresses_created} addresses, "
        f"{result.phones_created} phones"
    )
    if result.failed:
        for detail in result.details:
            typer.echo(f"  - {detail}")


# Policies


@policy_app.command("list")
def policy_list(customer_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        profile = _call(records.get_customer_profile, client, customer_id)
    if not profile.policies:
        typer.echo("No policies.")
        return
    for policy in profile.policies:
        alert = renewals.renewal_alert(policy.issue_date, policy.renewal)
        flag = ""
        if alert.show:
            flag = f" | renewal in {alert.days} days" + (" (urgent)" if alert.urgent else "")
        number = policy.policy_number or policy.proposal_number or "-"
        typer.echo(
            f"{policy.id} | {number} | {renewals.situation_label(policy.situation_document, policy.policy_number)} | "
            f"{policy.product_name or '-'} | {format_currency(policy.total_prize)}{flag}"
        )
    stats = renewals.policy_stats(profile.policies)
    typer.echo(
        f"Total: {stats.total} | Proposals: {stats.proposals} | Active: {stats.active} | "
        f"Pending: {stats.pending} | Renewals due: {stats.renewals_due} | "
        f"Premium: {format_currency(stats.total_premium)}"
    )


# Opportunities


@opportunity_app.command("list")
def opportunity_list(
    customer_id: str = typer.Argument(...),
    search: str | None = typer.Option(None, "--search"),
    stage: str | None = typer.Option(None, "--stage"),
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        items = _call(records.list_opportunities, client, customer_id)
    items = pipeline.filter_opportunities(items, search=search, stage=stage)
    if not items:
        typer.echo("No opportunities.")
        return
    result = paginate(items, page=page, limit=limit)
    for opp in result.items:
        typer.echo(
            f"{opp.id} | {opp.name} | {opp.stage} | {format_currency(opp.value)} | {opp.product_name or '-'}"
        )
    _echo_pagination(result)


@opportunity_app.command("add")
def opportunity_add(
    customer_id: str = typer.Argument(...),
    name: str = typer.Option(..., "--name"),
    stage: str = typer.Option("Nova", "--stage"),
    value: float = typer.Option(0.0, "--value"),
    product_id: str | None = typer.Option(None, "--product"),
    user_id: str | None = typer.Option(None, "--user"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        opp = _call(
            records.create_opportunity,
            client,
            customer_id,
            name=name,
            stage=stage,
            value=value,
            product_id=product_id,
            user_id=user_id,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Created opportunity: {opp.id}")


@opportunity_app.command("update")
def opportunity_update(
    opportunity_id: str = typer.Argument(...),
    name: str = typer.Option(..., "--name"),
    stage: str = typer.Option(..., "--stage"),
    value: float = typer.Option(..., "--value"),
    product_id: str | None = typer.Option(None, "--product"),
    user_id: str | None = typer.Option(None, "--user"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(
            records.update_opportunity,
            client,
            opportunity_id,
            name=name,
            stage=stage,
            value=value,
            product_id=product_id,
            user_id=user_id,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Updated opportunity: {opportunity_id}")


@opportunity_app.command("delete")
def opportunity_delete(
    opportunity_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_opportunity, client, opportunity_id, logger=_event_logger(ws, events))
    typer.echo(f"Deleted opportunity: {opportunity_id}")


@opportunity_app.command("pipeline")
def opportunity_pipeline(customer_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        items = _call(records.list_opportunities, client, customer_id)
    summary = pipeline.summarize_pipeline(items)
    for stage in summary.stages:
        typer.echo(
            f"{stage.stage} | {stage.count} | {format_currency(stage.value)} | {stage.probability}%"
        )
    typer.echo(
        f"Total: {format_currency(summary.total_value)} | Average: {format_currency(summary.average_value)} | "
        f"Weighted: {format_currency(summary.weighted_value)} | Win rate: {summary.win_rate:.1f}%"
    )
    typer.echo(f"Active: {summary.active} | Won: {summary.won} | Lost: {summary.lost}")


# Activities


@activity_app.command("list")
def activity_list(
    customer_id: str = typer.Argument(...),
    activity_type: str | None = typer.Option(None, "--type"),
    search: str | None = typer.Option(None, "--search"),
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
) -> None:
    ws = _load_workspace()
    state = ListState(query=ListQuery(limit=limit))
    state.set_filter("type", activity_type)
    state.set_search(search)
    state.go_to(page)

    with _client(ws) as client:

        def fetch(query: ListQuery):
            return records.list_activities(
                client,
                customer_id,
                page=query.page,
                limit=query.limit,
                activity_type=query.filters.get("type"),
            )

        result = _call(state.refresh, fetch)

    items = filter_activities(result.items, search=state.query.search) if result else []
    if not items:
        typer.echo("No activities.")
        return
    for activity in items:
        user = activity.user.name if activity.user else "-"
        when = activity.date.strftime("%d/%m/%Y %H:%M") if activity.date else "N/A"
        typer.echo(f"{activity.id} | {when} | {activity.type} | {activity.title} | {user}")
    _echo_pagination(result)


@activity_app.command("add")
def activity_add(
    customer_id: str = typer.Argument(...),
    activity_type: str = typer.Option(..., "--type"),
    title: str = typer.Option(..., "--title"),
    description: str | None = typer.Option(None, "--description"),
    when: str | None = typer.Option(None, "--when", help="ISO datetime, defaults to now."),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    try:
        moment = rules.parse_datetime(when, "when") if when else datetime.now()
    except ValidationError as exc:
        _exit_with_error(str(exc))
    with _client(ws) as client:
        activity = _call(
            records.create_activity,
            client,
            customer_id,
            activity_type=activity_type,
            title=title,
            when=moment,
            description=description,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Created activity: {activity.id}")


@activity_app.command("delete")
def activity_delete(
    customer_id: str = typer.Argument(...),
    activity_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_activity, client, customer_id, activity_id, logger=_event_logger(ws, events))
    typer.echo(f"Deleted activity: {activity_id}")


# Claims


@claim_app.command("list")
def claim_list(
    customer_id: str = typer.Argument(...),
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        claims = _call(records.list_claims, client, customer_id)
    if not claims:
        typer.echo("No claims.")
        return
    result = paginate(claims, page=page, limit=limit)
    for claim in result.items:
        typer.echo(
            f"{claim.id} | {claim.claim_number or '-'} | {claim.title} | {claim.status} | "
            f"{claim.priority} | {format_date(claim.incident_date)}"
        )
    _echo_pagination(result)


@claim_app.command("add")
def claim_add(
    customer_id: str = typer.Argument(...),
    title: str = typer.Option(..., "--title"),
    description: str = typer.Option(..., "--description"),
    incident_date: str = typer.Option(..., "--incident-date"),
    claim_type: str = typer.Option(..., "--claim-type"),
    priority: str = typer.Option(ClaimPriority.MEDIUM.value, "--priority"),
    policy_id: str | None = typer.Option(None, "--policy"),
    estimated_value: float | None = typer.Option(None, "--estimated-value"),
    location: str | None = typer.Option(None, "--location"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        claim = _call(
            records.create_claim,
            client,
            customer_id,
            title=title,
            description=description,
            incident_date=incident_date,
            claim_type=claim_type,
            priority=priority,
            policy_id=policy_id,
            estimated_value=estimated_value,
            location=location,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Created claim: {claim.id}")


@claim_app.command("status")
def claim_status(
    claim_id: str = typer.Argument(...),
    status: str = typer.Option(..., "--status"),
    reason: str | None = typer.Option(None, "--reason"),
    approved_value: float | None = typer.Option(None, "--approved-value"),
    deductible: float | None = typer.Option(None, "--deductible"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        claim = _call(
            records.update_claim_status,
            client,
            claim_id,
            status=status,
            reason=reason,
            approved_value=approved_value,
            deductible=deductible,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Claim {claim_id} is now {claim.status or status}")


@claim_app.command("show")
def claim_show(
    customer_id: str = typer.Argument(...),
    claim_id: str = typer.Argument(...),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        claim = _call(records.get_claim, client, customer_id, claim_id)
    typer.echo(f"{claim.claim_number or claim.id} | {claim.title}")
    typer.echo(f"Status: {claim.status} | Priority: {claim.priority} | Type: {claim.claim_type or '-'}")
    typer.echo(f"Incident: {format_date(claim.incident_date)} | Location: {claim.location or '-'}")
    typer.echo(
        f"Estimated: {format_currency(claim.estimated_value)} | Approved: {format_currency(claim.approved_value)}"
    )
    if claim.description:
        typer.echo(claim.description)
    typer.echo(f"Documents: {len(claim.documents)}")
    for document in claim.documents:
        typer.echo(f"  {document.id} | {document.file_name} | {document.uploaded_by or '-'}")
    typer.echo(f"Communications: {len(claim.communications)}")
    for message in claim.communications:
        typer.echo(
            f"  {format_date(message.timestamp)} | {message.type} | {message.direction} | "
            f"{message.subject or message.content}"
        )


@claim_app.command("update")
def claim_update(
    customer_id: str = typer.Argument(...),
    claim_id: str = typer.Argument(...),
    title: str | None = typer.Option(None, "--title"),
    description: str | None = typer.Option(None, "--description"),
    incident_date: str | None = typer.Option(None, "--incident-date"),
    claim_type: str | None = typer.Option(None, "--claim-type"),
    priority: str | None = typer.Option(None, "--priority"),
    estimated_value: float | None = typer.Option(None, "--estimated-value"),
    location: str | None = typer.Option(None, "--location"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(
            records.update_claim,
            client,
            customer_id,
            claim_id,
            title=title,
            description=description,
            incident_date=incident_date,
            claim_type=claim_type,
            priority=priority,
            estimated_value=estimated_value,
            location=location,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Updated claim: {claim_id}")


@claim_app.command("delete")
def claim_delete(
    customer_id: str = typer.Argument(...),
    claim_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_claim, client, customer_id, claim_id, logger=_event_logger(ws, events))
    typer.echo(f"Deleted claim: {claim_id}")


@claim_app.command("documents")
def claim_documents(
    customer_id: str = typer.Argument(...),
    claim_id: str = typer.Argument(...),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        documents = _call(records.list_claim_documents, client, customer_id, claim_id)
    if not documents:
        typer.echo("No claim documents.")
        return
    for document in documents:
        typer.echo(
            f"{document.id} | {document.file_name} | {document.mime_type or '-'} | "
            f"{document.size if document.size is not None else '-'} bytes | {format_date(document.created_at)}"
        )


@claim_app.command("attach")
def claim_attach(
    customer_id: str = typer.Argument(...),
    claim_id: str = typer.Argument(...),
    file_path: Path = typer.Argument(..., help="File to attach (10MB max)."),
    name: str | None = typer.Option(None, "--name"),
    description: str | None = typer.Option(None, "--description"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        document = _call(
            records.upload_claim_document,
            client,
            customer_id,
            claim_id,
            file_path=file_path,
            name=name,
            description=description,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Attached document: {document.id}")


@claim_app.command("detach")
def claim_detach(
    claim_id: str = typer.Argument(...),
    document_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_claim_document, client, claim_id, document_id, logger=_event_logger(ws, events))
    typer.echo(f"Removed document: {document_id}")


@claim_app.command("message")
def claim_message(
    claim_id: str = typer.Argument(...),
    content: str = typer.Option(..., "--content"),
    communication_type: str = typer.Option(
        ClaimCommunicationType.INTERNAL_NOTE.value, "--type", help="EMAIL, PHONE, SMS, WHATSAPP or INTERNAL_NOTE."
    ),
    direction: str = typer.Option(CommunicationDirection.OUTBOUND.value, "--direction"),
    subject: str | None = typer.Option(None, "--subject"),
    sender: str | None = typer.Option(None, "--from", help="E-mail or phone of the sender."),
    recipient: str | None = typer.Option(None, "--to", help="E-mail or phone of the recipient."),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    """Record a communication on a claim."""
    is_email = communication_type == ClaimCommunicationType.EMAIL.value
    ws = _load_workspace()
    with _client(ws) as client:
        _call(
            records.add_claim_communication,
            client,
            claim_id,
            content=content,
            communication_type=communication_type,
            direction=direction,
            subject=subject,
            from_email=sender if is_email else None,
            to_email=recipient if is_email else None,
            from_phone=None if is_email else sender,
            to_phone=None if is_email else recipient,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Recorded {communication_type} on claim {claim_id}")


# Contacts and phones


@contact_app.command("list")
def contact_list(
    customer_id: str = typer.Argument(...),
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        contacts = _call(records.list_contacts, client, customer_id)
    if not contacts:
        typer.echo("No contacts.")
        return
    result = paginate(contacts, page=page, limit=limit)
    for contact in result.items:
        typer.echo(
            f"{contact.id} | {contact.name} | {contact.position or '-'} | {contact.email or '-'} | "
            f"{contact.cell_phone or contact.phone or '-'}"
        )
    _echo_pagination(result)


@contact_app.command("add")
def contact_add(
    customer_id: str = typer.Argument(...),
    name: str = typer.Option(..., "--name"),
    contact_type: str | None = typer.Option(None, "--type"),
    email: str | None = typer.Option(None, "--email"),
    phone: str | None = typer.Option(None, "--phone"),
    cell_phone: str | None = typer.Option(None, "--cell"),
    position: str | None = typer.Option(None, "--position"),
    gender: str | None = typer.Option(None, "--gender"),
    birth_date: str | None = typer.Option(None, "--birth-date"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        contact = _call(
            records.save_contact,
            client,
            customer_id,
            name=name,
            contact_type=contact_type,
            email=email,
            phone=phone,
            cell_phone=cell_phone,
            position=position,
            gender=gender,
            birth_date=birth_date,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Created contact: {contact.id}")


@contact_app.command("delete")
def contact_delete(
    customer_id: str = typer.Argument(...),
    contact_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_contact, client, customer_id, contact_id, logger=_event_logger(ws, events))
    typer.echo(f"Deleted contact: {contact_id}")


@phone_app.command("list")
def phone_list(customer_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        phones = _call(records.list_phones, client, customer_id)
    if not phones:
        typer.echo("No phones.")
        return
    for phone in phones:
        extension = f" ext. {phone.extension}" if phone.extension else ""
        typer.echo(f"{phone.id} | {phone.kind or '-'} | {phone.number}{extension} | {phone.contact or '-'}")


@phone_app.command("add")
def phone_add(
    customer_id: str = typer.Argument(...),
    kind: str = typer.Option(..., "--kind"),
    number: str = typer.Option(..., "--number"),
    extension: str | None = typer.Option(None, "--extension"),
    contact: str | None = typer.Option(None, "--contact"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        phone = _call(
            records.save_phone,
            client,
            customer_id,
            kind=kind,
            number=number,
            extension=extension,
            contact=contact,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Created phone: {phone.id}")


@phone_app.command("delete")
def phone_delete(
    customer_id: str = typer.Argument(...),
    phone_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_phone, client, customer_id, phone_id, logger=_event_logger(ws, events))
    typer.echo(f"Deleted phone: {phone_id}")


# Addresses


@address_app.command("list")
def address_list(customer_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        addresses = _call(records.list_addresses, client, customer_id)
    if not addresses:
        typer.echo("No addresses.")
        return
    for address in addresses:
        line = ", ".join(part for part in (address.street, address.number, address.complement) if part)
        typer.echo(
            f"{address.id} | {address.type or '-'} | {line} | {address.district or '-'} | "
            f"{address.city or '-'}/{address.state or '-'} | {format_cep(address.zip_code or '')}"
        )


@address_app.command("add")
def address_add(
    customer_id: str = typer.Argument(...),
    address_type: str = typer.Option(..., "--type"),
    zip_code: str = typer.Option(..., "--cep"),
    street: str | None = typer.Option(None, "--street"),
    number: str | None = typer.Option(None, "--number"),
    complement: str | None = typer.Option(None, "--complement"),
    district: str | None = typer.Option(None, "--district"),
    city: str | None = typer.Option(None, "--city"),
    state: str | None = typer.Option(None, "--state"),
    lookup: bool = typer.Option(
        False, "--lookup", help="Fill missing street, district, city and state from the CEP service."
    ),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    if lookup:
        found = _call(CepClient(ws.cep_base_url, ws.api.timeout_seconds).lookup, zip_code)
        if found is None:
            _exit_with_error(f"CEP not found: {zip_code}")
        street = street or found.street
        complement = complement or found.complement or None
        district = district or found.district
        city = city or found.city
        state = state or found.state
    with _client(ws) as client:
        address = _call(
            records.save_address,
            client,
            customer_id,
            address_type=address_type,
            street=street or "",
            number=number,
            complement=complement,
            district=district or "",
            city=city or "",
            state=state or "",
            zip_code=zip_code,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Created address: {address.id}")


@address_app.command("delete")
def address_delete(
    customer_id: str = typer.Argument(...),
    address_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_address, client, customer_id, address_id, logger=_event_logger(ws, events))
    typer.echo(f"Deleted address: {address_id}")


@address_app.command("cep")
def address_cep(cep: str = typer.Argument(...)) -> None:
    """Look up a Brazilian postal code."""
    ws = _load_workspace()
    found = _call(CepClient(ws.cep_base_url, ws.api.timeout_seconds).lookup, cep)
    if found is None:
        _exit_with_error(f"CEP not found: {cep}")
    typer.echo(f"{format_cep(found.cep)} | {found.street} | {found.district} | {found.city}/{found.state}")


# Documents


@document_app.command("list")
def document_list(customer_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        documents = _call(records.list_documents, client, customer_id)
    if not documents:
        typer.echo("No documents.")
        return
    for document in documents:
        typer.echo(
            f"{document.id} | {document.file_name} | {document.category} | "
            f"v{document.version} | {document.size if document.size is not None else '-'} bytes"
        )


@document_app.command("upload")
def document_upload(
    customer_id: str = typer.Argument(...),
    file_path: Path = typer.Argument(..., help="File to upload."),
    category: str = typer.Option(..., "--category"),
    description: str | None = typer.Option(None, "--description"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        document = _call(
            records.upload_document,
            client,
            customer_id,
            file_path=file_path,
            category=category,
            description=description,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"Uploaded document: {document.id}")


@document_app.command("delete")
def document_delete(
    customer_id: str = typer.Argument(...),
    document_id: str = typer.Argument(...),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        _call(records.delete_document, client, customer_id, document_id, logger=_event_logger(ws, events))
    typer.echo(f"Deleted document: {document_id}")


# Products


@product_app.command("list")
def product_list(
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
    search: str | None = typer.Option(None, "--search"),
    insurer: str | None = typer.Option(None, "--insurer"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        result = _call(
            records.list_products, client, page=page, limit=limit, search=search, insurer_search=insurer
        )
    if not result.items:
        typer.echo("No products.")
        return
    for product in result.items:
        typer.echo(
            f"{product.id} | {product.name} | {product.code or '-'} | {product.insurer_name or '-'} | "
            f"{product.branch_name or '-'}"
        )
    _echo_pagination(result)


@product_app.command("add")
def product_add(
    name: str = typer.Option(..., "--name"),
    insurer_id: str = typer.Option(..., "--insurer"),
    branch_id: str = typer.Option(..., "--branch"),
    code: str | None = typer.Option(None, "--code"),
    product_id: str | None = typer.Option(None, "--id", help="Update this product instead of creating one."),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        product = _call(
            records.save_product,
            client,
            name=name,
            insurance_company_id=insurer_id,
            branch_id=branch_id,
            code=code,
            product_id=product_id,
            logger=_event_logger(ws, events),
        )
    typer.echo(f"{'Updated' if product_id else 'Created'} product: {product.id}")


# WhatsApp


@whatsapp_app.command("send")
def whatsapp_send(
    customer_id: str = typer.Argument(...),
    phone_number: str = typer.Option(..., "--to"),
    message: str | None = typer.Option(None, "--message"),
    events: bool = typer.Option(True, "--events/--no-events"),
) -> None:
    ws = _load_workspace()
    with _client(ws) as client:
        profile = _call(records.get_customer_profile, client, customer_id)
        name = profile.customer.name
        _call(
            records.send_whatsapp,
            client,
            customer_id,
            customer_name=name,
            phone_number=phone_number,
            message=message or records.default_whatsapp_message(name),
            logger=_event_logger(ws, events),
        )
    typer.echo(f"WhatsApp message sent to {name}.")


def _load_workspace() -> WorkspaceConfig:
    try:
        return load_workspace()
    except WorkspaceError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc


def _client(ws: WorkspaceConfig) -> BrokerApiClient:
    return BrokerApiClient(ws.api.base_url, token=ws.api.token(), timeout=ws.api.timeout_seconds)


def _call(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    try:
        return func(*args, **kwargs)
    except ApiError as exc:
        if exc.is_auth_error:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=2) from exc
        _exit_with_error(str(exc))
    except SERVICE_ERRORS as exc:
        _exit_with_error(str(exc))


def _echo_pagination(page) -> None:
    meta = page.pagination
    if meta.total_pages > 1:
        typer.echo(f"Page {meta.current_page}/{meta.total_pages} ({meta.total_count} total)")


def _exit_with_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _event_logger(ws: WorkspaceConfig, enabled: bool) -> EventLogger:
    return EventLogger(path=ws.events.path, workspace=ws.name, enabled=enabled and ws.events.enabled)


if __name__ == "__main__":
    app()

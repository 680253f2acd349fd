"""Bulk customer import from an Excel sheet.

The first row holds the headers. They are matched case-insensitively with
whitespace removed, so ``Tipo Pessoa`` and ``tipopessoa`` are the same
column. Rows are validated locally and only valid rows are sent.
"""

from __future__ import annotations

import zipfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from brokercrm.domain import rules
from brokercrm.services.events import EventLogger

# sheet header -> import payload key
COLUMNS = {
    "nome": "nome",
    "tipopessoa": "tipoPessoa",
    "cnpjcpf": "cnpjCpf",
    "email": "email",
    "telefoneresidencial": "telefoneResidencial",
    "telefonecomercial": "telefoneComercial",
    "telefonecelular": "telefoneCelular",
    "cep": "cep",
    "endereco": "endereco",
    "numero": "numero",
    "complemento": "complemento",
    "bairro": "bairro",
    "cidade": "cidade",
    "estado": "estado",
}
DIGIT_FIELDS = ("cnpjCpf", "telefoneResidencial", "telefoneComercial", "telefoneCelular", "cep")


class ImportFileError(ValueError):
    pass


@dataclass(frozen=True)
class ImportRow:
    row_number: int
    values: dict[str, str]
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def name(self) -> str:
        return self.values.get("nome", "")


@dataclass(frozen=True)
class ImportResult:
    total: int
    succeeded: int
    failed: int
    customers_created: int = 0
    addresses_created: int = 0
    phones_created: int = 0
    message: str = ""
    details: list[str] = field(default_factory=list)


def read_customer_sheet(path: Path) -> list[ImportRow]:
    if not path.is_file():
        raise ImportFileError(f"file not found: {path}")
    try:
        wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ImportFileError(f"Could not read Excel file {path.name}: {exc}") from exc
    try:
        if not wb.worksheets:
            raise ImportFileError("Excel file has no worksheets.")
        rows = list(wb.worksheets[0].iter_rows(values_only=True))
    finally:
        wb.close()
    if len(rows) < 2:
        raise ImportFileError("Excel file has no data rows.")

    headers = [_header(cell) for cell in rows[0]]
    parsed = []
    for row_number, row in enumerate(rows[1:], start=2):
        if all(_cell_text(cell) == "" for cell in row):
            continue
        values = {}
        for header, cell in zip(headers, row):
            key = COLUMNS.get(header)
            if key:
                values[key] = _cell_text(cell)
        parsed.append(validate_row(row_number, values))
    return parsed


def validate_row(row_number: int, values: dict[str, str]) -> ImportRow:
    errors = []
    if not values.get("nome", "").strip():
        errors.append("name is required")
    person_type = values.get("tipoPessoa", "").strip().upper()
    if not person_type:
        errors.append("person type is required")
    elif person_type not in ("PF", "PJ"):
        errors.append("person type must be PF or PJ")
    if values.get("cnpjCpf"):
        try:
            rules.validate_tax_id(values["cnpjCpf"])
        except rules.ValidationError:
            errors.append("invalid CPF/CNPJ")
    if values.get("email"):
        try:
            rules.validate_email(values["email"])
        except rules.ValidationError:
            errors.append("invalid e-mail")

    cleaned = {key: value.strip() for key, value in values.items() if value and value.strip()}
    if person_type:
        cleaned["tipoPessoa"] = person_type
    for key in DIGIT_FIELDS:
        if key in cleaned:
            cleaned[key] = rules.digits(cleaned[key])
    if "email" in cleaned:
        cleaned["email"] = cleaned["email"].lower()
    if "estado" in cleaned:
        cleaned["estado"] = cleaned["estado"].upper()
    return ImportRow(row_number=row_number, values=cleaned, errors=tuple(errors))


def import_customers(
    client: Any,
    rows: Sequence[ImportRow],
    *,
    source: str = "sheet",
    logger: EventLogger | None = None,
) -> ImportResult:
    valid = [row for row in rows if row.is_valid]
    if not valid:
        raise rules.ValidationError("No valid customers to import.")
    data = client.post("/api/importacao/clientes", json={"clientes": [row.values for row in valid]})
    result = _result_from_api(data, len(valid))
    if logger is not None:
        logger.log(
            event_type="import",
            entity_type="customer",
            entity_id=source,
            changed_fields=[row.name for row in valid],
        )
    return result


def _result_from_api(data: Any, sent: int) -> ImportResult:
    summary = data.get("resultados") if isinstance(data, dict) else None
    if not isinstance(summary, dict):
        return ImportResult(total=sent, succeeded=0, failed=0, message=str(data or ""))
    created = summary.get("registrosCriados") or {}
    return ImportResult(
        total=int(summary.get("total") or sent),
        succeeded=int(summary.get("sucessos") or 0),
        failed=int(summary.get("erros") or 0),
        customers_created=int(created.get("clientes") or 0),
        addresses_created=int(created.get("enderecos") or 0),
        phones_created=int(created.get("telefones") or 0),
        message=data.get("mensagem") or "",
        details=list(summary.get("detalhes") or []),
    )


def _header(cell: Any) -> str:
    return "".join(str(cell).lower().split()) if cell is not None else ""


def _cell_text(cell: Any) -> str:
    if cell is None:
        return ""
    if isinstance(cell, datetime):
        cell = cell.date()
    if isinstance(cell, date):
        return cell.strftime("%d/%m/%Y")
    if isinstance(cell, float) and cell.is_integer():
        # CPFs and phones typed as numbers come back as floats
        return str(int(cell))
    return str(cell).strip()

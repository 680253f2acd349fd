from __future__ import annotations

from datetime import UTC, date, datetime


def utc_now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def format_currency(value: float | None) -> str:
    """Render a BRL amount as ``R$ 1.234,56``."""
    amount = value or 0.0
    text = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if amount < 0 else ""
    return f"{sign}R$ {text}"


def format_date(value: date | datetime | None) -> str:
    if value is None:
        return "N/A"
    return value.strftime("%d/%m/%Y")

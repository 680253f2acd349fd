from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, datetime

NON_DIGIT_RE = re.compile(r"\D")
BR_DATE_RE = re.compile(r"^(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
STATE_RE = re.compile(r"^[A-Za-z]{2}$")


class ValidationError(ValueError):
    pass


def require(value: str | None, field: str) -> None:
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{field} is required.")


def validate_enum(value: str | None, allowed: Iterable[str], field: str) -> None:
    if value is None:
        return
    allowed = list(allowed)
    if value not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")


def validate_length(value: str | None, field: str, min_len: int = 0, max_len: int | None = None) -> None:
    if value is None:
        return
    length = len(value.strip())
    if length < min_len:
        raise ValidationError(f"{field} must have at least {min_len} characters.")
    if max_len is not None and length > max_len:
        raise ValidationError(f"{field} must have at most {max_len} characters.")


def validate_non_negative(value: float | None, field: str) -> None:
    if value is None:
        return
    if value < 0:
        raise ValidationError(f"{field} must be zero or positive.")


def validate_email(value: str | None, field: str = "email") -> None:
    if not value:
        return
    if not EMAIL_RE.match(value.strip()):
        raise ValidationError(f"{field} is not a valid e-mail address.")


def validate_state(value: str | None, field: str = "state") -> None:
    require(value, field)
    if not STATE_RE.match(value.strip()):
        raise ValidationError(f"{field} must have exactly 2 letters.")


def digits(value: str | None) -> str:
    return NON_DIGIT_RE.sub("", value or "")


def validate_cep(value: str | None, field: str = "zip_code") -> str:
    cleaned = digits(value)
    if len(cleaned) != 8:
        raise ValidationError(f"{field} must have 8 digits.")
    return cleaned


def is_valid_cpf(value: str | None) -> bool:
    cleaned = digits(value)
    if len(cleaned) != 11 or cleaned == cleaned[0] * 11:
        return False
    numbers = [int(ch) for ch in cleaned]
    for position in (9, 10):
        total = sum(numbers[i] * (position + 1 - i) for i in range(position))
        remainder = total % 11
        check = 0 if remainder < 2 else 11 - remainder
        if numbers[position] != check:
            return False
    return True


def is_valid_cnpj(value: str | None) -> bool:
    cleaned = digits(value)
    if len(cleaned) != 14 or cleaned == cleaned[0] * 14:
        return False
    numbers = [int(ch) for ch in cleaned]
    weights = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    for position in (12, 13):
        offset = 13 - position
        total = sum(numbers[i] * weights[i + offset] for i in range(position))
        remainder = total % 11
        check = 0 if remainder < 2 else 11 - remainder
        if numbers[position] != check:
            return False
    return True


def validate_tax_id(value: str | None, field: str = "cnpj_cpf") -> None:
    if not value:
        return
    cleaned = digits(value)
    if len(cleaned) == 11 and is_valid_cpf(cleaned):
        return
    if len(cleaned) == 14 and is_valid_cnpj(cleaned):
        return
    raise ValidationError(f"{field} is not a valid CPF or CNPJ.")


def parse_date(value: str | None, field: str) -> date | None:
    """Parse ``DD/MM/YYYY``, ``YYYY-MM-DD`` or an ISO datetime into a date.

    The date part of an ISO datetime is taken as written, so
    ``2025-03-10T23:00:00Z`` and ``10/03/2025`` are the same wall-clock day.
    """
    if value is None:
        return None
    text = value.strip()
    match = BR_DATE_RE.match(text)
    try:
        if match:
            return date(int(match.group("year")), int(match.group("month")), int(match.group("day")))
        return date.fromisoformat(text.split("T")[0])
    except ValueError as exc:
        raise ValidationError(f"{field} must be DD/MM/YYYY or YYYY-MM-DD.") from exc


def parse_datetime(value: str | None, field: str) -> datetime | None:
    if value is None:
        return None
    cleaned = value.strip().replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(cleaned)
    except ValueError as exc:
        raise ValidationError(f"{field} must be ISO 8601.") from exc


def coerce_date(value: object) -> date | None:
    """Best-effort conversion for read paths; returns None instead of raising."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_date(value, "date")
        except ValidationError:
            return None
    return None


def coerce_datetime(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return parse_datetime(value, "date")
        except ValidationError:
            day = coerce_date(value)
            return datetime(day.year, day.month, day.day) if day else None
    return None

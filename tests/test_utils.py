from datetime import date

from brokercrm.services.utils import format_currency, format_date


def test_format_currency_uses_brazilian_separators() -> None:
    assert format_currency(1234.5) == "R$ 1.234,50"
    assert format_currency(None) == "R$ 0,00"
    assert format_currency(-10) == "-R$ 10,00"


def test_format_date() -> None:
    assert format_date(date(2025, 3, 5)) == "05/03/2025"
    assert format_date(None) == "N/A"

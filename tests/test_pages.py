import pytest

from brokercrm.adapters.api.pages import PageFormatError, parse_page
from brokercrm.domain.models import Product


def test_bare_list_synthesises_pagination() -> None:
    page = parse_page([{"id": 1}, {"id": 2}])
    assert len(page.items) == 2
    assert page.pagination.total_count == 2
    assert page.pagination.total_pages == 1
    assert not page.pagination.has_next


def test_pagination_block() -> None:
    payload = {
        "products": [{"id": "p1", "name": "Auto", "insuranceCompany": {"name": "Porto"}}],
        "pagination": {
            "currentPage": 2,
            "totalPages": 3,
            "totalCount": 21,
            "limit": 10,
            "hasNext": True,
            "hasPrev": True,
        },
    }
    page = parse_page(payload, Product.from_api)
    assert page.items[0].insurer_name == "Porto"
    assert page.pagination.current_page == 2
    assert page.pagination.total_count == 21
    assert page.pagination.has_next and page.pagination.has_prev


def test_flat_pagination_keys() -> None:
    page = parse_page({"data": [{"id": 1}], "total": 25, "page": 3, "limit": 10})
    assert page.pagination.total_pages == 3
    assert page.pagination.current_page == 3
    assert not page.pagination.has_next
    assert page.pagination.has_prev


def test_empty_and_missing_payloads() -> None:
    assert parse_page(None).items == []
    assert parse_page({}).items == []


def test_explicit_key_must_exist() -> None:
    with pytest.raises(PageFormatError):
        parse_page({"data": []}, items_key="claims")
    with pytest.raises(PageFormatError):
        parse_page("oops")

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from brokercrm.domain.models import Page, Pagination

ITEM_KEYS = (
    "data",
    "items",
    "products",
    "activities",
    "opportunities",
    "claims",
    "documents",
    "contacts",
    "addresses",
    "phones",
    "customers",
)


class PageFormatError(RuntimeError):
    pass


def parse_page(
    payload: Any,
    factory: Callable[[dict[str, Any]], Any] | None = None,
    items_key: str | None = None,
) -> Page:
    """Turn any list envelope the API returns into a ``Page``.

    Accepts a bare array, an object holding the array under ``items_key`` or
    one of ``ITEM_KEYS``, with either a ``pagination`` object or flat
    ``total``/``page``/``totalPages`` keys.
    """
    if payload is None:
        raw_items: list[Any] = []
        meta: dict[str, Any] = {}
    elif isinstance(payload, list):
        raw_items = payload
        meta = {}
    elif isinstance(payload, dict):
        raw_items = _find_items(payload, items_key)
        meta = payload
    else:
        raise PageFormatError(f"Unexpected list payload: {type(payload).__name__}")

    items = [factory(item) for item in raw_items] if factory else list(raw_items)
    return Page(items=items, pagination=_parse_pagination(meta, len(items)))


def _find_items(payload: dict[str, Any], items_key: str | None) -> list[Any]:
    keys = (items_key,) if items_key else ITEM_KEYS
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return value
    if items_key:
        raise PageFormatError(f"List payload is missing '{items_key}'.")
    return []


def _parse_pagination(meta: dict[str, Any], item_count: int) -> Pagination:
    block = meta.get("pagination")
    if isinstance(block, dict):
        current = int(block.get("currentPage") or 1)
        total_pages = int(block.get("totalPages") or 1)
        total_count = int(block.get("totalCount") or item_count)
        limit = int(block.get("limit") or max(item_count, 1))
        return Pagination(
            current_page=current,
            total_pages=total_pages,
            total_count=total_count,
            limit=limit,
            has_next=bool(block.get("hasNext", current < total_pages)),
            has_prev=bool(block.get("hasPrev", current > 1)),
        )

    current = int(meta.get("page") or 1)
    total_count = int(meta.get("total") or item_count)
    limit = int(meta.get("limit") or max(item_count, 1))
    total_pages = int(meta.get("totalPages") or max(1, math.ceil(total_count / limit)))
    return Pagination(
        current_page=current,
        total_pages=total_pages,
        total_count=total_count,
        limit=limit,
        has_next=current < total_pages,
        has_prev=current > 1,
    )

"""List view state: filters, pagination and stale-response handling.

Each change to filters or page bumps a sequence number. A fetch takes a
ticket before it starts and its result is stored only if no newer change
happened meanwhile, so a slow response can never overwrite a newer one.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from brokercrm.domain.models import Activity, Page, Pagination


@dataclass(frozen=True)
class ListQuery:
    page: int = 1
    limit: int = 10
    search: str | None = None
    filters: dict[str, str] = field(default_factory=dict)


@dataclass
class ListState:
    query: ListQuery = field(default_factory=ListQuery)
    page: Page | None = None
    sequence: int = 0
    discarded: int = 0

    def set_filter(self, key: str, value: str | None) -> None:
        filters = dict(self.query.filters)
        if value:
            filters[key] = value
        else:
            filters.pop(key, None)
        self.query = replace(self.query, filters=filters, page=1)
        self.sequence += 1

    def set_search(self, search: str | None) -> None:
        self.query = replace(self.query, search=search or None, page=1)
        self.sequence += 1

    def go_to(self, page: int) -> None:
        self.query = replace(self.query, page=max(1, page))
        self.sequence += 1

    def invalidate(self) -> None:
        self.sequence += 1

    def begin(self) -> int:
        return self.sequence

    def accept(self, ticket: int, page: Page) -> bool:
        if ticket != self.sequence:
            self.discarded += 1
            return False
        self.page = page
        return True

    def refresh(self, fetch: Callable[[ListQuery], Page]) -> Page | None:
        ticket = self.begin()
        page = fetch(self.query)
        self.accept(ticket, page)
        return self.page


def paginate(items: Sequence[Any], page: int = 1, limit: int = 10) -> Page:
    limit = max(1, limit)
    total_count = len(items)
    total_pages = max(1, math.ceil(total_count / limit))
    current = min(max(1, page), total_pages)
    start = (current - 1) * limit
    return Page(
        items=list(items[start : start + limit]),
        pagination=Pagination(
            current_page=current,
            total_pages=total_pages,
            total_count=total_count,
            limit=limit,
            has_next=current < total_pages,
            has_prev=current > 1,
        ),
    )


def filter_activities(
    activities: Sequence[Activity],
    search: str | None = None,
    activity_type: str | None = None,
) -> list[Activity]:
    needle = (search or "").strip().lower()
    result = []
    for activity in activities:
        if activity_type and activity.type != activity_type:
            continue
        if needle:
            text = f"{activity.title} {activity.description or ''}".lower()
            if needle not in text:
                continue
        result.append(activity)
    return result

from datetime import datetime

from brokercrm.domain.models import Activity
from brokercrm.services.listing import ListQuery, ListState, filter_activities, paginate


def test_stale_response_is_discarded() -> None:
    state = ListState()
    slow_ticket = state.begin()
    state.set_filter("type", "call")
    fresh_ticket = state.begin()

    fresh = paginate(["call-1"])
    stale = paginate(["everything-1", "everything-2"])

    assert state.accept(fresh_ticket, fresh)
    assert not state.accept(slow_ticket, stale)
    assert state.page is fresh
    assert state.discarded == 1


def test_filter_and_search_changes_reset_page() -> None:
    state = ListState(query=ListQuery(page=4))
    state.set_filter("type", "email")
    assert state.query.page == 1
    assert state.query.filters == {"type": "email"}

    state.go_to(3)
    state.set_search("renovação")
    assert state.query.page == 1
    assert state.query.search == "renovação"

    state.set_filter("type", None)
    assert state.query.filters == {}


def test_invalidate_forces_refetch() -> None:
    state = ListState()
    queries = []

    def fetch(query: ListQuery):
        queries.append(query)
        return paginate([len(queries)])

    state.refresh(fetch)
    ticket = state.begin()
    state.invalidate()
    assert not state.accept(ticket, paginate(["old"]))
    page = state.refresh(fetch)
    assert page.items == [2]
    assert len(queries) == 2


def test_paginate_clamps_page() -> None:
    items = list(range(25))
    page = paginate(items, page=3, limit=10)
    assert page.items == [20, 21, 22, 23, 24]
    assert page.pagination.total_pages == 3
    assert page.pagination.has_prev and not page.pagination.has_next

    beyond = paginate(items, page=9, limit=10)
    assert beyond.pagination.current_page == 3

    empty = paginate([], page=2)
    assert empty.items == []
    assert empty.pagination.total_pages == 1


def test_filter_activities_by_type_and_text() -> None:
    activities = [
        Activity(id="1", type="call", date=datetime(2025, 6, 1), title="Ligação de renovação"),
        Activity(id="2", type="email", date=datetime(2025, 6, 2), title="Envio de proposta"),
        Activity(id="3", type="call", date=None, title="Retorno", description="Falar sobre RENOVAÇÃO"),
    ]
    assert [a.id for a in filter_activities(activities, activity_type="call")] == ["1", "3"]
    assert [a.id for a in filter_activities(activities, search="renovação")] == ["1", "3"]
    assert [a.id for a in filter_activities(activities, search="proposta", activity_type="call")] == []

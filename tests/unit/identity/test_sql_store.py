from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from contact_reconciliation.identity.store import (
    SqlContactStore,
    attribute_lock_keys,
    cluster_lock_keys,
)
from contact_reconciliation.identity.types import LinkPrecedence


pytestmark = [pytest.mark.unit, pytest.mark.asyncio]

_NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _row(contact_id: int, email=None, phone=None, *, linked_id=None, precedence="primary") -> dict:
    return {
        "id": contact_id,
        "email": email,
        "phone_number": phone,
        "linked_id": linked_id,
        "link_precedence": precedence,
        # timestamp without time zone columns come back naive
        "created_at": datetime(2026, 1, 1, 0, 0, contact_id),
        "updated_at": datetime(2026, 1, 1, 0, 0, contact_id),
        "deleted_at": None,
    }


def _result(rows: list[dict]) -> MagicMock:
    result = MagicMock()
    result.mappings.return_value.all.return_value = rows
    result.mappings.return_value.first.return_value = rows[0] if rows else None
    result.mappings.return_value.one.return_value = rows[0] if rows else None
    return result


def _sql(call) -> str:
    return " ".join(str(call.args[0]).split())


async def test_find_by_attributes_matches_either_value() -> None:
    session = AsyncMock()
    session.execute.return_value = _result([_row(1, "a@x.com", "1")])
    store = SqlContactStore(session)

    contacts = await store.find_by_attributes("a@x.com", "1")

    call = session.execute.await_args
    assert "email = :email OR phone_number = :phone_number" in _sql(call)
    assert "deleted_at IS NULL" in _sql(call)
    assert call.args[1] == {"email": "a@x.com", "phone_number": "1"}
    assert contacts[0].id == 1
    assert contacts[0].created_at.tzinfo is not None


async def test_find_by_attributes_skips_absent_values() -> None:
    session = AsyncMock()
    session.execute.return_value = _result([])
    store = SqlContactStore(session)

    await store.find_by_attributes(None, "1")

    call = session.execute.await_args
    assert "email" not in call.args[1]
    assert "email = :email" not in _sql(call)


async def test_find_by_attributes_without_values_does_not_query() -> None:
    session = AsyncMock()
    store = SqlContactStore(session)

    assert await store.find_by_attributes(None, "") == []
    session.execute.assert_not_awaited()


async def test_find_cluster_from_secondary_queries_its_primary() -> None:
    session = AsyncMock()
    session.execute.side_effect = [
        _result([_row(3, "c@x.com", linked_id=1, precedence="secondary")]),
        _result(
            [
                _row(1, "a@x.com"),
                _row(3, "c@x.com", linked_id=1, precedence="secondary"),
            ]
        ),
    ]
    store = SqlContactStore(session)

    cluster = await store.find_cluster(3)

    second = session.execute.await_args_list[1]
    assert second.args[1] == {"root_id": 1}
    assert [contact.id for contact in cluster] == [1, 3]
    assert cluster[1].link_precedence is LinkPrecedence.SECONDARY


async def test_find_cluster_for_missing_contact_is_empty() -> None:
    session = AsyncMock()
    session.execute.return_value = _result([])
    store = SqlContactStore(session)

    assert await store.find_cluster(42) == []
    assert session.execute.await_count == 1


async def test_insert_stamps_clock_and_returns_row() -> None:
    session = AsyncMock()
    session.execute.return_value = _result(
        [_row(2, "a@x.com", "5", linked_id=1, precedence="secondary")]
    )
    store = SqlContactStore(session, clock=lambda: _NOW)

    contact = await store.insert("a@x.com", "5", 1, LinkPrecedence.SECONDARY)

    params = session.execute.await_args.args[1]
    assert params["link_precedence"] == "secondary"
    assert params["linked_id"] == 1
    assert params["now"] == _NOW
    assert "RETURNING" in _sql(session.execute.await_args)
    assert contact.id == 2
    assert contact.linked_id == 1


async def test_demote_points_contact_at_new_primary() -> None:
    session = AsyncMock()
    store = SqlContactStore(session, clock=lambda: _NOW)

    await store.demote(3, 1)

    call = session.execute.await_args
    assert "link_precedence = 'secondary'" in _sql(call)
    assert call.args[1] == {"contact_id": 3, "linked_id": 1, "now": _NOW}


async def test_lock_attributes_takes_one_advisory_lock_per_value_in_order() -> None:
    session = AsyncMock()
    store = SqlContactStore(session)

    await store.lock_attributes("z@x.com", "1")

    keys = [call.args[1]["key"] for call in session.execute.await_args_list]
    assert keys == ["contact:email:z@x.com", "contact:phone:1"]
    assert all("pg_advisory_xact_lock" in _sql(call) for call in session.execute.await_args_list)


async def test_lock_keys_skip_absent_values() -> None:
    assert attribute_lock_keys(None, "7") == ["contact:phone:7"]
    assert attribute_lock_keys(None, None) == []


async def test_lock_clusters_locks_each_primary_once_in_id_order() -> None:
    session = AsyncMock()
    store = SqlContactStore(session)

    await store.lock_clusters([12, 3, 12])

    keys = [call.args[1]["key"] for call in session.execute.await_args_list]
    assert keys == ["contact:cluster:3", "contact:cluster:12"]
    assert cluster_lock_keys([]) == []

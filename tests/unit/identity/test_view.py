from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from contact_reconciliation.identity.types import Contact, LinkPrecedence
from contact_reconciliation.identity.view import render
from contact_reconciliation.kernel.errors import IntegrityFaultError


pytestmark = pytest.mark.unit

_T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _contact(contact_id: int, email, phone, *, minutes: int, linked_id=None) -> Contact:
    return Contact(
        id=contact_id,
        email=email,
        phone_number=phone,
        linked_id=linked_id,
        link_precedence=LinkPrecedence.SECONDARY if linked_id else LinkPrecedence.PRIMARY,
        created_at=_T0 + timedelta(minutes=minutes),
        updated_at=_T0 + timedelta(minutes=minutes),
    )


def test_primary_values_lead_and_duplicates_are_dropped() -> None:
    cluster = [
        _contact(5, "late@x.com", "2", minutes=9, linked_id=1),
        _contact(1, "first@x.com", "1", minutes=0),
        _contact(3, "first@x.com", "2", minutes=3, linked_id=1),
        _contact(4, None, "", minutes=5, linked_id=1),
    ]

    identity = render(cluster)

    assert identity.primary_contact_id == 1
    assert identity.emails == ["first@x.com", "late@x.com"]
    assert identity.phone_numbers == ["1", "2"]
    assert identity.secondary_contact_ids == [3, 4, 5]


def test_primary_without_email_puts_secondary_email_first() -> None:
    cluster = [
        _contact(1, None, "1", minutes=0),
        _contact(2, "b@x.com", "1", minutes=1, linked_id=1),
    ]

    identity = render(cluster)

    assert identity.emails == ["b@x.com"]
    assert identity.phone_numbers == ["1"]


def test_wire_names_use_camel_case() -> None:
    identity = render([_contact(7, "a@x.com", None, minutes=0)])

    assert identity.model_dump(by_alias=True) == {
        "primaryContactId": 7,
        "emails": ["a@x.com"],
        "phoneNumbers": [],
        "secondaryContactIds": [],
    }


def test_cluster_without_primary_is_an_integrity_fault() -> None:
    cluster = [_contact(2, "b@x.com", None, minutes=1, linked_id=1)]

    with pytest.raises(IntegrityFaultError):
        render(cluster)

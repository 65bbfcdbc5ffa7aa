"""Render a contact cluster as the externally visible consolidated identity."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from contact_reconciliation.identity.resolver import require_single_primary
from contact_reconciliation.identity.types import ConsolidatedIdentity, Contact


def render(cluster: Sequence[Contact]) -> ConsolidatedIdentity:
    primary = require_single_primary(cluster)
    secondaries = sorted(
        (contact for contact in cluster if not contact.is_primary),
        key=lambda contact: contact.age_key,
    )
    ordered = [primary, *secondaries]

    return ConsolidatedIdentity(
        primary_contact_id=primary.id,
        emails=_unique(contact.email for contact in ordered),
        phone_numbers=_unique(contact.phone_number for contact in ordered),
        secondary_contact_ids=[contact.id for contact in secondaries],
    )


def _unique(values: Iterable[str | None]) -> list[str]:
    # dict keeps first-seen order
    return list(dict.fromkeys(value for value in values if value))

"""
Cluster Resolver

Finds the contacts sharing an email or phone number with an observation and
expands each of them to the full cluster (primary plus secondaries) it
belongs to.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from contact_reconciliation.identity.store import ContactStore
from contact_reconciliation.identity.types import Contact
from contact_reconciliation.kernel.errors import IntegrityFaultError


@dataclass(frozen=True, slots=True)
class Resolution:
    """A cluster and its single primary. Empty when nothing matched."""

    primary: Contact | None = None
    cluster: list[Contact] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.cluster


def require_single_primary(cluster: Sequence[Contact]) -> Contact:
    """Return the cluster's primary, or raise if it has zero or several."""
    primaries = [contact for contact in cluster if contact.is_primary]
    if len(primaries) != 1:
        raise IntegrityFaultError(
            meta={
                "primary_ids": [contact.id for contact in primaries],
                "member_ids": [contact.id for contact in cluster],
            }
        )
    return primaries[0]


class ClusterResolver:
    def __init__(self, store: ContactStore) -> None:
        self._store = store

    async def expand(self, contact_id: int) -> Resolution:
        """Load the cluster containing ``contact_id``."""
        cluster = await self._store.find_cluster(contact_id)
        if not cluster:
            return Resolution()
        return Resolution(primary=require_single_primary(cluster), cluster=cluster)

    async def resolve(self, email: str | None, phone_number: str | None) -> Resolution:
        """Resolve the cluster of the oldest contact matching either attribute."""
        matches = await self._store.find_by_attributes(email, phone_number)
        if not matches:
            return Resolution()
        anchor = min(matches, key=lambda contact: contact.age_key)
        return await self.expand(anchor.id)

    async def resolve_all(
        self, email: str | None, phone_number: str | None
    ) -> list[Resolution]:
        """Resolve every distinct cluster touched by either attribute.

        Ordered oldest primary first.
        """
        matches = await self._store.find_by_attributes(email, phone_number)
        resolutions: list[Resolution] = []
        seen: set[int] = set()
        for match in sorted(matches, key=lambda contact: contact.age_key):
            if match.id in seen:
                continue
            resolution = await self.expand(match.id)
            if resolution.is_empty or resolution.primary.id in seen:
                continue
            seen.update(contact.id for contact in resolution.cluster)
            resolutions.append(resolution)

        resolutions.sort(key=lambda resolution: resolution.primary.age_key)
        return resolutions

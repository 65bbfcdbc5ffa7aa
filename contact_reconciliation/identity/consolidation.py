"""
Consolidation Engine

Applies one observation to the contact store and returns the consolidated
identity of the cluster it lands in.

Decision order:
1. Nothing matches either attribute: insert a new primary.
2. Every cluster touched by either attribute is merged under the oldest
   primary. Younger primaries and all of their secondaries are re-pointed
   straight at the survivor, so clusters stay two-level stars.
3. The observation's exact (email, phone) pair already exists: no insert.
4. The observation brings an email or phone the cluster has never seen:
   insert a secondary linked to the surviving primary.

Before any write the engine holds locks on the observation's attributes and
on the primary of every touched cluster, so two merges reaching the same
cluster through different attributes run one after the other.

The engine keeps no state between calls. Atomicity comes from the caller
running the whole call inside one store transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

import structlog

from contact_reconciliation.identity.resolver import ClusterResolver, Resolution
from contact_reconciliation.identity.store import ContactStore
from contact_reconciliation.identity.types import (
    ConsolidatedIdentity,
    Contact,
    LinkPrecedence,
)
from contact_reconciliation.identity.view import render

logger = structlog.get_logger()


class ConsolidationOutcome(str, Enum):
    CREATED_PRIMARY = "created_primary"
    CREATED_SECONDARY = "created_secondary"
    UNCHANGED = "unchanged"


@dataclass(slots=True)
class ConsolidationResult:
    identity: ConsolidatedIdentity
    outcome: ConsolidationOutcome
    demoted_primary_ids: list[int] = field(default_factory=list)
    relinked_contact_ids: list[int] = field(default_factory=list)

    @property
    def merged(self) -> bool:
        return bool(self.demoted_primary_ids)


class ConsolidationEngine:
    def __init__(
        self,
        store: ContactStore,
        resolver: ClusterResolver | None = None,
        lock_attributes: bool = True,
    ) -> None:
        self._store = store
        self._resolver = resolver or ClusterResolver(store)
        self._lock_attributes = lock_attributes

    async def consolidate(
        self, email: str | None, phone_number: str | None
    ) -> ConsolidationResult:
        if self._lock_attributes:
            await self._store.lock_attributes(email, phone_number)
            resolutions = await self._resolve_locked(email, phone_number)
        else:
            resolutions = await self._resolver.resolve_all(email, phone_number)
        if not resolutions:
            contact = await self._store.insert(email, phone_number, None, LinkPrecedence.PRIMARY)
            logger.info("New primary contact created", contact_id=contact.id)
            return ConsolidationResult(
                identity=render([contact]),
                outcome=ConsolidationOutcome.CREATED_PRIMARY,
            )

        survivor = resolutions[0].primary
        cluster, demoted, relinked = await self._merge(resolutions)

        outcome = ConsolidationOutcome.UNCHANGED
        if not _has_exact_pair(cluster, email, phone_number) and _brings_new_value(
            cluster, email, phone_number
        ):
            contact = await self._store.insert(
                email, phone_number, survivor.id, LinkPrecedence.SECONDARY
            )
            outcome = ConsolidationOutcome.CREATED_SECONDARY
            logger.info(
                "Secondary contact created",
                contact_id=contact.id,
                primary_contact_id=survivor.id,
            )

        final_cluster = await self._store.find_cluster(survivor.id)
        identity = render(final_cluster)
        return ConsolidationResult(
            identity=identity,
            outcome=outcome,
            demoted_primary_ids=demoted,
            relinked_contact_ids=relinked,
        )

    async def _resolve_locked(
        self, email: str | None, phone_number: str | None
    ) -> list[Resolution]:
        """Resolve the touched clusters while holding a lock on each of their primaries.

        A concurrent merge may re-root a cluster between the read and the lock,
        so resolve again after every new lock until the set of primaries is
        covered by locks already held.
        """
        locked: set[int] = set()
        resolutions = await self._resolver.resolve_all(email, phone_number)
        while True:
            primary_ids = {resolution.primary.id for resolution in resolutions}
            pending = primary_ids - locked
            if not pending:
                return resolutions
            await self._store.lock_clusters(sorted(pending))
            locked |= pending
            logger.debug("Cluster locks acquired", primary_ids=sorted(locked))
            resolutions = await self._resolver.resolve_all(email, phone_number)

    async def _merge(
        self, resolutions: Sequence[Resolution]
    ) -> tuple[list[Contact], list[int], list[int]]:
        """Fold every cluster into the first (oldest) one.

        Returns the merged membership, the ids of demoted primaries and the
        ids of re-pointed secondaries.
        """
        survivor = resolutions[0].primary
        merged: list[Contact] = list(resolutions[0].cluster)
        demoted: list[int] = []
        relinked: list[int] = []

        for resolution in resolutions[1:]:
            merged.extend(resolution.cluster)
            loser = resolution.primary
            logger.info(
                "Merging contact clusters",
                surviving_primary_id=survivor.id,
                demoted_primary_id=loser.id,
                cluster_size=len(resolution.cluster),
            )
            await self._store.demote(loser.id, survivor.id)
            demoted.append(loser.id)
            for contact in resolution.cluster:
                if contact.id == loser.id:
                    continue
                await self._store.demote(contact.id, survivor.id)
                relinked.append(contact.id)

        return merged, demoted, relinked


def _has_exact_pair(
    cluster: Sequence[Contact], email: str | None, phone_number: str | None
) -> bool:
    """True if a member already carries this pair; an absent field always matches."""
    return any(
        (email is None or contact.email == email)
        and (phone_number is None or contact.phone_number == phone_number)
        for contact in cluster
    )


def _brings_new_value(
    cluster: Sequence[Contact], email: str | None, phone_number: str | None
) -> bool:
    if email is not None and all(contact.email != email for contact in cluster):
        return True
    if phone_number is not None and all(contact.phone_number != phone_number for contact in cluster):
        return True
    return False

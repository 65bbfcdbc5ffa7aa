"""
Contact Store

Durable storage of contact rows. The consolidation engine depends only on
the ``ContactStore`` protocol; ``SqlContactStore`` is the PostgreSQL
implementation bound to one session, so every call made through it shares
that session's transaction and sees its own writes.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, Mapping, Protocol

import structlog
from sqlalchemy import text

from contact_reconciliation.identity.types import Contact, LinkPrecedence
from contact_reconciliation.kernel.time import coerce_utc, utc_now

logger = structlog.get_logger()

_CONTACT_COLUMNS = (
    "id, email, phone_number, linked_id, link_precedence, "
    "created_at, updated_at, deleted_at"
)


class ContactStore(Protocol):
    """Operations the consolidation engine needs from storage."""

    async def find_by_attributes(
        self, email: str | None, phone_number: str | None
    ) -> list[Contact]:
        ...

    async def find_cluster(self, contact_id: int) -> list[Contact]:
        ...

    async def insert(
        self,
        email: str | None,
        phone_number: str | None,
        linked_id: int | None,
        precedence: LinkPrecedence,
    ) -> Contact:
        ...

    async def demote(self, contact_id: int, new_linked_id: int) -> None:
        ...

    async def lock_attributes(self, email: str | None, phone_number: str | None) -> None:
        ...

    async def lock_clusters(self, primary_ids: Sequence[int]) -> None:
        ...

    async def tombstone(self, contact_id: int) -> None:
        ...


def attribute_lock_keys(email: str | None, phone_number: str | None) -> list[str]:
    """Lock keys for an observation, sorted so concurrent callers agree on order."""
    keys: list[str] = []
    if email:
        keys.append(f"contact:email:{email}")
    if phone_number:
        keys.append(f"contact:phone:{phone_number}")
    return sorted(keys)


def cluster_lock_keys(primary_ids: Sequence[int]) -> list[str]:
    """Lock keys for cluster roots, in ascending id order."""
    return [f"contact:cluster:{primary_id}" for primary_id in sorted(set(primary_ids))]


def contact_from_row(row: Mapping[str, Any]) -> Contact:
    deleted_at = row.get("deleted_at")
    return Contact(
        id=row["id"],
        email=row.get("email"),
        phone_number=row.get("phone_number"),
        linked_id=row.get("linked_id"),
        link_precedence=LinkPrecedence(row["link_precedence"]),
        created_at=coerce_utc(row["created_at"]),
        updated_at=coerce_utc(row["updated_at"]),
        deleted_at=coerce_utc(deleted_at) if deleted_at is not None else None,
    )


class SqlContactStore:
    """ContactStore over an async SQLAlchemy session (PostgreSQL)."""

    def __init__(self, session, clock: Callable[[], datetime] = utc_now) -> None:
        self._session = session
        self._clock = clock

    async def find_by_attributes(
        self, email: str | None, phone_number: str | None
    ) -> list[Contact]:
        conditions: list[str] = []
        params: dict[str, Any] = {}
        if email:
            conditions.append("email = :email")
            params["email"] = email
        if phone_number:
            conditions.append("phone_number = :phone_number")
            params["phone_number"] = phone_number
        if not conditions:
            return []

        result = await self._session.execute(
            text(
                f"""
                SELECT {_CONTACT_COLUMNS} FROM contact
                WHERE ({" OR ".join(conditions)}) AND deleted_at IS NULL
                ORDER BY created_at ASC, id ASC
                """
            ),
            params,
        )
        return _contacts(result.mappings().all())

    async def find_cluster(self, contact_id: int) -> list[Contact]:
        """Return the whole star around ``contact_id`` in two indexed lookups."""
        result = await self._session.execute(
            text(
                f"""
                SELECT {_CONTACT_COLUMNS} FROM contact
                WHERE id = :contact_id AND deleted_at IS NULL
                """
            ),
            {"contact_id": contact_id},
        )
        row = result.mappings().first()
        if row is None:
            return []

        anchor = contact_from_row(row)
        root_id = anchor.id
        if not anchor.is_primary and anchor.linked_id is not None:
            root_id = anchor.linked_id

        result = await self._session.execute(
            text(
                f"""
                SELECT {_CONTACT_COLUMNS} FROM contact
                WHERE (id = :root_id OR linked_id = :root_id) AND deleted_at IS NULL
                ORDER BY created_at ASC, id ASC
                """
            ),
            {"root_id": root_id},
        )
        return _contacts(result.mappings().all())

    async def insert(
        self,
        email: str | None,
        phone_number: str | None,
        linked_id: int | None,
        precedence: LinkPrecedence,
    ) -> Contact:
        now = self._clock()
        result = await self._session.execute(
            text(
                f"""
                INSERT INTO contact (
                    email, phone_number, linked_id, link_precedence, created_at, updated_at
                ) VALUES (
                    :email, :phone_number, :linked_id, :link_precedence, :now, :now
                )
                RETURNING {_CONTACT_COLUMNS}
                """
            ),
            {
                "email": email,
                "phone_number": phone_number,
                "linked_id": linked_id,
                "link_precedence": LinkPrecedence(precedence).value,
                "now": now,
            },
        )
        contact = contact_from_row(result.mappings().one())
        logger.debug(
            "Contact inserted",
            contact_id=contact.id,
            link_precedence=contact.link_precedence.value,
            linked_id=linked_id,
        )
        return contact

    async def demote(self, contact_id: int, new_linked_id: int) -> None:
        await self._session.execute(
            text(
                """
                UPDATE contact
                SET link_precedence = 'secondary', linked_id = :linked_id, updated_at = :now
                WHERE id = :contact_id
                """
            ),
            {"contact_id": contact_id, "linked_id": new_linked_id, "now": self._clock()},
        )
        logger.debug("Contact demoted", contact_id=contact_id, linked_id=new_linked_id)

    async def lock_attributes(self, email: str | None, phone_number: str | None) -> None:
        await self._advisory_lock(attribute_lock_keys(email, phone_number))

    async def lock_clusters(self, primary_ids: Sequence[int]) -> None:
        await self._advisory_lock(cluster_lock_keys(primary_ids))

    async def _advisory_lock(self, keys: Sequence[str]) -> None:
        # Transaction-scoped: released on commit or rollback.
        for key in keys:
            await self._session.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                {"key": key},
            )

    async def tombstone(self, contact_id: int) -> None:
        now = self._clock()
        await self._session.execute(
            text(
                """
                UPDATE contact SET deleted_at = :now, updated_at = :now
                WHERE id = :contact_id AND deleted_at IS NULL
                """
            ),
            {"contact_id": contact_id, "now": now},
        )


def _contacts(rows: Sequence[Mapping[str, Any]]) -> list[Contact]:
    return [contact_from_row(row) for row in rows]

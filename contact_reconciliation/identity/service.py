"""
Identify service

Transactional entry point for one observation: opens a store scope (one
database transaction), runs the consolidation engine inside it and records
metrics. Any failure inside the scope rolls back every insert and demotion
made for that observation.
"""

from __future__ import annotations

import time
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import AsyncGenerator, Callable

import structlog

from contact_reconciliation.config import get_settings
from contact_reconciliation.db.client import get_db_session
from contact_reconciliation.identity.consolidation import ConsolidationEngine
from contact_reconciliation.identity.store import ContactStore, SqlContactStore
from contact_reconciliation.identity.types import ConsolidatedIdentity, Observation
from contact_reconciliation.kernel.errors import IntegrityFaultError, InvalidObservationError
from contact_reconciliation.monitoring.metrics import Metrics, get_metrics

logger = structlog.get_logger()

StoreScope = Callable[[], AbstractAsyncContextManager[ContactStore]]


@asynccontextmanager
async def sql_store_scope() -> AsyncGenerator[ContactStore, None]:
    """One PostgreSQL transaction exposed as a ContactStore."""
    async with get_db_session() as session:
        yield SqlContactStore(session)


class IdentifyService:
    def __init__(
        self,
        store_scope: StoreScope = sql_store_scope,
        metrics: Metrics | None = None,
        lock_attributes: bool | None = None,
    ) -> None:
        self._store_scope = store_scope
        self._metrics = metrics
        if lock_attributes is None:
            lock_attributes = get_settings().consolidation_lock_enabled
        self._lock_attributes = lock_attributes

    @property
    def metrics(self) -> Metrics:
        if self._metrics is None:
            self._metrics = get_metrics()
        return self._metrics

    async def identify(self, observation: Observation) -> ConsolidatedIdentity:
        if observation.is_empty:
            raise InvalidObservationError()

        start = time.perf_counter()
        try:
            async with self._store_scope() as store:
                engine = ConsolidationEngine(store, lock_attributes=self._lock_attributes)
                result = await engine.consolidate(observation.email, observation.phone_number)
        except IntegrityFaultError as exc:
            self.metrics.track_integrity_fault()
            logger.error(
                "Consolidation aborted on integrity fault",
                code=exc.code,
                **exc.meta,
            )
            raise

        duration = time.perf_counter() - start
        self.metrics.track_consolidation(
            outcome=result.outcome.value,
            duration=duration,
            demoted_primaries=len(result.demoted_primary_ids),
            relinked_secondaries=len(result.relinked_contact_ids),
        )
        logger.info(
            "Observation consolidated",
            outcome=result.outcome.value,
            primary_contact_id=result.identity.primary_contact_id,
            demoted_primary_ids=result.demoted_primary_ids,
            duration_ms=round(duration * 1000, 2),
        )
        return result.identity

"""
Contact Identity Reconciliation Module

Consolidates partial (email, phone) contact records into clusters with one
primary contact each.
"""

from .consolidation import ConsolidationEngine, ConsolidationOutcome, ConsolidationResult
from .resolver import ClusterResolver, Resolution, require_single_primary
from .service import IdentifyService, sql_store_scope
from .store import ContactStore, SqlContactStore
from .types import (
    ConsolidatedIdentity,
    Contact,
    IdentifyResponse,
    LinkPrecedence,
    Observation,
)
from .view import render

__all__ = [
    "ClusterResolver",
    "ConsolidatedIdentity",
    "ConsolidationEngine",
    "ConsolidationOutcome",
    "ConsolidationResult",
    "Contact",
    "ContactStore",
    "IdentifyResponse",
    "IdentifyService",
    "LinkPrecedence",
    "Observation",
    "Resolution",
    "SqlContactStore",
    "render",
    "require_single_primary",
    "sql_store_scope",
]

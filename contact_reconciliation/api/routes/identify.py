"""
Identify API Route

Accepts an (email, phoneNumber) observation and returns the consolidated
identity of the contact cluster it belongs to.
"""

import structlog
from fastapi import APIRouter, Depends

from contact_reconciliation.identity.service import IdentifyService
from contact_reconciliation.identity.types import IdentifyResponse, Observation

logger = structlog.get_logger()

router = APIRouter(tags=["identity"])


def get_identify_service() -> IdentifyService:
    """Dependency hook; tests override it with an in-memory store."""
    return IdentifyService()


@router.post("/identify", response_model=IdentifyResponse)
async def identify(
    observation: Observation,
    service: IdentifyService = Depends(get_identify_service),
) -> IdentifyResponse:
    """
    Consolidate one observation.

    Creates a primary contact for a new identity, a secondary contact when the
    observation adds an email or phone number to a known identity, and merges
    identities that the observation shows to be the same person.
    """
    identity = await service.identify(observation)
    return IdentifyResponse(contact=identity)

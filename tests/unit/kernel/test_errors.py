import pytest

from contact_reconciliation.kernel.errors import (
    IntegrityFaultError,
    InvalidObservationError,
    ReconciliationError,
)


def test_error_code_must_be_dotted_lowercase() -> None:
    with pytest.raises(ValueError):
        ReconciliationError(code="Bad Code", message="nope")


def test_public_dict_carries_code_request_id_and_meta() -> None:
    exc = IntegrityFaultError(meta={"primary_ids": [1, 2]})

    assert exc.status_code == 500
    assert exc.to_public_dict(request_id="req-1") == {
        "detail": "Contact cluster does not have exactly one primary",
        "code": "contact.integrity_fault",
        "request_id": "req-1",
        "meta": {"primary_ids": [1, 2]},
    }


def test_invalid_observation_defaults() -> None:
    exc = InvalidObservationError()

    assert exc.status_code == 400
    assert exc.to_public_dict(request_id=None) == {
        "detail": "Email or phoneNumber required",
        "code": "observation.invalid",
    }

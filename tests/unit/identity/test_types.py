from __future__ import annotations

import pytest
from pydantic import ValidationError

from contact_reconciliation.identity.types import Observation


pytestmark = pytest.mark.unit


def test_observation_reads_camel_case_phone_number() -> None:
    observation = Observation.model_validate({"email": "a@x.com", "phoneNumber": "123"})

    assert observation.email == "a@x.com"
    assert observation.phone_number == "123"
    assert not observation.is_empty


def test_numeric_phone_number_becomes_string() -> None:
    observation = Observation.model_validate({"phoneNumber": 123456})

    assert observation.phone_number == "123456"


def test_blank_values_count_as_absent() -> None:
    observation = Observation.model_validate({"email": "  ", "phoneNumber": ""})

    assert observation.email is None
    assert observation.phone_number is None
    assert observation.is_empty


def test_non_blank_values_are_kept_exactly_as_sent() -> None:
    observation = Observation.model_validate({"email": " A@X.com ", "phoneNumber": " 12 "})

    assert observation.email == " A@X.com "
    assert observation.phone_number == " 12 "


def test_very_large_numeric_phone_number_is_kept_exactly() -> None:
    observation = Observation.model_validate({"phoneNumber": 10**400})

    assert observation.phone_number == "1" + "0" * 400


def test_integral_float_phone_number_drops_fraction() -> None:
    observation = Observation.model_validate({"phoneNumber": 5551234.0})

    assert observation.phone_number == "5551234"


def test_non_string_email_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Observation.model_validate({"email": ["a@x.com"]})

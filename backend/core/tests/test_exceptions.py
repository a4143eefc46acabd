from types import SimpleNamespace

from rest_framework import exceptions

from bookings.domain import AlreadyRespondedError, ValidationFailedError
from core.exceptions import api_exception_handler
from payments.stripe_api import StripeConfigurationError


def _context():
    return {"view": SimpleNamespace(), "request": None}


def test_booking_errors_carry_code():
    resp = api_exception_handler(AlreadyRespondedError(), _context())
    assert resp.status_code == 409
    assert resp.data["code"] == "already_responded"
    assert resp.data["error"] == AlreadyRespondedError.default_message


def test_validation_failed_is_400():
    resp = api_exception_handler(ValidationFailedError("bad dates"), _context())
    assert resp.status_code == 400
    assert resp.data == {"error": "bad dates", "code": "validation_failed"}


def test_drf_validation_error_is_flattened():
    exc = exceptions.ValidationError({"bookingId": ["A valid integer is required."]})
    resp = api_exception_handler(exc, _context())
    assert resp.status_code == 400
    assert resp.data["error"] == "bookingId: A valid integer is required."
    assert resp.data["code"] == "validation_failed"
    assert "bookingId" in resp.data["fields"]


def test_stripe_configuration_error_is_503():
    resp = api_exception_handler(StripeConfigurationError("no key"), _context())
    assert resp.status_code == 503
    assert resp.data == {"error": "no key", "code": "payment_gateway_misconfigured"}

from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from bookings import domain
from bookings.domain import BookingState
from bookings.models import Booking

PS = Booking.PaymentStatus
ST = Booking.Status

AUTHORIZED = BookingState(PS.AUTHORIZED, ST.PENDING_LANDLORD_RESPONSE)
APPROVED = BookingState(
    PS.APPROVED_AWAITING_CAPTURE, ST.APPROVED_AWAITING_PAYMENT, Booking.LandlordResponse.APPROVED
)


def test_authorization_created_is_pending():
    state = domain.authorization_created()
    assert state == BookingState(PS.PENDING, ST.PENDING_PAYMENT, "")
    assert not state.requires_landlord_response


@pytest.mark.parametrize(
    "intent_status, expected",
    [
        ("requires_capture", (PS.AUTHORIZED, ST.PENDING_LANDLORD_RESPONSE)),
        ("succeeded", (PS.CAPTURED, ST.CONFIRMED)),
        ("canceled", (PS.CANCELLED, ST.CANCELLED)),
        ("requires_payment_method", (PS.FAILED, ST.CANCELLED)),
        ("requires_confirmation", (PS.FAILED, ST.CANCELLED)),
        ("processing", (PS.PENDING, ST.PENDING_PAYMENT)),
        ("requires_action", (PS.PENDING, ST.PENDING_PAYMENT)),
    ],
)
def test_reconcile_from_pending(intent_status, expected):
    state = domain.reconcile(domain.authorization_created(), intent_status)
    assert (state.payment_status, state.status) == expected


def test_reconcile_is_idempotent():
    once = domain.reconcile(domain.authorization_created(), "requires_capture")
    twice = domain.reconcile(once, "requires_capture")
    assert once == twice
    assert twice.requires_landlord_response


def test_reconcile_keeps_approved_booking_awaiting_capture():
    assert domain.reconcile(APPROVED, "requires_capture") == APPROVED


def test_reconcile_unknown_status_does_not_reset_authorized_booking():
    assert domain.reconcile(AUTHORIZED, "processing") == AUTHORIZED


def test_respond_approve_moves_to_awaiting_capture():
    now = timezone.now()
    state = domain.respond(AUTHORIZED, "approved", now=now, due_at=now + timedelta(hours=1))
    assert state.payment_status == PS.APPROVED_AWAITING_CAPTURE
    assert state.status == ST.APPROVED_AWAITING_PAYMENT
    assert state.landlord_response == "approved"


def test_respond_decline_cancels():
    now = timezone.now()
    state = domain.respond(AUTHORIZED, "declined", now=now, due_at=now + timedelta(hours=1))
    assert state == BookingState(PS.CANCELLED, ST.CANCELLED, "declined")


def test_respond_twice_is_rejected():
    now = timezone.now()
    with pytest.raises(domain.AlreadyRespondedError):
        domain.respond(APPROVED, "declined", now=now, due_at=now + timedelta(hours=1))


def test_respond_after_deadline_is_rejected():
    now = timezone.now()
    with pytest.raises(domain.ResponseDeadlinePassedError):
        domain.respond(AUTHORIZED, "approved", now=now, due_at=now - timedelta(seconds=1))


def test_respond_checks_deadline_before_payment_state():
    now = timezone.now()
    pending = domain.authorization_created()
    with pytest.raises(domain.ResponseDeadlinePassedError):
        domain.respond(pending, "approved", now=now, due_at=now - timedelta(minutes=5))
    with pytest.raises(domain.InvalidPaymentStateError):
        domain.respond(pending, "approved", now=now, due_at=now + timedelta(minutes=5))


def test_respond_rejects_unknown_response():
    now = timezone.now()
    with pytest.raises(domain.ValidationFailedError):
        domain.respond(AUTHORIZED, "maybe", now=now, due_at=None)


def test_capture_requires_approved_state():
    with pytest.raises(domain.InvalidPaymentStateError):
        domain.capture(AUTHORIZED, authorization_id="pi_1")
    with pytest.raises(domain.MissingAuthorizationError):
        domain.capture(APPROVED, authorization_id="")
    captured = domain.capture(APPROVED, authorization_id="pi_1")
    assert (captured.payment_status, captured.status) == (PS.CAPTURED, ST.CONFIRMED)


def test_capture_result_only_accepts_succeeded():
    with pytest.raises(domain.CaptureFailedError) as excinfo:
        domain.capture_result(APPROVED, "requires_capture")
    assert excinfo.value.intent_status == "requires_capture"
    assert domain.capture_result(APPROVED, "succeeded").payment_status == PS.CAPTURED


def test_error_codes_are_distinct():
    classes = [
        domain.ValidationFailedError,
        domain.NotBookingLandlordError,
        domain.AdminRequiredError,
        domain.BookingNotFoundError,
        domain.AlreadyRespondedError,
        domain.ResponseDeadlinePassedError,
        domain.InvalidPaymentStateError,
        domain.MissingAuthorizationError,
        domain.CaptureFailedError,
    ]
    assert len({cls.code for cls in classes}) == len(classes)


def test_validate_booking_dates():
    with pytest.raises(domain.ValidationFailedError):
        domain.validate_booking_dates(None, date(2026, 1, 1))
    with pytest.raises(domain.ValidationFailedError):
        domain.validate_booking_dates(date(2026, 1, 1), date(2026, 1, 1))
    domain.validate_booking_dates(date(2026, 1, 1), date(2026, 2, 1))


def test_validate_amounts():
    domain.validate_amounts(Decimal("900"), Decimal("100"), Decimal("1000"))
    with pytest.raises(domain.ValidationFailedError):
        domain.validate_amounts(Decimal("0"), Decimal("0"), Decimal("0"))
    with pytest.raises(domain.ValidationFailedError):
        domain.validate_amounts(Decimal("900"), Decimal("100"), Decimal("999.99"))


def _metadata() -> domain.AuthorizationMetadata:
    return domain.AuthorizationMetadata(
        listing_id=3,
        landlord_id=7,
        tenant_id=9,
        check_in_date=date(2026, 9, 1),
        check_out_date=date(2027, 2, 28),
        monthly_rent=Decimal("900.00"),
        service_fee=Decimal("100.00"),
        total_amount=Decimal("1000.00"),
    )


def test_metadata_survives_the_gateway_boundary():
    raw = _metadata().to_stripe()
    assert all(isinstance(value, str) for value in raw.values())
    assert domain.AuthorizationMetadata.from_stripe(raw) == _metadata()


def test_metadata_from_foreign_intent_is_rejected():
    raw = _metadata().to_stripe()
    raw.pop("kind")
    with pytest.raises(domain.ValidationFailedError):
        domain.AuthorizationMetadata.from_stripe(raw)


def test_metadata_with_bad_values_is_rejected():
    raw = _metadata().to_stripe()
    raw["total_amount"] = "12.00"
    with pytest.raises(domain.ValidationFailedError):
        domain.AuthorizationMetadata.from_stripe(raw)
    raw = _metadata().to_stripe()
    raw["check_in_date"] = "not-a-date"
    with pytest.raises(domain.ValidationFailedError):
        domain.AuthorizationMetadata.from_stripe(raw)


@pytest.mark.parametrize("intent_status", ["requires_action", "processing"])
@pytest.mark.parametrize("payment_status", [PS.FAILED, PS.CANCELLED])
def test_reconcile_retry_after_failure_returns_to_pending(payment_status, intent_status):
    state = domain.reconcile(BookingState(payment_status, ST.CANCELLED), intent_status)
    assert (state.payment_status, state.status) == (PS.PENDING, ST.PENDING_PAYMENT)


def test_reconcile_unknown_status_keeps_responded_or_captured_bookings():
    declined = BookingState(PS.CANCELLED, ST.CANCELLED, Booking.LandlordResponse.DECLINED)
    captured = BookingState(PS.CAPTURED, ST.CONFIRMED, Booking.LandlordResponse.APPROVED)
    for state in (declined, captured, APPROVED):
        assert domain.reconcile(state, "requires_action") == state

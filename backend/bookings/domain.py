"""Domain helpers for booking validation and payment state transitions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from .models import Booking

PaymentStatus = Booking.PaymentStatus
Status = Booking.Status
LandlordResponse = Booking.LandlordResponse

INTENT_REQUIRES_CAPTURE = "requires_capture"
INTENT_SUCCEEDED = "succeeded"
AUTHORIZATION_KIND = "rental_authorization"

# Gateway status -> (payment_status, status) for intents that are not held.
RECONCILE_TABLE = {
    INTENT_SUCCEEDED: (PaymentStatus.CAPTURED, Status.CONFIRMED),
    "canceled": (PaymentStatus.CANCELLED, Status.CANCELLED),
    "requires_payment_method": (PaymentStatus.FAILED, Status.CANCELLED),
    "requires_confirmation": (PaymentStatus.FAILED, Status.CANCELLED),
}

# Bookings a tenant can still (re)try to pay for.
RETRYABLE_PAYMENT_STATUSES = (
    PaymentStatus.PENDING,
    PaymentStatus.FAILED,
    PaymentStatus.CANCELLED,
)


class BookingActionError(Exception):
    """Base class for rejected booking actions."""

    code = "booking_error"
    default_message = "The booking action was rejected."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailedError(BookingActionError):
    code = "validation_failed"
    default_message = "Invalid request."

    def __init__(self, message: Optional[str] = None, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotBookingLandlordError(BookingActionError):
    code = "not_booking_landlord"
    default_message = "Only the landlord of this booking can respond to it."


class AdminRequiredError(BookingActionError):
    code = "admin_required"
    default_message = "Admin privileges are required to capture payments."


class BookingNotFoundError(BookingActionError):
    code = "booking_not_found"
    default_message = "Booking not found."


class AlreadyRespondedError(BookingActionError):
    code = "already_responded"
    default_message = "The landlord has already responded to this booking."


class ResponseDeadlinePassedError(BookingActionError):
    code = "response_deadline_passed"
    default_message = "The 24 hour response window for this booking has passed."


class InvalidPaymentStateError(BookingActionError):
    code = "invalid_payment_state"
    default_message = "The booking payment is not in a state that allows this action."


class MissingAuthorizationError(BookingActionError):
    code = "missing_authorization"
    default_message = "The booking has no payment authorization to capture."


class CaptureFailedError(BookingActionError):
    code = "capture_failed"
    default_message = "The payment could not be captured."

    def __init__(self, message: Optional[str] = None, *, intent_status: str = ""):
        super().__init__(message)
        self.intent_status = intent_status


@dataclass(frozen=True)
class BookingState:
    """The three fields that together describe where a booking is in its lifecycle."""

    payment_status: str
    status: str
    landlord_response: str = ""

    @classmethod
    def of(cls, booking: Booking) -> "BookingState":
        return cls(
            payment_status=booking.payment_status,
            status=booking.status,
            landlord_response=booking.landlord_response or "",
        )

    def apply_to(self, booking: Booking) -> list[str]:
        """Copy the state onto `booking`, returning the names of the fields that changed."""
        changed = []
        for field in ("payment_status", "status", "landlord_response"):
            value = getattr(self, field)
            if getattr(booking, field) != value:
                setattr(booking, field, value)
                changed.append(field)
        return changed

    @property
    def requires_landlord_response(self) -> bool:
        return (
            self.payment_status == PaymentStatus.AUTHORIZED
            and self.status == Status.PENDING_LANDLORD_RESPONSE
            and not self.landlord_response
        )


def authorization_created() -> BookingState:
    """State of a booking whose authorization was just created but not confirmed."""
    return BookingState(
        payment_status=PaymentStatus.PENDING,
        status=Status.PENDING_PAYMENT,
    )


def reconcile(state: BookingState, intent_status: str) -> BookingState:
    """
    Map the gateway's intent status onto the booking.

    A held intent marks the booking authorized and awaiting the landlord, except
    when the landlord already approved, which keeps the booking waiting for capture.
    Unknown gateway statuses send a booking back to pending payment unless the
    landlord already responded or the payment was approved or captured.
    """
    if intent_status == INTENT_REQUIRES_CAPTURE:
        if state.payment_status == PaymentStatus.APPROVED_AWAITING_CAPTURE:
            return state
        if state.landlord_response:
            return state
        return replace(
            state,
            payment_status=PaymentStatus.AUTHORIZED,
            status=Status.PENDING_LANDLORD_RESPONSE,
        )

    mapped = RECONCILE_TABLE.get(intent_status)
    if mapped is not None:
        payment_status, status = mapped
        return replace(state, payment_status=payment_status, status=status)

    if state.payment_status in RETRYABLE_PAYMENT_STATUSES and not state.landlord_response:
        return replace(
            state,
            payment_status=PaymentStatus.PENDING,
            status=Status.PENDING_PAYMENT,
        )
    return state


def respond(
    state: BookingState,
    response: str,
    *,
    now: datetime,
    due_at: Optional[datetime],
) -> BookingState:
    """Apply a landlord's approve/decline to `state`."""
    if response not in LandlordResponse.values:
        raise ValidationFailedError(
            "landlordResponse must be 'approved' or 'declined'.", field="landlordResponse"
        )
    if state.landlord_response:
        raise AlreadyRespondedError()
    if due_at is not None and now > due_at:
        raise ResponseDeadlinePassedError()
    if state.payment_status != PaymentStatus.AUTHORIZED:
        raise InvalidPaymentStateError(
            "Payment must be authorized before the landlord can respond."
        )

    if response == LandlordResponse.APPROVED:
        return BookingState(
            payment_status=PaymentStatus.APPROVED_AWAITING_CAPTURE,
            status=Status.APPROVED_AWAITING_PAYMENT,
            landlord_response=LandlordResponse.APPROVED,
        )
    return BookingState(
        payment_status=PaymentStatus.CANCELLED,
        status=Status.CANCELLED,
        landlord_response=LandlordResponse.DECLINED,
    )


def capture(state: BookingState, *, authorization_id: str) -> BookingState:
    """Check that an approved booking may be captured; returns the post-capture state."""
    if state.payment_status != PaymentStatus.APPROVED_AWAITING_CAPTURE:
        raise InvalidPaymentStateError(
            "Only bookings approved and awaiting capture can be captured."
        )
    if not authorization_id:
        raise MissingAuthorizationError()
    return replace(state, payment_status=PaymentStatus.CAPTURED, status=Status.CONFIRMED)


def capture_result(state: BookingState, intent_status: str) -> BookingState:
    if intent_status != INTENT_SUCCEEDED:
        raise CaptureFailedError(
            f"Payment capture did not succeed (status: {intent_status or 'unknown'}).",
            intent_status=intent_status,
        )
    return replace(state, payment_status=PaymentStatus.CAPTURED, status=Status.CONFIRMED)


def validate_booking_dates(check_in: date | None, check_out: date | None) -> None:
    """Validate that the provided dates exist and form a valid range."""
    if not check_in or not check_out:
        raise ValidationFailedError("Check-in and check-out dates are required.")
    if check_in >= check_out:
        raise ValidationFailedError(
            "Check-out date must be after check-in date.", field="checkOutDate"
        )


def validate_amounts(rent: Decimal, fee: Decimal, total: Decimal) -> None:
    """Ensure the charged total is positive and equals rent plus fee."""
    if rent < 0 or fee < 0:
        raise ValidationFailedError("Rent and service fee cannot be negative.")
    if total <= 0:
        raise ValidationFailedError("totalAmount must be greater than zero.", field="totalAmount")
    if total != rent + fee:
        raise ValidationFailedError(
            "totalAmount must equal firstMonthRent plus serviceFee.", field="totalAmount"
        )


def _metadata_decimal(raw: Mapping[str, Any], key: str) -> Decimal:
    try:
        return Decimal(str(raw[key]))
    except (KeyError, InvalidOperation) as exc:
        raise ValidationFailedError(f"Authorization metadata has an invalid {key}.") from exc


def _metadata_int(raw: Mapping[str, Any], key: str) -> int:
    try:
        return int(raw[key])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationFailedError(f"Authorization metadata has an invalid {key}.") from exc


def _metadata_date(raw: Mapping[str, Any], key: str) -> date:
    try:
        return date.fromisoformat(str(raw[key]))
    except (KeyError, ValueError) as exc:
        raise ValidationFailedError(f"Authorization metadata has an invalid {key}.") from exc


@dataclass(frozen=True)
class AuthorizationMetadata:
    """Booking details carried on the PaymentIntent for later reconciliation."""

    listing_id: int
    landlord_id: int
    tenant_id: int
    check_in_date: date
    check_out_date: date
    monthly_rent: Decimal
    service_fee: Decimal
    total_amount: Decimal

    def to_stripe(self) -> dict[str, str]:
        return {
            "kind": AUTHORIZATION_KIND,
            "listing_id": str(self.listing_id),
            "landlord_id": str(self.landlord_id),
            "tenant_id": str(self.tenant_id),
            "check_in_date": self.check_in_date.isoformat(),
            "check_out_date": self.check_out_date.isoformat(),
            "monthly_rent": str(self.monthly_rent),
            "service_fee": str(self.service_fee),
            "total_amount": str(self.total_amount),
        }

    @classmethod
    def from_stripe(cls, raw: Optional[Mapping[str, Any]]) -> "AuthorizationMetadata":
        """Parse metadata read back from the gateway, rejecting foreign or malformed payloads."""
        raw = dict(raw or {})
        if raw.get("kind") != AUTHORIZATION_KIND:
            raise ValidationFailedError("PaymentIntent is not a booking authorization.")
        metadata = cls(
            listing_id=_metadata_int(raw, "listing_id"),
            landlord_id=_metadata_int(raw, "landlord_id"),
            tenant_id=_metadata_int(raw, "tenant_id"),
            check_in_date=_metadata_date(raw, "check_in_date"),
            check_out_date=_metadata_date(raw, "check_out_date"),
            monthly_rent=_metadata_decimal(raw, "monthly_rent"),
            service_fee=_metadata_decimal(raw, "service_fee"),
            total_amount=_metadata_decimal(raw, "total_amount"),
        )
        validate_booking_dates(metadata.check_in_date, metadata.check_out_date)
        validate_amounts(metadata.monthly_rent, metadata.service_fee, metadata.total_amount)
        return metadata

"""Booking payment workflows: authorize, verify, landlord response, manual capture."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from listings.models import Listing
from notifications import tasks as notification_tasks
from payments.ledger import log_transaction
from payments.models import Transaction
from payments.stripe_api import StripeGateway, _object_value

from . import domain
from .domain import (
    AdminRequiredError,
    AuthorizationMetadata,
    BookingNotFoundError,
    BookingState,
    MissingAuthorizationError,
    NotBookingLandlordError,
    ValidationFailedError,
)
from .models import Booking

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _queue_notification(task, *args) -> None:
    """Queue a notification; a broker outage never fails the booking action."""
    try:
        task.delay(*args)
    except Exception:
        logger.info(
            "notifications: could not queue %s",
            getattr(task, "name", task),
            exc_info=True,
        )


def _lock_booking(booking_id: int) -> Booking:
    booking = (
        Booking.objects.select_for_update()
        .filter(pk=booking_id)
        .first()
    )
    if booking is None:
        raise BookingNotFoundError()
    return booking


def _save_state(booking: Booking, state: BookingState, *extra_fields: str) -> None:
    changed = state.apply_to(booking)
    booking.save(update_fields=[*changed, *extra_fields, "updated_at"])


@dataclass(frozen=True)
class AuthorizationRequest:
    listing_id: int
    landlord_id: int
    check_in_date: date
    check_out_date: date
    first_month_rent: Decimal
    service_fee: Decimal
    total_amount: Decimal
    application_data: dict = field(default_factory=dict)


@dataclass(frozen=True)
class AuthorizationResult:
    booking: Booking
    client_secret: str
    payment_intent_id: str
    landlord_response_deadline: datetime


@dataclass(frozen=True)
class VerificationResult:
    booking: Optional[Booking]
    payment_status: str
    requires_landlord_response: bool


@dataclass(frozen=True)
class CaptureResult:
    booking: Booking
    payment_intent: dict[str, Any]


class BookingAuthorizationService:
    """Place a manual-capture hold for the first month and record the booking."""

    def __init__(self, gateway: StripeGateway, *, clock: Clock = timezone.now):
        self.gateway = gateway
        self.clock = clock

    def create(self, *, tenant, request: AuthorizationRequest) -> AuthorizationResult:
        domain.validate_booking_dates(request.check_in_date, request.check_out_date)
        domain.validate_amounts(
            request.first_month_rent, request.service_fee, request.total_amount
        )
        if not tenant.email:
            raise ValidationFailedError("An email address is required to pay for a booking.")

        listing = Listing.objects.filter(pk=request.listing_id).first()
        if listing is None:
            raise ValidationFailedError("Listing not found.", field="listingId")
        if listing.landlord_id != request.landlord_id:
            raise ValidationFailedError(
                "landlordId does not match the listing's landlord.", field="landlordId"
            )

        customer_id = self._customer_for(tenant)
        metadata = AuthorizationMetadata(
            listing_id=listing.pk,
            landlord_id=request.landlord_id,
            tenant_id=tenant.pk,
            check_in_date=request.check_in_date,
            check_out_date=request.check_out_date,
            monthly_rent=request.first_month_rent,
            service_fee=request.service_fee,
            total_amount=request.total_amount,
        )
        intent = self.gateway.create_authorization(
            amount=request.total_amount,
            currency=settings.BOOKING_CURRENCY,
            customer_id=customer_id,
            metadata=metadata.to_stripe(),
            description=f"Booking hold: {listing.title}",
        )
        intent_id = _object_value(intent, "id")

        now = self.clock()
        state = domain.authorization_created()
        try:
            booking = Booking.objects.create(
                listing=listing,
                tenant=tenant,
                landlord_id=request.landlord_id,
                check_in_date=request.check_in_date,
                check_out_date=request.check_out_date,
                monthly_rent=request.first_month_rent,
                security_deposit=request.service_fee,
                total_amount=request.total_amount,
                currency=settings.BOOKING_CURRENCY,
                payment_authorization_id=intent_id,
                payment_status=state.payment_status,
                status=state.status,
                landlord_response_due_at=now
                + timedelta(hours=settings.BOOKING_LANDLORD_RESPONSE_HOURS),
                authorization_expires_at=now
                + timedelta(days=settings.BOOKING_AUTHORIZATION_TTL_DAYS),
                application_data=request.application_data or {},
            )
        except DatabaseError:
            logger.exception(
                "bookings: failed to store booking for authorization %s", intent_id
            )
            self._cancel_orphaned_intent(intent_id)
            raise

        logger.info(
            "bookings: authorization created",
            extra={"booking_id": booking.id, "payment_intent_id": intent_id},
        )
        return AuthorizationResult(
            booking=booking,
            client_secret=_object_value(intent, "client_secret") or "",
            payment_intent_id=intent_id,
            landlord_response_deadline=booking.landlord_response_due_at,
        )

    def _customer_for(self, tenant) -> str:
        if tenant.stripe_customer_id:
            return tenant.stripe_customer_id
        customer_id = self.gateway.find_or_create_customer(
            email=tenant.email,
            name=tenant.display_name,
            user_id=tenant.pk,
        )
        tenant.stripe_customer_id = customer_id
        tenant.save(update_fields=["stripe_customer_id"])
        return customer_id

    def _cancel_orphaned_intent(self, intent_id: str) -> None:
        try:
            self.gateway.cancel_intent(intent_id)
        except Exception:
            logger.warning(
                "bookings: could not cancel orphaned authorization %s",
                intent_id,
                exc_info=True,
            )
        else:
            logger.info("bookings: cancelled orphaned authorization %s", intent_id)


class AuthorizationVerificationService:
    """Bring a booking in line with the gateway's view of its authorization."""

    def __init__(self, gateway: StripeGateway):
        self.gateway = gateway

    def verify(self, payment_intent_id: str) -> VerificationResult:
        if not payment_intent_id:
            raise ValidationFailedError("paymentIntentId is required.", field="paymentIntentId")

        intent = self.gateway.retrieve_intent(payment_intent_id)
        intent_status = _object_value(intent, "status") or ""

        became_authorized = False
        with transaction.atomic():
            booking = (
                Booking.objects.select_for_update()
                .filter(payment_authorization_id=payment_intent_id)
                .first()
            )
            if booking is None:
                logger.warning(
                    "bookings: no booking for authorization %s",
                    payment_intent_id,
                    extra={"intent_status": intent_status},
                )
                fallback = domain.reconcile(domain.authorization_created(), intent_status)
                return VerificationResult(
                    booking=None,
                    payment_status=fallback.payment_status,
                    requires_landlord_response=False,
                )
            metadata = AuthorizationMetadata.from_stripe(_object_value(intent, "metadata"))
            if booking.listing_id != metadata.listing_id or booking.tenant_id != metadata.tenant_id:
                raise ValidationFailedError("PaymentIntent does not belong to this booking.")

            before = BookingState.of(booking)
            after = domain.reconcile(before, intent_status)
            _save_state(booking, after)
            became_authorized = (
                before.payment_status != Booking.PaymentStatus.AUTHORIZED
                and after.payment_status == Booking.PaymentStatus.AUTHORIZED
            )
            if became_authorized:
                log_transaction(
                    user=booking.tenant,
                    booking=booking,
                    kind=Transaction.Kind.AUTHORIZATION_HOLD,
                    amount=booking.total_amount,
                    currency=booking.currency,
                    stripe_id=payment_intent_id,
                )

        logger.info(
            "bookings: authorization reconciled",
            extra={
                "booking_id": booking.id,
                "intent_status": intent_status,
                "payment_status": booking.payment_status,
            },
        )
        if became_authorized:
            _queue_notification(
                notification_tasks.send_booking_request_email, booking.landlord_id, booking.id
            )
        return VerificationResult(
            booking=booking,
            payment_status=booking.payment_status,
            requires_landlord_response=after.requires_landlord_response,
        )


class LandlordResponseService:
    """Record a landlord's approve/decline within the response window."""

    def __init__(self, gateway: StripeGateway, *, clock: Clock = timezone.now):
        self.gateway = gateway
        self.clock = clock

    def respond(self, *, landlord, booking_id: int, response: str) -> Booking:
        with transaction.atomic():
            booking = _lock_booking(booking_id)
            if booking.landlord_id != landlord.pk:
                raise NotBookingLandlordError()

            now = self.clock()
            new_state = domain.respond(
                BookingState.of(booking),
                response,
                now=now,
                due_at=booking.landlord_response_due_at,
            )
            declined = response == Booking.LandlordResponse.DECLINED
            if declined:
                if not booking.payment_authorization_id:
                    raise MissingAuthorizationError()
                intent = self.gateway.cancel_intent(booking.payment_authorization_id)
                logger.info(
                    "bookings: authorization released",
                    extra={
                        "booking_id": booking.id,
                        "intent_status": _object_value(intent, "status"),
                    },
                )

            booking.landlord_responded_at = now
            _save_state(booking, new_state, "landlord_responded_at")
            if declined:
                log_transaction(
                    user=booking.tenant,
                    booking=booking,
                    kind=Transaction.Kind.AUTHORIZATION_RELEASE,
                    amount=booking.total_amount,
                    currency=booking.currency,
                    stripe_id=booking.payment_authorization_id,
                )

        logger.info(
            "bookings: landlord responded",
            extra={"booking_id": booking.id, "response": response},
        )
        _queue_notification(
            notification_tasks.send_landlord_response_email,
            booking.tenant_id,
            booking.id,
            response,
        )
        return booking


class ManualCaptureService:
    """Admin-only capture of an approved authorization."""

    def __init__(self, gateway: StripeGateway):
        self.gateway = gateway

    def capture(self, *, admin, booking_id: int) -> CaptureResult:
        if not admin.is_admin():
            raise AdminRequiredError()

        with transaction.atomic():
            booking = _lock_booking(booking_id)
            state = BookingState.of(booking)
            domain.capture(state, authorization_id=booking.payment_authorization_id)

            intent = self.gateway.capture_intent(booking.payment_authorization_id)
            intent_status = _object_value(intent, "status") or ""
            new_state = domain.capture_result(state, intent_status)
            _save_state(booking, new_state)
            log_transaction(
                user=booking.tenant,
                booking=booking,
                kind=Transaction.Kind.AUTHORIZATION_CAPTURE,
                amount=booking.total_amount,
                currency=booking.currency,
                stripe_id=booking.payment_authorization_id,
            )

        logger.info(
            "bookings: payment captured",
            extra={"booking_id": booking.id, "captured_by": admin.pk},
        )
        _queue_notification(
            notification_tasks.send_booking_confirmed_email, booking.tenant_id, booking.id
        )
        return CaptureResult(
            booking=booking,
            payment_intent={
                "id": _object_value(intent, "id"),
                "status": intent_status,
                "amount": _object_value(intent, "amount_received")
                or _object_value(intent, "amount"),
                "currency": _object_value(intent, "currency"),
            },
        )

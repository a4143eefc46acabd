"""Render every API failure as ``{"error": ..., "code": ...}``."""

from __future__ import annotations

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from bookings.domain import (
    AdminRequiredError,
    AlreadyRespondedError,
    BookingActionError,
    BookingNotFoundError,
    CaptureFailedError,
    InvalidPaymentStateError,
    MissingAuthorizationError,
    NotBookingLandlordError,
    ResponseDeadlinePassedError,
    ValidationFailedError,
)
from payments.stripe_api import (
    StripeConfigurationError,
    StripePaymentError,
    StripeTransientError,
)

logger = logging.getLogger(__name__)

BOOKING_ERROR_STATUS = {
    ValidationFailedError: status.HTTP_400_BAD_REQUEST,
    NotBookingLandlordError: status.HTTP_403_FORBIDDEN,
    AdminRequiredError: status.HTTP_403_FORBIDDEN,
    BookingNotFoundError: status.HTTP_404_NOT_FOUND,
    AlreadyRespondedError: status.HTTP_409_CONFLICT,
    ResponseDeadlinePassedError: status.HTTP_409_CONFLICT,
    InvalidPaymentStateError: status.HTTP_409_CONFLICT,
    MissingAuthorizationError: status.HTTP_409_CONFLICT,
    CaptureFailedError: status.HTTP_502_BAD_GATEWAY,
}

STRIPE_ERROR_STATUS = (
    (StripePaymentError, status.HTTP_402_PAYMENT_REQUIRED, "payment_failed"),
    (StripeTransientError, status.HTTP_503_SERVICE_UNAVAILABLE, "payment_gateway_unavailable"),
    (StripeConfigurationError, status.HTTP_503_SERVICE_UNAVAILABLE, "payment_gateway_misconfigured"),
)


def _first_message(detail) -> str:
    """Flatten DRF error details down to the first human-readable message."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if key in ("non_field_errors", "detail"):
                return message
            return f"{key}: {message}"
        return "Invalid request."
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "Invalid request."
    return str(detail)


def api_exception_handler(exc, context):
    if isinstance(exc, BookingActionError):
        body = {"error": exc.message, "code": exc.code}
        if isinstance(exc, CaptureFailedError) and exc.intent_status:
            body["paymentIntentStatus"] = exc.intent_status
        set_rollback()
        return Response(body, status=BOOKING_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST))

    for error_cls, http_status, code in STRIPE_ERROR_STATUS:
        if isinstance(exc, error_cls):
            logger.warning("payments: gateway error", extra={"code": code}, exc_info=True)
            set_rollback()
            return Response({"error": str(exc), "code": code}, status=http_status)

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, exceptions.ValidationError):
            response.data = {
                "error": _first_message(exc.detail),
                "code": "validation_failed",
                "fields": exc.detail,
            }
        else:
            codes = exc.get_codes() if isinstance(exc, exceptions.APIException) else None
            response.data = {
                "error": _first_message(response.data),
                "code": codes if isinstance(codes, str) else "error",
            }
        return response

    view = context.get("view")
    logger.exception(
        "api: unhandled error in %s",
        view.__class__.__name__ if view is not None else "unknown view",
    )
    set_rollback()
    return Response(
        {"error": "Internal server error.", "code": "internal_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

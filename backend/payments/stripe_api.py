"""Stripe gateway for manual-capture booking authorizations."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Mapping

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)
AUTOMATIC_PAYMENT_METHODS_CONFIG = {"enabled": True}


class StripeConfigurationError(Exception):
    """Stripe is not configured correctly in the environment."""


class StripeTransientError(Exception):
    """Temporary Stripe/API issue; the caller may retry."""


class StripePaymentError(Exception):
    """Permanent payment failure reported by Stripe."""


def _get_stripe_api_key() -> str:
    """Return the configured Stripe API key or raise if missing."""
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise StripeConfigurationError("Stripe secret key not configured.")
    return api_key


def _to_cents(amount: Decimal) -> int:
    """Convert Decimal euros to integer cents, rounding to the nearest cent."""
    cents = (amount * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def _handle_stripe_error(exc: stripe.error.StripeError) -> None:
    """Map Stripe SDK errors onto internal exception types."""
    if isinstance(exc, stripe.error.CardError):
        message = exc.user_message or "Your card was declined."
        raise StripePaymentError(message) from exc
    if isinstance(
        exc,
        (
            stripe.error.RateLimitError,
            stripe.error.APIConnectionError,
            stripe.error.APIError,
        ),
    ):
        raise StripeTransientError("Temporary Stripe error, please retry.") from exc
    if isinstance(exc, (stripe.error.AuthenticationError, stripe.error.PermissionError)):
        raise StripeConfigurationError("Stripe credentials are invalid or unauthorized.") from exc
    if isinstance(exc, stripe.error.InvalidRequestError):
        raise StripePaymentError(exc.user_message or "Invalid payment request.") from exc
    raise StripePaymentError(exc.user_message or "Stripe payment failure.") from exc


def _object_value(payload: Any, field: str, default: Any = None) -> Any:
    """Safely fetch a field from a Stripe object or dict payload."""
    if isinstance(payload, dict):
        return payload.get(field, default)
    return getattr(payload, field, default)


class StripeGateway:
    """
    Authorize, capture and cancel PaymentIntents for one Stripe account.

    Built once per process by `get_payment_gateway()` and handed to the booking
    services, which never touch the stripe module directly.
    """

    def __init__(self, *, api_key: str, env_label: str = "dev"):
        if not api_key:
            raise StripeConfigurationError("Stripe secret key not configured.")
        self.api_key = api_key
        self.env_label = env_label

    def find_or_create_customer(self, *, email: str, name: str = "", user_id: int | None = None) -> str:
        """Return the Customer id registered for `email`, creating one if needed."""
        try:
            existing = stripe.Customer.list(email=email, limit=1, api_key=self.api_key)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)

        data = _object_value(existing, "data", []) or []
        if data:
            customer_id = _object_value(data[0], "id")
            logger.info("stripe: existing customer found", extra={"customer_id": customer_id})
            return customer_id

        metadata = {"user_id": str(user_id)} if user_id is not None else {}
        try:
            customer = stripe.Customer.create(
                email=email,
                name=name or None,
                metadata=metadata,
                api_key=self.api_key,
            )
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)
        logger.info("stripe: customer created", extra={"customer_id": customer.id})
        return customer.id

    def create_authorization(
        self,
        *,
        amount: Decimal,
        currency: str,
        customer_id: str,
        metadata: Mapping[str, str],
        description: str = "",
    ):
        """Create a manual-capture PaymentIntent holding `amount` on the tenant's card."""
        if amount <= Decimal("0"):
            raise StripePaymentError("Authorization amount must be greater than zero.")
        try:
            return stripe.PaymentIntent.create(
                amount=_to_cents(amount),
                currency=currency,
                customer=customer_id or None,
                capture_method="manual",
                automatic_payment_methods={**AUTOMATIC_PAYMENT_METHODS_CONFIG},
                metadata={**metadata, "env": self.env_label},
                description=description or None,
                api_key=self.api_key,
            )
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)

    def retrieve_intent(self, intent_id: str):
        try:
            return stripe.PaymentIntent.retrieve(intent_id, api_key=self.api_key)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)

    def capture_intent(self, intent_id: str):
        """Capture the full authorized amount; the returned intent carries the final status."""
        try:
            return stripe.PaymentIntent.capture(intent_id, api_key=self.api_key)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)

    def cancel_intent(self, intent_id: str):
        """Release the hold on the tenant's funds."""
        try:
            return stripe.PaymentIntent.cancel(intent_id, api_key=self.api_key)
        except stripe.error.StripeError as exc:
            _handle_stripe_error(exc)


@lru_cache(maxsize=1)
def get_payment_gateway() -> StripeGateway:
    """Return the process-wide gateway, configuring the Stripe HTTP client once."""
    api_key = _get_stripe_api_key()
    timeout = getattr(settings, "STRIPE_TIMEOUT_SECONDS", 20)
    stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
    stripe.max_network_retries = getattr(settings, "STRIPE_MAX_NETWORK_RETRIES", 0)
    return StripeGateway(
        api_key=api_key,
        env_label=getattr(settings, "STRIPE_ENV", "dev") or "dev",
    )

"""Shared fixtures for bookings tests."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace
from typing import Callable

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking
from listings.models import Listing

User = get_user_model()


def _create_user(*, username: str, user_type: str, **extra) -> User:
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass",
        user_type=user_type,
        **extra,
    )


class FakeGateway:
    """In-memory stand-in for StripeGateway that records every call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.intent_status = "requires_capture"
        self.capture_status = "succeeded"
        self.metadata: dict[str, str] = {}
        self.errors: dict[str, Exception] = {}

    def _maybe_raise(self, name: str) -> None:
        if name in self.errors:
            raise self.errors[name]

    def find_or_create_customer(self, *, email, name="", user_id=None):
        self.calls.append(("find_or_create_customer", email))
        self._maybe_raise("find_or_create_customer")
        return "cus_test"

    def create_authorization(self, *, amount, currency, customer_id, metadata, description=""):
        self.calls.append(("create_authorization", amount, currency, customer_id))
        self._maybe_raise("create_authorization")
        self.metadata = dict(metadata)
        return SimpleNamespace(
            id="pi_test",
            client_secret="pi_test_secret_abc",
            status="requires_payment_method",
            metadata=self.metadata,
        )

    def retrieve_intent(self, intent_id):
        self.calls.append(("retrieve_intent", intent_id))
        self._maybe_raise("retrieve_intent")
        return SimpleNamespace(id=intent_id, status=self.intent_status, metadata=self.metadata)

    def capture_intent(self, intent_id):
        self.calls.append(("capture_intent", intent_id))
        self._maybe_raise("capture_intent")
        return SimpleNamespace(
            id=intent_id,
            status=self.capture_status,
            amount=100000,
            amount_received=100000 if self.capture_status == "succeeded" else 0,
            currency="eur",
        )

    def cancel_intent(self, intent_id):
        self.calls.append(("cancel_intent", intent_id))
        self._maybe_raise("cancel_intent")
        return SimpleNamespace(id=intent_id, status="canceled")

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_gateway(monkeypatch):
    gateway = FakeGateway()
    monkeypatch.setattr("bookings.api.get_payment_gateway", lambda: gateway)
    return gateway


@pytest.fixture
def landlord_user():
    return _create_user(username="landlord", user_type=User.UserType.LANDLORD, full_name="Lena Landlord")


@pytest.fixture
def tenant_user():
    return _create_user(username="tenant", user_type=User.UserType.STUDENT, full_name="Tom Tenant")


@pytest.fixture
def admin_user():
    return _create_user(username="ops", user_type=User.UserType.ADMIN)


@pytest.fixture
def other_user():
    return _create_user(username="other", user_type=User.UserType.LANDLORD)


@pytest.fixture
def listing(landlord_user):
    return Listing.objects.create(
        landlord=landlord_user,
        title="Sunny room near campus",
        address_line="Hauptstrasse 1",
        city="Berlin",
        rent_monthly_eur=Decimal("900.00"),
    )


@pytest.fixture
def booking_factory(listing, tenant_user) -> Callable[..., Booking]:
    def _create_booking(
        *,
        listing_override: Listing | None = None,
        tenant=None,
        landlord=None,
        payment_status=Booking.PaymentStatus.AUTHORIZED,
        status=Booking.Status.PENDING_LANDLORD_RESPONSE,
        **extra_fields,
    ) -> Booking:
        selected_listing = listing_override or listing
        check_in = extra_fields.pop("check_in_date", date.today() + timedelta(days=30))
        now = timezone.now()
        defaults = {
            "check_out_date": check_in + timedelta(days=180),
            "monthly_rent": Decimal("900.00"),
            "security_deposit": Decimal("100.00"),
            "total_amount": Decimal("1000.00"),
            "payment_authorization_id": "pi_test",
            "landlord_response_due_at": now + timedelta(hours=24),
            "authorization_expires_at": now + timedelta(days=7),
        }
        defaults.update(extra_fields)
        return Booking.objects.create(
            listing=selected_listing,
            tenant=tenant or tenant_user,
            landlord=landlord or selected_listing.landlord,
            check_in_date=check_in,
            payment_status=payment_status,
            status=status,
            **defaults,
        )

    return _create_booking


@pytest.fixture
def auth_client():
    def _client(user) -> APIClient:
        client = APIClient()
        token_resp = client.post(
            "/api/users/token/",
            {"username": user.username, "password": "testpass"},
            format="json",
        )
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token_resp.data['access']}")
        return client

    return _client

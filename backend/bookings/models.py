"""Database models for student rental bookings."""

from __future__ import annotations

from django.conf import settings
from django.db import models

from listings.models import Listing


class Booking(models.Model):
    """A tenant's request for a listing, backed by a manual-capture authorization."""

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "pending"
        AUTHORIZED = "authorized", "authorized"
        APPROVED_AWAITING_CAPTURE = "approved_awaiting_capture", "approved awaiting capture"
        CAPTURED = "captured", "captured"
        CANCELLED = "cancelled", "cancelled"
        FAILED = "failed", "failed"

    class Status(models.TextChoices):
        PENDING_PAYMENT = "pending_payment", "pending payment"
        PENDING_LANDLORD_RESPONSE = "pending_landlord_response", "pending landlord response"
        APPROVED_AWAITING_PAYMENT = "approved_awaiting_payment", "approved awaiting payment"
        CONFIRMED = "confirmed", "confirmed"
        CANCELLED = "cancelled", "cancelled"

    class LandlordResponse(models.TextChoices):
        APPROVED = "approved", "approved"
        DECLINED = "declined", "declined"

    listing = models.ForeignKey(
        Listing,
        related_name="bookings",
        on_delete=models.CASCADE,
    )
    tenant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings_as_tenant",
        on_delete=models.CASCADE,
    )
    landlord = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings_as_landlord",
        on_delete=models.CASCADE,
    )
    check_in_date = models.DateField()
    check_out_date = models.DateField(help_text="Must be after check_in_date.")
    monthly_rent = models.DecimalField(max_digits=10, decimal_places=2)
    security_deposit = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text="Service fee charged together with the first month's rent.",
    )
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=8, default="eur")
    payment_authorization_id = models.CharField(
        max_length=120,
        blank=True,
        default="",
        db_index=True,
    )
    payment_status = models.CharField(
        max_length=32,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    authorization_expires_at = models.DateTimeField(null=True, blank=True)
    landlord_response = models.CharField(
        max_length=16,
        choices=LandlordResponse.choices,
        blank=True,
        default="",
    )
    landlord_response_due_at = models.DateTimeField(null=True, blank=True)
    landlord_responded_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=32,
        choices=Status.choices,
        default=Status.PENDING_PAYMENT,
    )
    application_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["landlord", "payment_status"], name="bookings_bo_landlor_5c1e2a_idx"),
            models.Index(fields=["tenant", "status"], name="bookings_bo_tenant__9f3b7d_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} for {self.listing_id} ({self.payment_status})"

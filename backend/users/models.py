from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Account and marketplace profile in one row."""

    class UserType(models.TextChoices):
        STUDENT = "student", "Student"
        LANDLORD = "landlord", "Landlord"
        AGENCY = "agency", "Agency"
        ADMIN = "admin", "Admin"

    user_type = models.CharField(
        max_length=16,
        choices=UserType.choices,
        default=UserType.STUDENT,
    )
    full_name = models.CharField(max_length=150, blank=True, default="")
    agency_name = models.CharField(max_length=150, blank=True, default="")
    phone = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Optional E.164 formatted phone number.",
    )
    university = models.CharField(max_length=150, blank=True, default="")
    stripe_customer_id = models.CharField(
        max_length=120,
        blank=True,
        default="",
        help_text="Stripe Customer ID for tenant payment authorizations.",
    )

    @property
    def display_name(self) -> str:
        return (
            self.full_name.strip()
            or self.agency_name.strip()
            or self.get_full_name()
            or self.username
        )

    def is_admin(self) -> bool:
        return self.is_superuser or self.user_type == self.UserType.ADMIN

    def is_landlord(self) -> bool:
        return self.user_type in {self.UserType.LANDLORD, self.UserType.AGENCY}

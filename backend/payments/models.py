from django.conf import settings
from django.db import models


class Transaction(models.Model):
    class Kind(models.TextChoices):
        AUTHORIZATION_HOLD = "authorization_hold", "Authorization hold"
        AUTHORIZATION_CAPTURE = "authorization_capture", "Authorization capture"
        AUTHORIZATION_RELEASE = "authorization_release", "Authorization release"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="transactions",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="transactions",
    )
    kind = models.CharField(max_length=64, choices=Kind.choices)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=8, default="eur")
    stripe_id = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        help_text="Related Stripe PaymentIntent id.",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.user} {self.kind} {self.amount} {self.currency}"

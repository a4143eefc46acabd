from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Listing(models.Model):
    """Rental listing published by a landlord or agency."""

    landlord = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="listings",
    )
    title = models.CharField(max_length=200)
    address_line = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=120, blank=True, default="")
    rent_monthly_eur = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        default=0,
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.title} ({self.city})" if self.city else self.title

    @property
    def full_address(self) -> str:
        return ", ".join(part for part in (self.address_line, self.city) if part)

from decimal import Decimal
from typing import Optional

from django.contrib.auth import get_user_model

from .models import Transaction

User = get_user_model()
TWO_PLACES = Decimal("0.01")


def log_transaction(
    *,
    user: User,
    booking,
    kind: str,
    amount: Decimal,
    currency: str = "eur",
    stripe_id: Optional[str] = None,
) -> Transaction:
    """Create and return a Transaction row."""
    return Transaction.objects.create(
        user=user,
        booking=booking,
        kind=kind,
        amount=Decimal(amount).quantize(TWO_PLACES),
        currency=currency,
        stripe_id=stripe_id,
    )

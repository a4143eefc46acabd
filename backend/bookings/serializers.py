"""Serializers for booking payment endpoints."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from .models import Booking
from .services import AuthorizationRequest

MONEY = {"max_digits": 10, "decimal_places": 2}


class BookingSerializer(serializers.ModelSerializer):
    """Serialize Booking instances for API usage."""

    listing_title = serializers.ReadOnlyField(source="listing.title")
    listing_address = serializers.ReadOnlyField(source="listing.full_address")
    tenant_name = serializers.ReadOnlyField(source="tenant.display_name")
    tenant_email = serializers.ReadOnlyField(source="tenant.email")
    landlord_name = serializers.ReadOnlyField(source="landlord.display_name")

    class Meta:
        model = Booking
        fields = (
            "id",
            "listing",
            "listing_title",
            "listing_address",
            "tenant",
            "tenant_name",
            "tenant_email",
            "landlord",
            "landlord_name",
            "check_in_date",
            "check_out_date",
            "monthly_rent",
            "security_deposit",
            "total_amount",
            "currency",
            "payment_authorization_id",
            "payment_status",
            "authorization_expires_at",
            "landlord_response",
            "landlord_response_due_at",
            "landlord_responded_at",
            "status",
            "application_data",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class CreatePaymentAuthorizationSerializer(serializers.Serializer):
    listingId = serializers.IntegerField(min_value=1)
    landlordId = serializers.IntegerField(min_value=1)
    checkInDate = serializers.DateField()
    checkOutDate = serializers.DateField()
    firstMonthRent = serializers.DecimalField(min_value=Decimal("0"), **MONEY)
    serviceFee = serializers.DecimalField(min_value=Decimal("0"), **MONEY)
    totalAmount = serializers.DecimalField(**MONEY)
    applicationData = serializers.JSONField(required=False, default=dict)

    def validate_totalAmount(self, value: Decimal) -> Decimal:
        if value <= 0:
            raise serializers.ValidationError("totalAmount must be greater than zero.")
        return value

    def validate_applicationData(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("applicationData must be an object.")
        return value

    def validate(self, attrs):
        if attrs["checkOutDate"] <= attrs["checkInDate"]:
            raise serializers.ValidationError(
                {"checkOutDate": ["Check-out date must be after check-in date."]}
            )
        if attrs["totalAmount"] != attrs["firstMonthRent"] + attrs["serviceFee"]:
            raise serializers.ValidationError(
                {"totalAmount": ["totalAmount must equal firstMonthRent plus serviceFee."]}
            )
        return attrs

    def to_request(self) -> AuthorizationRequest:
        data = self.validated_data
        return AuthorizationRequest(
            listing_id=data["listingId"],
            landlord_id=data["landlordId"],
            check_in_date=data["checkInDate"],
            check_out_date=data["checkOutDate"],
            first_month_rent=data["firstMonthRent"],
            service_fee=data["serviceFee"],
            total_amount=data["totalAmount"],
            application_data=data.get("applicationData") or {},
        )


class VerifyPaymentAuthorizationSerializer(serializers.Serializer):
    paymentIntentId = serializers.CharField(max_length=120)


class LandlordResponseSerializer(serializers.Serializer):
    bookingId = serializers.IntegerField(min_value=1)
    landlordResponse = serializers.ChoiceField(choices=Booking.LandlordResponse.choices)


class ManualCaptureSerializer(serializers.Serializer):
    bookingId = serializers.IntegerField(min_value=1)

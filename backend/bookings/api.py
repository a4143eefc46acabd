"""DRF endpoints for the booking payment workflow."""

from __future__ import annotations

from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from payments.stripe_api import get_payment_gateway

from .domain import AdminRequiredError
from .models import Booking
from .serializers import (
    BookingSerializer,
    CreatePaymentAuthorizationSerializer,
    LandlordResponseSerializer,
    ManualCaptureSerializer,
    VerifyPaymentAuthorizationSerializer,
)
from .services import (
    AuthorizationVerificationService,
    BookingAuthorizationService,
    LandlordResponseService,
    ManualCaptureService,
)


class BookingViewSet(viewsets.GenericViewSet):
    """Authorize, verify, respond to and capture booking payments."""

    serializer_class = BookingSerializer
    permission_classes = (permissions.IsAuthenticated,)
    filterset_fields = ("status", "payment_status")
    ordering_fields = ("created_at", "check_in_date")
    ordering = ("-created_at", "-id")

    def get_queryset(self):
        return Booking.objects.select_related("listing", "tenant", "landlord")

    def _paginated(self, queryset):
        queryset = self.filter_queryset(queryset)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)

    @action(detail=False, methods=["post"], url_path="create-payment-authorization")
    def create_payment_authorization(self, request):
        serializer = CreatePaymentAuthorizationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = BookingAuthorizationService(get_payment_gateway())
        result = service.create(tenant=request.user, request=serializer.to_request())
        return Response(
            {
                "success": True,
                "clientSecret": result.client_secret,
                "bookingId": result.booking.id,
                "paymentIntentId": result.payment_intent_id,
                "landlordResponseDeadline": result.landlord_response_deadline.isoformat(),
            },
            status=status.HTTP_200_OK,
        )

    @action(
        detail=False,
        methods=["post"],
        url_path="verify-payment-authorization",
        permission_classes=[permissions.AllowAny],
        authentication_classes=[],
    )
    def verify_payment_authorization(self, request):
        serializer = VerifyPaymentAuthorizationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = AuthorizationVerificationService(get_payment_gateway())
        result = service.verify(serializer.validated_data["paymentIntentId"])
        payload = {
            "success": True,
            "booking": BookingSerializer(result.booking).data if result.booking else None,
            "paymentStatus": result.payment_status,
            "requiresLandlordResponse": result.requires_landlord_response,
        }
        due_at = result.booking.landlord_response_due_at if result.booking else None
        if due_at is not None:
            payload["landlordResponseDeadline"] = due_at.isoformat()
        return Response(payload, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="capture-payment")
    def capture_payment(self, request):
        serializer = LandlordResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        response = serializer.validated_data["landlordResponse"]
        service = LandlordResponseService(get_payment_gateway())
        booking = service.respond(
            landlord=request.user,
            booking_id=serializer.validated_data["bookingId"],
            response=response,
        )
        return Response(
            {
                "success": True,
                "booking": BookingSerializer(booking).data,
                "landlordResponse": response,
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=["post"], url_path="manual-capture-payment")
    def manual_capture_payment(self, request):
        serializer = ManualCaptureSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = ManualCaptureService(get_payment_gateway())
        result = service.capture(
            admin=request.user,
            booking_id=serializer.validated_data["bookingId"],
        )
        return Response(
            {
                "success": True,
                "booking": BookingSerializer(result.booking).data,
                "paymentIntent": result.payment_intent,
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=["get"], url_path="landlord-requests")
    def landlord_requests(self, request):
        """Bookings the caller can still approve or decline."""
        queryset = self.get_queryset().filter(
            landlord=request.user,
            payment_status__in=(
                Booking.PaymentStatus.AUTHORIZED,
                Booking.PaymentStatus.PENDING,
            ),
        )
        return self._paginated(queryset)

    @action(detail=False, methods=["get"], url_path="my")
    def my_bookings(self, request):
        return self._paginated(self.get_queryset().filter(tenant=request.user))

    @action(detail=False, methods=["get"], url_path="awaiting-capture")
    def awaiting_capture(self, request):
        """Approved bookings an admin still has to capture."""
        if not request.user.is_admin():
            raise AdminRequiredError("Admin privileges are required to view pending captures.")
        queryset = self.get_queryset().filter(
            payment_status=Booking.PaymentStatus.APPROVED_AWAITING_CAPTURE,
            status=Booking.Status.APPROVED_AWAITING_PAYMENT,
        )
        return self._paginated(queryset)

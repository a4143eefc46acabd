from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "listing",
        "tenant",
        "landlord",
        "payment_status",
        "status",
        "landlord_response",
        "landlord_response_due_at",
    )
    list_filter = ("payment_status", "status", "landlord_response")
    search_fields = ("payment_authorization_id", "tenant__email", "landlord__email")
    readonly_fields = ("payment_authorization_id", "created_at", "updated_at")

from django.contrib import admin

from .models import Listing


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    list_display = ("title", "city", "landlord", "rent_monthly_eur", "is_active", "created_at")
    list_filter = ("is_active", "city")
    search_fields = ("title", "address_line", "city", "landlord__email")

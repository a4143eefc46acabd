from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "user_type", "full_name", "is_staff", "is_active")
    list_filter = BaseUserAdmin.list_filter + ("user_type",)
    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Profile",
            {
                "fields": (
                    "user_type",
                    "full_name",
                    "agency_name",
                    "phone",
                    "university",
                )
            },
        ),
        ("Payments", {"fields": ("stripe_customer_id",)}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Profile", {"fields": ("user_type", "full_name")}),
    )

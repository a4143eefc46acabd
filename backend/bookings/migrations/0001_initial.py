import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("listings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("check_in_date", models.DateField()),
                ("check_out_date", models.DateField(help_text="Must be after check_in_date.")),
                ("monthly_rent", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "security_deposit",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        help_text="Service fee charged together with the first month's rent.",
                        max_digits=10,
                    ),
                ),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("currency", models.CharField(default="eur", max_length=8)),
                (
                    "payment_authorization_id",
                    models.CharField(blank=True, db_index=True, default="", max_length=120),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "pending"),
                            ("authorized", "authorized"),
                            ("approved_awaiting_capture", "approved awaiting capture"),
                            ("captured", "captured"),
                            ("cancelled", "cancelled"),
                            ("failed", "failed"),
                        ],
                        default="pending",
                        max_length=32,
                    ),
                ),
                ("authorization_expires_at", models.DateTimeField(blank=True, null=True)),
                (
                    "landlord_response",
                    models.CharField(
                        blank=True,
                        choices=[("approved", "approved"), ("declined", "declined")],
                        default="",
                        max_length=16,
                    ),
                ),
                ("landlord_response_due_at", models.DateTimeField(blank=True, null=True)),
                ("landlord_responded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending_payment", "pending payment"),
                            ("pending_landlord_response", "pending landlord response"),
                            ("approved_awaiting_payment", "approved awaiting payment"),
                            ("confirmed", "confirmed"),
                            ("cancelled", "cancelled"),
                        ],
                        default="pending_payment",
                        max_length=32,
                    ),
                ),
                ("application_data", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "landlord",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings_as_landlord",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "listing",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to="listings.listing",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings_as_tenant",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["landlord", "payment_status"],
                        name="bookings_bo_landlor_5c1e2a_idx",
                    ),
                    models.Index(fields=["tenant", "status"], name="bookings_bo_tenant__9f3b7d_idx"),
                ],
            },
        ),
    ]

from __future__ import annotations

import logging
from typing import Optional

from celery import shared_task
from django.apps import apps
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string

from notifications.models import NotificationLog

logger = logging.getLogger(__name__)
User = get_user_model()


def _get_user(user_id: int) -> Optional[User]:
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        logger.warning("notifications: user %s no longer exists", user_id)
        return None


def _get_booking(booking_id: int):
    Booking = apps.get_model("bookings", "Booking")
    booking = (
        Booking.objects.select_related("listing", "tenant", "landlord")
        .filter(pk=booking_id)
        .first()
    )
    if booking is None:
        logger.warning("notifications: booking %s no longer exists", booking_id)
    return booking


def _render(template: str, context: dict) -> str:
    """Render a template relative to the notifications app."""
    return render_to_string(template, context).strip()


def _build_email_context(extra: Optional[dict]) -> dict:
    frontend_origin = (getattr(settings, "FRONTEND_ORIGIN", "") or "").rstrip("/")
    context = {
        "site_name": getattr(settings, "SITE_NAME", "flat2study"),
        "site_url": frontend_origin,
    }
    if extra:
        context.update(extra)
    return context


def _prepare_email_bodies(
    subject: str,
    template: str | None,
    context: dict | None,
) -> tuple[str, str | None]:
    context_with_brand = _build_email_context(context or {})
    context_with_brand["subject"] = subject
    body = ""
    html_body = None
    if template:
        body = _render(f"email/{template}", context_with_brand)
        html_template = f"email/{template.rsplit('.', 1)[0]}.html"
        try:
            html_body = _render(html_template, context_with_brand)
        except TemplateDoesNotExist:
            html_body = None
    return body, html_body


def _log_notification(
    channel: str,
    type_: str,
    status: str,
    *,
    user_id: int | None = None,
    booking_id: int | None = None,
    error: str | None = None,
) -> None:
    try:
        NotificationLog.objects.create(
            channel=channel,
            type=type_,
            status=status,
            user_id=user_id,
            booking_id=booking_id,
            error=error or "",
        )
    except Exception:
        logger.exception(
            "notifications: failed to persist notification log",
            extra={"channel": channel, "type": type_, "status": status},
        )


def _send_email_logged(
    type_: str,
    *,
    to_email: str | None,
    subject: str,
    body: str | None = None,
    template: str | None = None,
    context: dict | None = None,
    user_id: int | None = None,
    booking_id: int | None = None,
) -> bool:
    if not to_email:
        _log_notification(
            "email",
            type_,
            NotificationLog.Status.FAILED,
            user_id=user_id,
            booking_id=booking_id,
            error="missing recipient email",
        )
        logger.warning("notifications: cannot send email without recipient")
        return False

    text_body, html_body = _prepare_email_bodies(subject, template, context)
    message = EmailMultiAlternatives(
        subject=subject,
        body=body if body is not None else text_body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to_email],
    )
    if html_body:
        message.attach_alternative(html_body, "text/html")

    try:
        message.send(fail_silently=False)
    except Exception as exc:
        logger.exception(
            "notifications: email send failed",
            extra={"type": type_, "booking_id": booking_id, "user_id": user_id},
        )
        _log_notification(
            "email",
            type_,
            NotificationLog.Status.FAILED,
            user_id=user_id,
            booking_id=booking_id,
            error=str(exc) or exc.__class__.__name__,
        )
        return False

    _log_notification(
        "email",
        type_,
        NotificationLog.Status.SENT,
        user_id=user_id,
        booking_id=booking_id,
    )
    return True


def _booking_context(booking) -> dict:
    frontend_origin = (getattr(settings, "FRONTEND_ORIGIN", "") or "").rstrip("/")
    return {
        "booking": booking,
        "listing": booking.listing,
        "tenant_name": booking.tenant.display_name,
        "landlord_name": booking.landlord.display_name,
        "dashboard_url": f"{frontend_origin}/dashboard" if frontend_origin else "",
    }


@shared_task(queue="emails")
def send_booking_request_email(landlord_id: int, booking_id: int):
    """Tell the landlord a tenant's payment is held and a response is due."""
    landlord = _get_user(landlord_id)
    booking = _get_booking(booking_id)
    if landlord is None or booking is None:
        return
    _send_email_logged(
        "booking_request",
        to_email=landlord.email,
        subject=f"New booking request for {booking.listing.title}",
        template="booking_request.txt",
        context=_booking_context(booking),
        user_id=landlord_id,
        booking_id=booking_id,
    )


@shared_task(queue="emails")
def send_landlord_response_email(tenant_id: int, booking_id: int, response: str):
    """Tell the tenant whether the landlord approved or declined."""
    tenant = _get_user(tenant_id)
    booking = _get_booking(booking_id)
    if tenant is None or booking is None:
        return
    approved = response == "approved"
    subject = (
        f"Your booking for {booking.listing.title} was approved"
        if approved
        else f"Your booking for {booking.listing.title} was declined"
    )
    context = _booking_context(booking)
    context["approved"] = approved
    _send_email_logged(
        f"booking_{response}",
        to_email=tenant.email,
        subject=subject,
        template="booking_response.txt",
        context=context,
        user_id=tenant_id,
        booking_id=booking_id,
    )


@shared_task(queue="emails")
def send_booking_confirmed_email(tenant_id: int, booking_id: int):
    """Receipt sent to the tenant once the held payment is captured."""
    tenant = _get_user(tenant_id)
    booking = _get_booking(booking_id)
    if tenant is None or booking is None:
        return
    _send_email_logged(
        "booking_confirmed",
        to_email=tenant.email,
        subject=f"Booking confirmed: {booking.listing.title}",
        template="booking_confirmed.txt",
        context=_booking_context(booking),
        user_id=tenant_id,
        booking_id=booking_id,
    )

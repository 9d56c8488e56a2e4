"""Customer e-mail notifications for reservations.

Messages are rendered from plain-text templates and delivered over SMTP by
a Celery worker. Callers only enqueue; a failure to enqueue or to deliver
is logged and never changes the outcome of the operation that triggered it.
"""

import enum
import smtplib
from decimal import Decimal
from email.message import EmailMessage
from typing import Callable, Dict, List, Optional

import structlog

from storefront.config import settings
from storefront.models.reservation import (
    CancellationReason,
    Reservation,
    ReservationItem,
    ReservationStatus,
)

logger = structlog.get_logger()


class NotificationKind(str, enum.Enum):
    """Message kinds sent to customers"""
    RECEIVED = "reservation_received"
    READY = "reservation_ready"
    COMPLETED = "reservation_completed"
    CANCELLED = "reservation_cancelled"
    STATUS_UPDATED = "reservation_status_updated"


STATUS_NOTIFICATIONS = {
    ReservationStatus.READY: NotificationKind.READY,
    ReservationStatus.COMPLETED: NotificationKind.COMPLETED,
    ReservationStatus.CANCELLED: NotificationKind.CANCELLED,
}

Notifier = Callable[[NotificationKind, int], None]


def kind_for_status(status: ReservationStatus) -> NotificationKind:
    return STATUS_NOTIFICATIONS.get(status, NotificationKind.STATUS_UPDATED)


def _money(value) -> str:
    return f"${Decimal(str(value or 0)):,.2f}"


def _items_table(items: List[dict]) -> str:
    rows = [
        f"  {item['name']}  x{item['quantity']}  @ {item['unit_price']}  = {item['total_price']}"
        for item in items
    ]
    return "\n".join(rows)


def _store_block(context: dict) -> str:
    return (
        f"{context['store_name']}\n"
        f"{context['store_address']}, {context['store_city']}\n"
        f"{context['store_phone']}\n"
        f"Store hours: {context['store_hours']}"
    )


def render_received(context: dict) -> dict:
    return {
        "subject": f"Reservation Confirmed - {context['confirmation_number']}",
        "body": (
            f"Hi {context['customer_name']}!\n\n"
            "We've received your reservation and our team is reviewing it. "
            "We'll e-mail you as soon as it is ready for pickup.\n\n"
            f"Confirmation number: {context['confirmation_number']}\n\n"
            f"{_items_table(context['items'])}\n\n"
            f"Subtotal: {context['subtotal']}\n"
            f"Tax: {context['tax_amount']}\n"
            f"Total due at pickup: {context['total_price']}\n\n"
            "Pickup location:\n"
            f"{_store_block(context)}\n\n"
            "Please bring a valid photo ID.\n\n"
            f"View your reservation: {context['view_url']}"
        ),
    }


def render_ready(context: dict) -> dict:
    deadline = context.get("pickup_deadline") or "within 24 hours"
    return {
        "subject": f"Your Order is Ready for Pickup - {context['confirmation_number']}",
        "body": (
            f"Hi {context['customer_name']},\n\n"
            f"Your reservation {context['confirmation_number']} is ready and waiting for you.\n\n"
            f"Please pick it up by {deadline}. Orders not picked up within "
            f"{context['pickup_window_hours']} hours are cancelled automatically.\n\n"
            f"{_items_table(context['items'])}\n\n"
            f"Total due: {context['total_price']}\n\n"
            f"{_store_block(context)}\n\n"
            "Please bring a valid photo ID.\n\n"
            f"View your reservation: {context['view_url']}"
        ),
    }


def render_completed(context: dict) -> dict:
    return {
        "subject": f"Thanks for Your Purchase - {context['confirmation_number']}",
        "body": (
            f"Hi {context['customer_name']},\n\n"
            f"Your reservation {context['confirmation_number']} has been picked up. "
            "Thank you for shopping with us!\n\n"
            f"{_items_table(context['items'])}\n\n"
            f"Total: {context['total_price']}\n\n"
            f"{context['store_name']}"
        ),
    }


def render_cancelled(context: dict) -> dict:
    if context.get("auto_expired"):
        reason = (
            "It was not picked up within "
            f"{context['pickup_window_hours']} hours of being marked ready."
        )
    else:
        reason = "We apologize for any inconvenience this may cause."
    return {
        "subject": f"Reservation Cancelled - {context['confirmation_number']}",
        "body": (
            f"Hi {context['customer_name']},\n\n"
            f"Your reservation {context['confirmation_number']} has been cancelled. {reason}\n\n"
            f"{_items_table(context['items'])}\n\n"
            f"Total: {context['total_price']}\n\n"
            f"Questions? Call us at {context['store_phone']}.\n\n"
            f"View your reservation: {context['view_url']}"
        ),
    }


def render_status_updated(context: dict) -> dict:
    return {
        "subject": f"Reservation Update - {context['confirmation_number']}",
        "body": (
            f"Hi {context['customer_name']},\n\n"
            f"Status: {context['status_label']}\n\n"
            f"View your reservation: {context['view_url']}"
        ),
    }


TEMPLATES: Dict[NotificationKind, Callable[[dict], dict]] = {
    NotificationKind.RECEIVED: render_received,
    NotificationKind.READY: render_ready,
    NotificationKind.COMPLETED: render_completed,
    NotificationKind.CANCELLED: render_cancelled,
    NotificationKind.STATUS_UPDATED: render_status_updated,
}


def build_context(reservation: Reservation, items: List[ReservationItem], customer_name: str) -> dict:
    """Template variables for a reservation"""
    deadline = reservation.pickup_deadline(settings.pickup_window_hours)
    return {
        "confirmation_number": reservation.confirmation_number,
        "customer_name": customer_name,
        "status_label": reservation.status_label,
        "items": [
            {
                "name": item.product_name,
                "quantity": item.quantity,
                "unit_price": _money(item.unit_price),
                "total_price": _money(item.total_price),
            }
            for item in items
        ],
        "subtotal": _money(reservation.subtotal),
        "tax_amount": _money(reservation.tax_amount),
        "total_price": _money(reservation.total_price),
        "pickup_deadline": deadline.strftime("%A, %B %d, %Y at %I:%M %p") if deadline else None,
        "pickup_window_hours": settings.pickup_window_hours,
        "auto_expired": reservation.cancellation_reason == CancellationReason.AUTO_EXPIRED,
        "store_name": settings.store_name,
        "store_address": settings.store_address,
        "store_city": settings.store_city,
        "store_phone": settings.store_phone,
        "store_hours": settings.store_hours,
        "view_url": f"{settings.store_url.rstrip('/')}/confirmation/{reservation.confirmation_number}",
    }


def render_notification(kind: NotificationKind, context: dict) -> dict:
    template = TEMPLATES.get(NotificationKind(kind))
    if template is None:
        raise ValueError(f"No template registered for notification kind: {kind}")
    return template(context)


def send_email(*, to_email: str, subject: str, body: str) -> None:
    """Deliver a plain-text message over SMTP"""
    msg = EmailMessage()
    msg["From"] = settings.smtp_from
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
        if settings.smtp_use_tls:
            server.starttls()
        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(msg)


def enqueue_notification(kind: NotificationKind, reservation_id: int) -> None:
    """Hand the message to the worker queue; never raises"""
    try:
        from storefront.jobs.celery_app import celery_app

        celery_app.send_task("send_reservation_email", args=[NotificationKind(kind).value, reservation_id])
        logger.info("Notification queued", kind=NotificationKind(kind).value, reservation_id=reservation_id)
    except Exception as e:
        logger.error(
            "Failed to queue notification",
            kind=str(kind),
            reservation_id=reservation_id,
            error=str(e),
        )


def notify_safely(notify: Optional[Notifier], kind: NotificationKind, reservation_id: int) -> None:
    """Call a notifier, logging instead of propagating failures"""
    if notify is None:
        return
    try:
        notify(kind, reservation_id)
    except Exception as e:
        logger.error(
            "Notification dispatch failed",
            kind=str(kind),
            reservation_id=reservation_id,
            error=str(e),
        )

"""
Notification Service: outbound email queue.

Messages are rendered when enqueued (inside the request/app context) and
delivered by a small worker pool with a bounded retry policy. Delivery
failures are logged and never propagate back to the caller.
"""

import logging
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone

import requests
from flask import current_app, render_template

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass
class EmailMessage:
    kind: str
    to: str
    subject: str
    html: str
    attempts: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EmailDeliveryError(Exception):
    pass


class ResendEmailSender:
    """Delivers an EmailMessage through the Resend HTTP API."""

    def __init__(self, api_key, from_email, timeout=10.0):
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout

    def send(self, message):
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY is not set")
        try:
            response = requests.post(
                RESEND_API_URL,
                json={
                    "from": self.from_email,
                    "to": [message.to],
                    "subject": message.subject,
                    "html": message.html,
                },
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EmailDeliveryError(str(e)) from e
        if response.status_code >= 400:
            raise EmailDeliveryError(f"Resend returned {response.status_code}: {response.text}")
        return response.json()


class NotificationQueue:
    def __init__(self, sender, max_attempts=3, backoff=2.0, workers=2, synchronous=False, max_failed=100):
        self.sender = sender
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self.synchronous = synchronous
        # most recent undeliverable messages only
        self.failed = deque(maxlen=max_failed)
        self._executor = None if synchronous else ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="notify"
        )

    def enqueue(self, message):
        if self.synchronous:
            self._deliver(message)
        else:
            self._executor.submit(self._deliver, message)
        return message

    def _deliver(self, message):
        while message.attempts < self.max_attempts:
            message.attempts += 1
            try:
                self.sender.send(message)
                logger.info("Sent %s email to %s", message.kind, message.to)
                return True
            except Exception as e:
                logger.warning(
                    "Failed to send %s email to %s (attempt %d/%d): %s",
                    message.kind, message.to, message.attempts, self.max_attempts, e,
                )
                if message.attempts < self.max_attempts and self.backoff:
                    time.sleep(self.backoff * message.attempts)
        logger.error("Giving up on %s email to %s", message.kind, message.to)
        self.failed.append(message)
        return False

    def shutdown(self, wait=True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


def _queue():
    return current_app.extensions["notifications"]


def _format_date(value=None):
    value = value or datetime.now(timezone.utc)
    return value.strftime("%B %d, %Y").replace(" 0", " ")


def _send(kind, to, subject, template, **context):
    """Render and enqueue. Rendering errors are swallowed like delivery errors."""
    try:
        html = render_template(f"emails/{template}", **context)
        return _queue().enqueue(EmailMessage(kind=kind, to=to, subject=subject, html=html))
    except Exception as e:
        logger.error("Failed to queue %s email to %s: %s", kind, to, e)
        return None


def send_order_confirmation(order, customer_name=None, payment_url=None):
    return _send(
        "order_confirmation",
        order.email,
        f"Order Confirmation - {order.order_number}",
        "order_confirmation.html",
        order_number=order.order_number,
        customer_name=customer_name,
        product_name=order.product.name if order.product else "",
        total_amount=order.total_amount,
        payment_url=payment_url,
        order_date=_format_date(order.created_at),
    )


def send_payment_status(order):
    return _send(
        "payment_status",
        order.email,
        f"Payment {order.payment_status.title()} - {order.order_number}",
        "payment_status.html",
        order_number=order.order_number,
        customer_name=order.user.name if order.user else None,
        product_name=order.product.name if order.product else "",
        total_amount=order.total_amount,
        payment_status=order.payment_status,
        order_status=order.status,
        order_date=_format_date(),
    )


def send_verification_code(email, otp_code, first_name=None):
    return _send(
        "verification",
        email,
        "Verify Your Email - GameShop",
        "verification.html",
        otp_code=otp_code,
        first_name=first_name,
    )


def send_password_reset(email, reset_link, first_name=None):
    return _send(
        "password_reset",
        email,
        "Reset Your Password - GameShop",
        "password_reset.html",
        reset_link=reset_link,
        first_name=first_name,
    )


def send_welcome(email, first_name=None):
    return _send("welcome", email, "Welcome to GameShop!", "welcome.html", email=email, first_name=first_name)

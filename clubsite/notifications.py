"""
Best-effort outbound notifications: contact-form relay and RSVP confirmations.

Jobs run on a small thread pool after the primary write has returned. A
failing job is logged and dropped; nothing is retried and nothing is
reported back to the caller.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

import requests

from clubsite.config import Settings
from clubsite.models import Event, User

logger = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"
TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
REQUEST_TIMEOUT = 15  # seconds


class EmailTransport(Protocol):
    def send(self, template_id: str, template_params: dict) -> None:
        ...


class SmsTransport(Protocol):
    def send(self, to_number: str, body: str) -> None:
        ...


@dataclass
class EmailJsTransport:
    """Sends templated email through the EmailJS REST endpoint."""

    service_id: str
    public_key: str

    def send(self, template_id: str, template_params: dict) -> None:
        response = requests.post(
            EMAILJS_SEND_URL,
            json={
                "service_id": self.service_id,
                "template_id": template_id,
                "user_id": self.public_key,
                "template_params": template_params,
            },
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()


@dataclass
class TwilioSmsTransport:
    account_sid: str
    auth_token: str
    from_number: str

    def send(self, to_number: str, body: str) -> None:
        response = requests.post(
            TWILIO_MESSAGES_URL.format(sid=self.account_sid),
            data={"To": to_number, "From": self.from_number, "Body": body},
            auth=(self.account_sid, self.auth_token),
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()


@dataclass
class LoggingTransport:
    """Stands in for a transport whose credentials are not configured."""

    sent: list = field(default_factory=list)

    def send(self, *args) -> None:
        logger.info("[notification not configured] %s", args)
        self.sent.append(args)


class NotificationDispatcher:
    """
    Runs notification jobs on a thread pool without blocking the caller.

    `submit` returns the Future so tests can wait on it; production callers
    ignore it.
    """

    def __init__(self, max_workers: int = 2):
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notify"
        )

    def submit(self, job: Callable, *args, **kwargs) -> concurrent.futures.Future:
        return self._executor.submit(self._run, job, *args, **kwargs)

    @staticmethod
    def _run(job: Callable, *args, **kwargs) -> bool:
        try:
            job(*args, **kwargs)
            return True
        except Exception:
            logger.exception("Notification %s failed", getattr(job, "__name__", job))
            return False

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class Notifier:
    """Builds the contact and RSVP messages and hands them to the transports."""

    def __init__(
        self,
        email: EmailTransport,
        sms: SmsTransport,
        dispatcher: NotificationDispatcher,
        contact_template_id: Optional[str] = None,
        rsvp_template_id: Optional[str] = None,
        club_name: str = "",
    ):
        self.email = email
        self.sms = sms
        self.dispatcher = dispatcher
        self.contact_template_id = contact_template_id or "contact"
        self.rsvp_template_id = rsvp_template_id or "rsvp"
        self.club_name = club_name

    @classmethod
    def from_settings(
        cls, settings: Settings, dispatcher: NotificationDispatcher
    ) -> "Notifier":
        if settings.email_configured:
            email = EmailJsTransport(
                service_id=settings.emailjs_service_id,
                public_key=settings.emailjs_public_key,
            )
        else:
            logger.warning("EmailJS keys missing; emails will only be logged")
            email = LoggingTransport()
        if settings.sms_configured:
            sms = TwilioSmsTransport(
                account_sid=settings.twilio_account_sid,
                auth_token=settings.twilio_auth_token,
                from_number=settings.twilio_from_number,
            )
        else:
            sms = LoggingTransport()
        return cls(
            email=email,
            sms=sms,
            dispatcher=dispatcher,
            contact_template_id=settings.emailjs_template_id,
            rsvp_template_id=settings.emailjs_rsvp_template_id,
            club_name=settings.club_name,
        )

    def send_contact_email(self, name: str, email: str, message: str) -> None:
        self.email.send(
            self.contact_template_id,
            {"from_name": name, "reply_to": email, "message": message},
        )

    def send_rsvp_confirmation(self, user: User, event: Event) -> None:
        logger.info("Sending RSVP confirmation for %s to %s", event.id, user.id)
        self.email.send(
            self.rsvp_template_id,
            {
                "to_name": user.name,
                "to_email": user.email,
                "event_name": event.title,
                "event_date": event.date,
                "event_time": event.time,
                "event_location": event.location,
            },
        )
        if not user.phone_number:
            logger.info("No phone number for user %s; skipping SMS", user.id)
            return
        self.sms.send(
            user.phone_number,
            f"{self.club_name}: you are confirmed for {event.title} on "
            f"{event.date} at {event.time}. Location: {event.location}",
        )

    def contact_received(self, name: str, email: str, message: str):
        return self.dispatcher.submit(self.send_contact_email, name, email, message)

    def confirm_rsvp(self, event: Event, load_user: Callable[[], Optional[User]]) -> None:
        user = load_user()
        if user is None:
            logger.warning("RSVP to %s by unknown user; no confirmation sent", event.id)
            return
        self.send_rsvp_confirmation(user, event)

    def rsvp_added(self, event: Event, load_user: Callable[[], Optional[User]]):
        """Schedule the confirmation; the user is looked up inside the job."""
        return self.dispatcher.submit(self.confirm_rsvp, event, load_user)

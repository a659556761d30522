"""Transactional email over an HTTP API.

Sending is best-effort: callers get an ``EmailResult`` back and are expected to
carry on with their workflow whatever it says.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import requests
from jinja2 import Environment, PackageLoader

from ..config import settings
from .rate_limit import FixedWindowRateLimiter

log = logging.getLogger(__name__)


@dataclass
class EmailResult:
    success: bool
    error: Optional[str] = None


class EmailSender:
    def __init__(self, api_url: str, api_key: str, from_address: str, from_name: str,
                 enabled: bool = True, hourly_limit: int = 5, timeout: float = 10.0):
        self.api_url = api_url
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name
        self.enabled = enabled
        self.timeout = timeout
        self._limiter = FixedWindowRateLimiter(hourly_limit, 60 * 60, "email")

    def send(self, to: str, subject: str, body_html: str) -> EmailResult:
        if not to:
            return EmailResult(False, "Missing recipient")

        if not self._limiter.check(to.lower()).success:
            log.warning("Email rate limit exceeded for %s", to)
            return EmailResult(False, "Rate limit exceeded")

        if not self.enabled:
            log.info("Email disabled; would send %r to %s", subject, to)
            return EmailResult(True)

        try:
            response = requests.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": f"{self.from_name} <{self.from_address}>",
                    "to": [to],
                    "subject": subject,
                    "html": body_html,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.error("Email send to %s failed: %s", to, e)
            return EmailResult(False, str(e))

        if not response.ok:
            log.error("Email send to %s rejected (%s): %s", to, response.status_code, response.text[:200])
            return EmailResult(False, f"HTTP {response.status_code}")

        log.info("Email sent to %s: %s", to, subject)
        return EmailResult(True)


_sender: Optional[EmailSender] = None


def get_email_sender() -> EmailSender:
    global _sender
    if _sender is None:
        _sender = EmailSender(
            api_url=settings.EMAIL_API_URL,
            api_key=settings.EMAIL_API_KEY,
            from_address=settings.EMAIL_FROM_ADDRESS,
            from_name=settings.EMAIL_FROM_NAME,
            enabled=settings.EMAIL_ENABLED,
            hourly_limit=settings.EMAIL_HOURLY_LIMIT,
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        )
    return _sender


# --- Templates ---

templates = Environment(loader=PackageLoader("campus_connect", "templates/email"), autoescape=True)


def render(template_name: str, greeting_name: str, **context) -> str:
    template = templates.get_template(template_name)
    return template.render(greeting_name=greeting_name, app_name=settings.APP_NAME,
                           app_url=settings.APP_URL, **context)


def application_accepted(student_name: str, activity_title: str, professor_name: str,
                         custom_message: Optional[str] = None) -> tuple[str, str]:
    subject = f"Your application was accepted - {activity_title}"
    return subject, render("application_accepted.html", student_name, activity_title=activity_title,
                           professor_name=professor_name, custom_message=custom_message)


def application_rejected(student_name: str, activity_title: str, rejection_reason: str,
                         custom_message: Optional[str] = None, waitlisted: bool = False) -> tuple[str, str]:
    if waitlisted:
        subject = f"You have been added to the waiting list - {activity_title}"
    else:
        subject = f"Update on your application - {activity_title}"
    return subject, render("application_rejected.html", student_name, activity_title=activity_title,
                           rejection_reason=rejection_reason, custom_message=custom_message,
                           waitlisted=waitlisted)


def hours_approved(student_name: str, activity_title: str, professor_name: str, hours: float,
                   worked_on: str, notes: Optional[str] = None) -> tuple[str, str]:
    subject = f"Your hours were approved - {activity_title}"
    return subject, render("hours_approved.html", student_name, activity_title=activity_title,
                           professor_name=professor_name, hours=f"{hours:g}", worked_on=worked_on,
                           notes=notes)


def hours_rejected(student_name: str, activity_title: str, professor_name: str, hours: float,
                   worked_on: str, reason: str) -> tuple[str, str]:
    subject = f"Hours request rejected - {activity_title}"
    return subject, render("hours_rejected.html", student_name, activity_title=activity_title,
                           professor_name=professor_name, hours=f"{hours:g}", worked_on=worked_on,
                           reason=reason)


def hours_info_requested(student_name: str, activity_title: str, professor_name: str, hours: float,
                         worked_on: str, message: str) -> tuple[str, str]:
    subject = f"More information requested - {activity_title}"
    return subject, render("hours_info_requested.html", student_name, activity_title=activity_title,
                           professor_name=professor_name, hours=f"{hours:g}", worked_on=worked_on,
                           message=message)


def deliver(sender: EmailSender, to: Optional[str], message: tuple[str, str]) -> bool:
    """Send without letting a delivery problem escape into the calling workflow."""
    if not to:
        return False
    subject, body_html = message
    try:
        result = sender.send(to, subject, body_html)
    except Exception:
        log.exception("Email to %s raised while sending %r", to, subject)
        return False
    if not result.success:
        log.warning("Email to %s not sent: %s", to, result.error)
    return result.success

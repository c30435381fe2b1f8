"""
Employer notification e-mails - company approved / company rejected.

Sent to the company super admin after the MIS decision is committed.
Delivery is best effort: a failed send is logged and never undoes or
fails the approval. Without SMTP credentials nothing is sent and the
message is only logged (local development).
"""

import smtplib
from email.message import EmailMessage
from typing import Optional

import structlog

from jobportal.core.config import Settings, get_settings

log = structlog.get_logger(__name__)

APPROVED_SUBJECT = "Company Profile Approved - JobGenie"
REJECTED_SUBJECT = "Action Required: Company Profile Update - JobGenie"


class SmtpSender:
    """Delivers an EmailMessage through the configured SMTP server."""

    def __init__(self, settings: Settings = None):
        self.settings = settings or get_settings()

    def send(self, message: EmailMessage) -> None:
        s = self.settings
        if s.smtp_use_ssl or s.smtp_port == 465:
            with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as server:
                server.login(s.smtp_user, s.smtp_password)
                server.send_message(message)
        else:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as server:
                server.starttls()
                server.login(s.smtp_user, s.smtp_password)
                server.send_message(message)


class EmployerMailer:
    """
    Builds and sends the company review e-mails.

    Usage:
        mailer = get_employer_mailer()
        mailer.send_company_approved("owner@acme.io", "Acme Finance", "Ravi")

    Any object with a send(EmailMessage) method can stand in for the sender.
    """

    def __init__(self, sender=None, settings: Settings = None):
        self.settings = settings or get_settings()
        self.enabled = sender is not None or self.settings.smtp_configured
        self.sender = sender or SmtpSender(self.settings)

    @property
    def login_url(self) -> str:
        return f"{self.settings.portal_base_url.rstrip('/')}/employer/login"

    def send_company_approved(self, email: str, company_name: str, first_name: str) -> bool:
        body = (
            f"Hi {first_name},\n\n"
            f"Great news! The company profile for {company_name} has been reviewed and approved.\n"
            "You now have full access to the employer portal: post jobs, review applications "
            "and manage your company admins.\n\n"
            f"Log in: {self.login_url}\n\n"
            "JobGenie Employer Support"
        )
        return self._deliver(email, APPROVED_SUBJECT, body)

    def send_company_rejected(self, email: str, company_name: str, first_name: str, reason: str) -> bool:
        body = (
            f"Hi {first_name},\n\n"
            f"The company profile for {company_name} could not be approved yet.\n\n"
            f"Reason: {reason}\n\n"
            "Please update your company details and they will be reviewed again.\n\n"
            f"Log in: {self.login_url}\n\n"
            "JobGenie Employer Support"
        )
        return self._deliver(email, REJECTED_SUBJECT, body)

    def _deliver(self, to_email: str, subject: str, body: str) -> bool:
        """True if the message was handed to the sender."""
        if not self.enabled:
            log.info("employer_email_not_sent", to=to_email, subject=subject, reason="smtp_not_configured")
            return False

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = f"{self.settings.mail_from_name} <{self.settings.mail_from_address}>"
        message["To"] = to_email
        message.set_content(body)

        try:
            self.sender.send(message)
        except (smtplib.SMTPException, OSError) as e:
            log.warning("employer_email_failed", to=to_email, subject=subject, error=str(e))
            return False

        log.info("employer_email_sent", to=to_email, subject=subject)
        return True


_mailer: Optional[EmployerMailer] = None


def get_employer_mailer() -> EmployerMailer:
    global _mailer
    if _mailer is None:
        _mailer = EmployerMailer()
    return _mailer

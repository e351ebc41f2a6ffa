"""Email service - validate, load tenant settings, relay through SMTP"""

import logging
from typing import Optional

from ...auth import AuthUser
from ...email_service import OutgoingEmail, SMTPTransport, text_to_html
from ...exceptions import MissingFieldsError, SendingDisabledError
from ..settings.schemas import EmailSettings
from ..settings.service import SettingsService
from .schemas import SEND_REQUIRED_FIELDS, EmailRequest, TestEmailRequest, split_recipients

logger = logging.getLogger(__name__)

TEST_EMAIL_SUBJECT = "Test Email from WyaLink LinkOS"
TEST_EMAIL_TEXT = "This is a test email to verify your email configuration is working correctly."
TEST_EMAIL_HTML = """
<h2>Email Configuration Test</h2>
<p>This is a test email to verify your email configuration is working correctly.</p>
<p>If you received this email, your Office 365 integration with WyaLink LinkOS is configured properly.</p>
<hr>
<p style="color: #666; font-size: 12px;">Sent from WyaLink LinkOS</p>
"""


class EmailService:
    """Service layer for relaying email. Single attempt, nothing is retried or stored."""

    def __init__(self, settings_service: SettingsService, transport: SMTPTransport):
        self.settings_service = settings_service
        self.transport = transport

    def _load_enabled_settings(self) -> EmailSettings:
        settings = self.settings_service.load_email_settings()
        if not settings.enabled:
            logger.info("Email sending is disabled in settings, rejecting request")
            raise SendingDisabledError()
        return settings

    def _outgoing(
        self,
        settings: EmailSettings,
        to: list[str],
        subject: str,
        text: str,
        html: str,
        cc: Optional[list[str]] = None,
        bcc: Optional[list[str]] = None,
    ) -> OutgoingEmail:
        return OutgoingEmail(
            from_header=settings.from_header,
            from_address=settings.sender.address,
            to=to,
            cc=cc or [],
            bcc=bcc or [],
            subject=subject,
            text=text,
            html=html,
        )

    def send_email(self, request: EmailRequest, user: AuthUser) -> dict:
        if request.missing_fields():
            raise MissingFieldsError(f"Missing required fields: {', '.join(SEND_REQUIRED_FIELDS)}")

        settings = self._load_enabled_settings()
        email = self._outgoing(
            settings,
            to=split_recipients(request.to),
            cc=split_recipients(request.cc),
            bcc=split_recipients(request.bcc),
            subject=request.subject,
            text=request.content,
            html=text_to_html(request.content),
        )

        logger.info(
            f"📧 Sending email for user {user.id} to {len(email.recipients)} recipient(s)"
            + (f" (lead {request.lead_id})" if request.lead_id else "")
        )
        return self.transport.send(settings, email)

    def send_test_email(self, request: TestEmailRequest, user: AuthUser) -> dict:
        to = split_recipients(request.to)
        if not to:
            raise MissingFieldsError("Missing required field: to")

        settings = self._load_enabled_settings()
        email = self._outgoing(
            settings,
            to=to,
            subject=TEST_EMAIL_SUBJECT,
            text=TEST_EMAIL_TEXT,
            html=TEST_EMAIL_HTML,
        )

        logger.info(f"📧 Sending test email requested by admin {user.id}")
        return self.transport.send(settings, email)

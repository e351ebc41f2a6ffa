"""
SMTP relay client
Sends a single message through the tenant's configured relay (Office 365 by default)
"""

import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from . import config
from .domain.settings.schemas import EmailSettings

logger = logging.getLogger(__name__)


def _get_fernet() -> Optional[Fernet]:
    key = config.SMTP_ENCRYPTION_KEY
    return Fernet(key) if key else None


def encrypt_password(password: str) -> str:
    """Encrypt SMTP password for storage"""
    fernet = _get_fernet()
    if not fernet:
        logger.warning("SMTP_ENCRYPTION_KEY not set, storing password in plain text")
        return password
    return fernet.encrypt(password.encode()).decode()


def decrypt_password(encrypted: Optional[str]) -> str:
    """Decrypt SMTP password for use"""
    fernet = _get_fernet()
    if not fernet or not encrypted:
        return encrypted or ""
    try:
        return fernet.decrypt(encrypted.encode()).decode()
    except InvalidToken:
        return encrypted  # Fallback if not encrypted


def text_to_html(content: str) -> str:
    return content.replace("\n", "<br>")


@dataclass
class OutgoingEmail:
    from_header: str
    from_address: str
    to: list[str]
    subject: str
    text: str
    html: str
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)

    @property
    def recipients(self) -> list[str]:
        return self.to + self.cc + self.bcc


def build_message(email: OutgoingEmail) -> MIMEMultipart:
    """Build a text + HTML alternative message. Bcc is kept out of the headers."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = email.subject
    msg["From"] = email.from_header
    msg["To"] = ", ".join(email.to)
    if email.cc:
        msg["Cc"] = ", ".join(email.cc)
    msg["Message-ID"] = make_msgid()

    msg.attach(MIMEText(email.text, "plain", "utf-8"))
    msg.attach(MIMEText(email.html, "html", "utf-8"))
    return msg


class SMTPTransport:
    """Opens one connection per send and closes it before returning."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else config.SMTP_TIMEOUT_SECONDS

    def _connect(self, settings: EmailSettings) -> smtplib.SMTP:
        smtp = settings.smtp
        if smtp.secure:
            context = ssl.create_default_context()
            return smtplib.SMTP_SSL(smtp.host, smtp.port, context=context, timeout=self.timeout)

        server = smtplib.SMTP(smtp.host, smtp.port, timeout=self.timeout)
        try:
            # Opportunistic upgrade: STARTTLS whenever the relay offers it
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
        except Exception:
            server.close()
            raise
        return server

    def send(self, settings: EmailSettings, email: OutgoingEmail) -> dict:
        msg = build_message(email)
        server = self._connect(settings)
        try:
            if settings.smtp.username:
                server.login(settings.smtp.username, settings.smtp.password)
            refused = server.sendmail(email.from_address, email.recipients, msg.as_string())
        except Exception:
            server.close()
            raise

        # The message is already accepted, a failed QUIT only drops the socket
        try:
            server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"⚠️ SMTP QUIT failed after delivery: {type(e).__name__}: {e}")
            server.close()

        if refused:
            logger.warning(f"⚠️ SMTP relay refused recipients: {sorted(refused)}")
        logger.info(f"✅ Email sent via {settings.smtp.host}: {msg['Message-ID']}")
        return {"id": msg["Message-ID"], "refused": sorted(refused)}


def get_mail_transport() -> SMTPTransport:
    """Dependency injection for the SMTP transport"""
    return SMTPTransport()

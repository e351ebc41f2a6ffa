"""Email router - send and test-send endpoints"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_admin_user, get_current_user
from ...database import get_db
from ...email_service import SMTPTransport, get_mail_transport
from ...exceptions import DeliveryError, EmailRelayError
from ..settings.service import SettingsService
from .schemas import EmailRequest, EnvelopeResponse, TestEmailRequest
from .service import EmailService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Email"])

# The standalone email API paths also report the relay's Message-ID
EMAIL_API_PREFIX = "/api/email/"


def get_email_service(
    db: Session = Depends(get_db),
    transport: SMTPTransport = Depends(get_mail_transport),
) -> EmailService:
    """Dependency injection for EmailService"""
    return EmailService(SettingsService(db), transport)


async def read_json(request: Request):
    try:
        return await request.json()
    except ValueError as e:
        raise EmailRelayError("Invalid JSON body") from e


def success_envelope(request: Request, message: str, result: dict) -> EnvelopeResponse:
    message_id = result.get("id") if request.url.path.startswith(EMAIL_API_PREFIX) else None
    return EnvelopeResponse(success=True, message=message, message_id=message_id)


@router.post("/functions/v1/send-email", response_model=EnvelopeResponse, response_model_exclude_none=True)
@router.post("/api/email/send", response_model=EnvelopeResponse, response_model_exclude_none=True)
async def send_email(
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
    service: EmailService = Depends(get_email_service),
):
    """Relay a caller-composed email through the tenant's SMTP settings"""
    try:
        payload = EmailRequest.from_body(await read_json(request))
        result = service.send_email(payload, current_user)
    except EmailRelayError:
        raise
    except Exception as e:
        logger.error(f"❌ Error sending email: {type(e).__name__}: {e}")
        raise DeliveryError(str(e) or "Failed to send email") from e

    return success_envelope(request, "Email sent successfully", result)


@router.post("/functions/v1/test-email", response_model=EnvelopeResponse, response_model_exclude_none=True)
@router.post("/api/email/test", response_model=EnvelopeResponse, response_model_exclude_none=True)
async def send_test_email(
    request: Request,
    current_user: AuthUser = Depends(get_admin_user),
    service: EmailService = Depends(get_email_service),
):
    """Send the fixed configuration check email (admins only)"""
    try:
        payload = TestEmailRequest.from_body(await read_json(request))
        result = service.send_test_email(payload, current_user)
    except EmailRelayError:
        raise
    except Exception as e:
        logger.error(f"❌ Error sending test email: {type(e).__name__}: {e}")
        raise DeliveryError(str(e) or "Failed to send test email") from e

    return success_envelope(request, "Test email sent successfully", result)

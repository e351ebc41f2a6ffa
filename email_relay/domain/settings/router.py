"""Settings router - admin endpoints for reading and writing settings rows"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_admin_user
from ...database import get_db
from .schemas import EmailSettingsResponse, EmailSettingsUpdate, SettingResponse, SettingUpdate
from .service import SettingsService, to_setting_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


def get_settings_service(db: Session = Depends(get_db)) -> SettingsService:
    """Dependency injection for SettingsService"""
    return SettingsService(db)


@router.get("", response_model=list[SettingResponse])
async def list_settings(
    current_user: AuthUser = Depends(get_admin_user),
    service: SettingsService = Depends(get_settings_service),
):
    """All settings ordered by category, then key"""
    return [to_setting_response(s) for s in service.get_settings()]


@router.get("/category/{category}", response_model=list[SettingResponse])
async def list_settings_by_category(
    category: str,
    current_user: AuthUser = Depends(get_admin_user),
    service: SettingsService = Depends(get_settings_service),
):
    return [to_setting_response(s) for s in service.get_settings_by_category(category)]


@router.get("/email", response_model=EmailSettingsResponse)
async def get_email_settings(
    current_user: AuthUser = Depends(get_admin_user),
    service: SettingsService = Depends(get_settings_service),
):
    """Typed email configuration; the SMTP password is reported only as present/absent"""
    return EmailSettingsResponse.from_settings(service.load_email_settings())


@router.put("/email", response_model=EmailSettingsResponse)
async def update_email_settings(
    data: EmailSettingsUpdate,
    current_user: AuthUser = Depends(get_admin_user),
    service: SettingsService = Depends(get_settings_service),
):
    settings = service.update_email_settings(data, current_user.id)
    return EmailSettingsResponse.from_settings(settings)


@router.put("/{key}", response_model=SettingResponse)
async def update_setting(
    key: str,
    data: SettingUpdate,
    current_user: AuthUser = Depends(get_admin_user),
    service: SettingsService = Depends(get_settings_service),
):
    return to_setting_response(service.update_setting(key, data.value, current_user.id))

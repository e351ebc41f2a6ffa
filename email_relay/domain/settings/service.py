"""Settings service - Business logic for settings rows and typed email configuration"""

import dataclasses
import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ... import config
from ...email_service import decrypt_password, encrypt_password
from ...exceptions import SettingNotFoundError
from ...models import Setting
from .repository import SettingsRepository
from .schemas import (
    EMAIL_CATEGORY,
    KEY_SMTP_PASSWORD,
    EmailSettings,
    EmailSettingsUpdate,
    SettingResponse,
    parse_setting_value,
)

logger = logging.getLogger(__name__)

MASKED_VALUE = "********"


def to_setting_response(setting: Setting) -> SettingResponse:
    masked = setting.is_encrypted or setting.key == KEY_SMTP_PASSWORD
    return SettingResponse(
        id=setting.id,
        key=setting.key,
        value=MASKED_VALUE if masked and setting.value else parse_setting_value(setting.value),
        category=setting.category,
        description=setting.description,
        is_encrypted=setting.is_encrypted,
        updated_by=setting.updated_by,
        updated_at=setting.updated_at,
    )


class SettingsService:
    """Service layer for settings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SettingsRepository()

    def get_settings(self) -> list[Setting]:
        return self.repo.get_settings(self.db)

    def get_settings_by_category(self, category: str) -> list[Setting]:
        return self.repo.get_settings_by_category(self.db, category)

    def get_setting(self, key: str) -> Setting:
        setting = self.repo.get_setting(self.db, key)
        if not setting:
            raise SettingNotFoundError(key)
        return setting

    def update_setting(self, key: str, value: Any, user_id: Optional[str]) -> Setting:
        setting = self.get_setting(key)
        logger.info(f"Updating setting {key} (by {user_id})")
        return self.repo.update_setting(self.db, setting, json.dumps(value), user_id)

    def load_email_settings(self) -> EmailSettings:
        """Read the email category fresh from the store and decode it."""
        rows = self.repo.get_settings_by_category(self.db, EMAIL_CATEGORY)
        values = {row.key: parse_setting_value(row.value) for row in rows}
        settings = EmailSettings.from_values(values)

        if settings.smtp.password:
            smtp = dataclasses.replace(settings.smtp, password=decrypt_password(settings.smtp.password))
            settings = dataclasses.replace(settings, smtp=smtp)
        return settings

    def update_email_settings(self, patch: EmailSettingsUpdate, user_id: Optional[str]) -> EmailSettings:
        """Write every provided email key, creating rows that don't exist yet."""
        for key, value in patch.to_setting_values().items():
            is_encrypted = False
            if key == KEY_SMTP_PASSWORD:
                is_encrypted = bool(config.SMTP_ENCRYPTION_KEY)
                value = encrypt_password(value)

            encoded = json.dumps(value)
            setting = self.repo.get_setting(self.db, key)
            if setting:
                setting.is_encrypted = is_encrypted
                self.repo.update_setting(self.db, setting, encoded, user_id)
            else:
                self.repo.create_setting(
                    self.db,
                    key=key,
                    value=encoded,
                    category=EMAIL_CATEGORY,
                    is_encrypted=is_encrypted,
                    updated_by=user_id,
                )
            logger.info(f"Email setting {key} updated (by {user_id})")

        return self.load_email_settings()

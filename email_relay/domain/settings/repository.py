"""Settings repository - Database operations for settings rows"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Setting


class SettingsRepository:
    """Repository for settings database operations"""

    @staticmethod
    def get_settings(db: Session) -> list[Setting]:
        return db.query(Setting).order_by(Setting.category.asc(), Setting.key.asc()).all()

    @staticmethod
    def get_settings_by_category(db: Session, category: str) -> list[Setting]:
        return (
            db.query(Setting)
            .filter(Setting.category == category)
            .order_by(Setting.key.asc())
            .all()
        )

    @staticmethod
    def get_setting(db: Session, key: str) -> Optional[Setting]:
        return db.query(Setting).filter(Setting.key == key).first()

    @staticmethod
    def create_setting(db: Session, **setting_data) -> Setting:
        setting = Setting(**setting_data)
        db.add(setting)
        db.commit()
        db.refresh(setting)
        return setting

    @staticmethod
    def update_setting(db: Session, setting: Setting, value: str, user_id: Optional[str]) -> Setting:
        setting.value = value
        setting.updated_by = user_id
        db.commit()
        db.refresh(setting)
        return setting

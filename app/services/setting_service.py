# app/services/setting_service.py
from sqlmodel import Session

from app.core.config import get_settings
from app.repositories.setting_repo import SettingRepository
from app.schemas.setting import SETTING_KEYS, BusinessInfo, SettingsUpdate


class SettingService:
    """
    Business settings (receipt header), stored as key/value rows with
    fallbacks from the environment config.
    """

    def __init__(self, repo: SettingRepository):
        self.repo = repo

    def get_map(self, session: Session) -> dict[str, str]:
        return {
            row.key: row.value
            for row in self.repo.list_all(session)
            if row.key in SETTING_KEYS
        }

    def get_business_info(self, session: Session) -> BusinessInfo:
        settings = get_settings()
        values = self.get_map(session)
        return BusinessInfo(
            app_name=values.get("app_name") or settings.DEFAULT_APP_NAME,
            app_address=values.get("app_address") or settings.DEFAULT_APP_ADDRESS,
            app_phone=values.get("app_phone") or settings.DEFAULT_APP_PHONE,
            app_email=values.get("app_email") or None,
        )

    def update(self, session: Session, payload: SettingsUpdate) -> BusinessInfo:
        values = {
            key: str(value)
            for key, value in payload.model_dump(exclude_none=True).items()
        }
        if values:
            self.repo.upsert_many(session, values)
        return self.get_business_info(session)

# app/repositories/setting_repo.py
from datetime import datetime, timezone

from sqlmodel import Session, select

from app.models.setting import Setting


class SettingRepository:

    def list_all(self, session: Session) -> list[Setting]:
        return list(session.exec(select(Setting)).all())

    def upsert_many(self, session: Session, values: dict[str, str]) -> None:
        for key, value in values.items():
            row = session.get(Setting, key)
            if row is None:
                row = Setting(key=key, value=value)
            else:
                row.value = value
                row.updated_at = datetime.now(timezone.utc)
            session.add(row)
        session.commit()

# app/models/setting.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Setting(SQLModel, table=True):
    """
    Key/value business setting (store name, address, phone, email).

    Read publicly to build receipt headers, written by admins.
    """

    __tablename__ = "settings"

    key: str = Field(
        primary_key=True,
        max_length=64,
    )

    value: str = Field(default="")

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

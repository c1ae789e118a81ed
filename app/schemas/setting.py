# app/schemas/setting.py
from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

# Keys accepted by the settings table
SETTING_KEYS: tuple[str, ...] = ("app_name", "app_address", "app_phone", "app_email")


class BusinessInfo(SQLModel):
    """
    Store details printed at the top of every receipt.
    """

    app_name: str
    app_address: str
    app_phone: str
    app_email: str | None = None


class SettingsUpdate(SQLModel):
    """
    Admin payload; omitted keys keep their stored value.
    """

    model_config = ConfigDict(extra="forbid")

    app_name: str | None = Field(default=None, max_length=100)
    app_address: str | None = Field(default=None, max_length=255)
    app_phone: str | None = Field(default=None, max_length=32)
    app_email: EmailStr | None = None

    @field_validator("app_name", "app_address", "app_phone")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

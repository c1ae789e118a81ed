# app/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Staff profile for the register.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "admin" | "cashier"

    Supabase Auth stores the password in its own schema. We only mirror
    identity, name, application role and the active flag.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    name: str = Field(
        max_length=100,
        description="Display name printed on receipts",
    )

    role: str = Field(
        default="cashier",
        index=True,
        description="Application role: admin | cashier",
    )

    is_active: bool = Field(
        default=True,
        description="Deactivated staff cannot sign in to the register",
    )

    avatar_url: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

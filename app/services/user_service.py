# app/services/user_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.user import UserRoleUpdate, UserStatusUpdate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for staff accounts.

    Responsibilities:
      - profile edits (name, avatar) for the signed-in user
      - admin role changes and activation, without locking the admin out
      - map domain errors to HTTP errors
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Self profile -----

    def get_me(self, current_user: User) -> User:
        return current_user

    def update_me(
        self,
        session: Session,
        current_user: User,
        payload: UserUpdate,
    ) -> User:
        """
        Partial update for profile edits.
        Only fields present in the payload are written.
        """
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("name") is not None:
            current_user.name = changes["name"]
        if "avatar_url" in changes:
            current_user.avatar_url = changes["avatar_url"]

        return self.repo.update(session, current_user)

    # ----- Admin operations -----

    def list_users(
        self,
        session: Session,
        skip: int,
        limit: int,
        role: str | None = None,
    ) -> list[User]:
        return self.repo.list(session, skip=skip, limit=limit, role=role)

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        """
        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def update_role(
        self,
        session: Session,
        actor: User,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
    ) -> User:
        """
        Change a user's role. Admins cannot demote themselves.
        """
        user = self.get_user(session, user_id)
        if user.id == actor.id and payload.role != "admin":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot change your own role",
            )
        user.role = payload.role
        user = self.repo.update(session, user)
        logger.info("User %s role set to %s by %s", user.id, user.role, actor.id)
        return user

    def set_active(
        self,
        session: Session,
        actor: User,
        user_id: uuid.UUID,
        payload: UserStatusUpdate,
    ) -> User:
        """
        Activate or deactivate an account. Deactivated users get 403 on
        every authenticated route.
        """
        user = self.get_user(session, user_id)
        if user.id == actor.id and not payload.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot deactivate your own account",
            )
        user.is_active = payload.is_active
        user = self.repo.update(session, user)
        logger.info(
            "User %s %s by %s",
            user.id,
            "activated" if user.is_active else "deactivated",
            actor.id,
        )
        return user

"""
User service: keeps the ``user`` table in sync with identity token claims.
"""
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.logging_config import log_error, log_info
from app.core.time_utils import utc_now
from app.models.user import User
from app.schemas.user import AuthUser


class UserService:
    """Service class for user operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def sync_from_claims(self, auth_user: AuthUser) -> User:
        """
        Insert or update the user row for a verified identity.

        ``created_at`` is only set on insert.
        """
        now = utc_now()
        user = self.get_user_by_id(auth_user.id)
        created = user is None
        if created:
            user = User(id=auth_user.id, created_at=now)

        user.email = auth_user.email
        user.first_name = auth_user.first_name
        user.last_name = auth_user.last_name
        user.name = auth_user.display_name
        user.avatar_url = auth_user.avatar_url
        user.role = auth_user.role
        user.updated_at = now

        self.session.add(user)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            log_error(exc, user_id=auth_user.id)
            raise
        self.session.refresh(user)

        if created:
            log_info(f"User created from login: {user.id}")
        return user

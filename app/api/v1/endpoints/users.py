"""
User endpoints.
"""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.api.dependencies import get_current_user
from app.core.database import get_session
from app.core.logging_config import log_error, log_user_action
from app.schemas.user import AuthUser, UserResponse
from app.services.user_service import UserService

router = APIRouter()


@router.get(
    "/login",
    response_model=UserResponse,
    responses={
        401: {"description": "Not authenticated"},
    }
)
async def login(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    session: Annotated[Session, Depends(get_session)],
):
    """
    Record a sign-in and return the caller's profile.

    The profile comes from the verified token; a failure to store it is logged
    and does not fail the login.
    """
    try:
        user = UserService(session).sync_from_claims(current_user)
        log_user_action(current_user.id, "logged in")
        return UserResponse.model_validate(user)
    except SQLAlchemyError as e:
        log_error(e, user_id=current_user.id)
        return UserResponse(
            id=current_user.id,
            email=current_user.email,
            first_name=current_user.first_name,
            last_name=current_user.last_name,
            name=current_user.display_name,
            avatar_url=current_user.avatar_url,
            role=current_user.role,
        )

"""
Shared API dependencies.
"""
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_session
from app.core.exceptions import TokenVerificationError
from app.core.logging_config import LogCategory, get_logger
from app.core.security import verify_clerk_token
from app.integrations.immich import ImmichClient, get_immich_client
from app.middleware.request_logging import request_id_ctx
from app.schemas.user import AuthUser
from app.services.entry_read_service import EntryReadService
from app.services.entry_service import EntryService
from app.services.entry_store import SQLEntryStore
from app.services.media_service import MediaService

logger = get_logger(LogCategory.SECURITY)

bearer_scheme = HTTPBearer(auto_error=False)

# Alias for database session dependency
get_db = get_session


def get_request_id() -> str:
    """
    Dependency to get the current request ID from context.

    Returns:
        The current request ID, or 'unknown' if not in a request context.
    """
    return request_id_ctx.get()


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> AuthUser:
    """
    Dependency to get the identity of the caller from the bearer token.
    Raises HTTPException with status 401 if the token cannot be verified.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise credentials_exception

    try:
        claims = await verify_clerk_token(credentials.credentials)
        return AuthUser.from_claims(claims)
    except TokenVerificationError as e:
        logger.info("Token rejected", extra={"error": str(e)})
        raise credentials_exception
    except ValueError as e:
        logger.warning("Token claims rejected", extra={"error": str(e)})
        raise credentials_exception


def get_entry_read_service(
    session: Annotated[Session, Depends(get_session)],
) -> EntryReadService:
    store = SQLEntryStore(session, tz_name=settings.local_timezone)
    return EntryReadService(store, tz_name=settings.local_timezone)


def get_entry_service(
    session: Annotated[Session, Depends(get_session)],
) -> EntryService:
    return EntryService(session, tz_name=settings.local_timezone)


def get_media_service(
    client: Annotated[ImmichClient, Depends(get_immich_client)],
) -> MediaService:
    return MediaService(client)

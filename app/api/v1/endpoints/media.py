"""
Media proxy endpoints.

Asset bytes are streamed from Immich so clients never see the Immich API key.
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.api.dependencies import get_current_user, get_media_service
from app.core.exceptions import (
    InvalidRangeError,
    MediaNotFoundError,
    MediaProviderError,
    ValidationError,
)
from app.core.logging_config import log_warning
from app.models.enums import MediaVariant
from app.schemas.user import AuthUser
from app.services.media_service import MediaService

router = APIRouter()


@router.get(
    "/immich/{asset_id}",
    responses={
        400: {"description": "Invalid asset id"},
        401: {"description": "Not authenticated"},
        404: {"description": "Asset not found"},
        416: {"description": "Range not satisfiable"},
        502: {"description": "Media server unavailable"},
    }
)
async def proxy_immich_asset(
    asset_id: str,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    media_service: Annotated[MediaService, Depends(get_media_service)],
    variant: Annotated[MediaVariant, Query(alias="type")] = MediaVariant.THUMBNAIL,
    range_header: Annotated[Optional[str], Header(alias="Range")] = None,
):
    """
    Stream an asset thumbnail or original file.

    Supports Range requests for video streaming and seeking.
    """
    try:
        stream = await media_service.open_asset(asset_id, variant, range_header)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except MediaNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Asset {asset_id} not found")
    except InvalidRangeError:
        raise HTTPException(
            status_code=status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
            detail="Range Not Satisfiable"
        )
    except MediaProviderError as e:
        log_warning(f"Media proxy failed: {e}", user_id=current_user.id, asset_id=asset_id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Media server unavailable")

    return StreamingResponse(
        stream.response.aiter_bytes(),
        status_code=stream.status_code,
        media_type=stream.media_type,
        headers=stream.proxy_headers(),
        background=BackgroundTask(stream.aclose),
    )

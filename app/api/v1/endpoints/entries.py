"""
Entry endpoints.
"""
import json
import uuid
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import (
    get_current_user,
    get_entry_read_service,
    get_entry_service,
    get_media_service,
)
from app.core.config import settings
from app.core.exceptions import (
    EntryNotFoundError,
    FutureEntryDateError,
    InvalidCalendarDateError,
    ValidationError,
)
from app.core.logging_config import log_error, log_user_action
from app.schemas.entry import CalendarDayResponse, EntryResponse
from app.schemas.user import AuthUser
from app.services.entry_read_service import EntryReadService
from app.services.entry_service import EntryService
from app.services.media_service import MediaService
from app.utils.entry_adapter import from_row

router = APIRouter()
Year = Annotated[int, Query(ge=1, le=9999)]
Month = Annotated[int, Query()]
Day = Annotated[int, Query()]

READ_RESPONSES = {
    400: {"description": "Invalid calendar date"},
    401: {"description": "Not authenticated"},
    500: {"description": "Internal server error"},
}


def _bad_request(error: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _server_error(error: Exception, user_id: str, message: str) -> HTTPException:
    log_error(error, user_id=user_id)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@router.get("/day", response_model=List[EntryResponse], responses=READ_RESPONSES)
async def get_entries_for_day(
    year: Year,
    month: Month,
    day: Day,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    service: Annotated[EntryReadService, Depends(get_entry_read_service)],
):
    """All entries of a calendar day, oldest first."""
    try:
        records = service.get_entries_for_day(current_user.id, year, month, day)
        return [EntryResponse.from_record(record) for record in records]
    except InvalidCalendarDateError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _server_error(e, current_user.id, "Failed to load entries")


@router.get("/same-day/previous-months", response_model=List[EntryResponse], responses=READ_RESPONSES)
async def get_same_day_previous_months(
    year: Year,
    month: Month,
    day: Day,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    service: Annotated[EntryReadService, Depends(get_entry_read_service)],
):
    """Best entry of each earlier month this year on the same day number."""
    try:
        records = service.get_same_day_previous_months(current_user.id, year, month, day)
        return [EntryResponse.from_record(record) for record in records]
    except InvalidCalendarDateError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _server_error(e, current_user.id, "Failed to load entries")


@router.get("/same-day/previous-years", response_model=List[EntryResponse], responses=READ_RESPONSES)
async def get_same_day_previous_years(
    year: Year,
    month: Month,
    day: Day,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    service: Annotated[EntryReadService, Depends(get_entry_read_service)],
):
    """Best entry of each earlier year on the same month and day."""
    try:
        records = service.get_same_day_previous_years(current_user.id, year, month, day)
        return [EntryResponse.from_record(record) for record in records]
    except InvalidCalendarDateError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _server_error(e, current_user.id, "Failed to load entries")


@router.get("/today-summary", response_model=Optional[EntryResponse], responses=READ_RESPONSES)
async def get_today_summary(
    year: Year,
    month: Month,
    day: Day,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    service: Annotated[EntryReadService, Depends(get_entry_read_service)],
):
    """The single best entry of a day, or null."""
    try:
        record = service.get_today_summary(current_user.id, year, month, day)
        return EntryResponse.from_record(record) if record else None
    except InvalidCalendarDateError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _server_error(e, current_user.id, "Failed to load entries")


@router.get("/calendar", response_model=List[CalendarDayResponse], responses=READ_RESPONSES)
async def get_calendar_entries(
    year: Year,
    month: Month,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    service: Annotated[EntryReadService, Depends(get_entry_read_service)],
):
    """Per-day rollup of a month."""
    try:
        days = service.get_calendar_entries(current_user.id, year, month)
        return [CalendarDayResponse.from_day(day, settings.api_v1_prefix) for day in days]
    except InvalidCalendarDateError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _server_error(e, current_user.id, "Failed to load calendar")


@router.get(
    "/{entry_id}",
    response_model=EntryResponse,
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Entry not found"},
    }
)
async def get_entry(
    entry_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    entry_service: Annotated[EntryService, Depends(get_entry_service)],
):
    """Get a single entry by id."""
    try:
        return EntryResponse.from_record(entry_service.get_entry_record(entry_id, current_user.id))
    except EntryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")


@router.post(
    "",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"description": "Not authenticated"},
        413: {"description": "File too large"},
        502: {"description": "Media server error"},
    }
)
async def create_entry(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    entry_service: Annotated[EntryService, Depends(get_entry_service)],
    media_service: Annotated[MediaService, Depends(get_media_service)],
    caption: Annotated[Optional[str], Form()] = None,
    files: Annotated[Optional[List[UploadFile]], File()] = None,
):
    """Create today's entry with an optional caption and media files."""
    asset_ids = await media_service.upload_files(current_user.id, files or [])
    entry = entry_service.create_entry(current_user.id, caption=caption, asset_ids=asset_ids)
    log_user_action(current_user.id, f"created entry {entry.id}")
    return EntryResponse.from_record(from_row(entry))


@router.post(
    "/backfill",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid or future date"},
        401: {"description": "Not authenticated"},
        413: {"description": "File too large"},
        502: {"description": "Media server error"},
    }
)
async def create_past_entry(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    entry_service: Annotated[EntryService, Depends(get_entry_service)],
    media_service: Annotated[MediaService, Depends(get_media_service)],
    entry_date: Annotated[str, Form(alias="date")],
    caption: Annotated[Optional[str], Form()] = None,
    files: Annotated[Optional[List[UploadFile]], File()] = None,
):
    """Create an entry for a past date (YYYY-MM-DD)."""
    try:
        target = entry_service.parse_backfill_date(entry_date)
    except (FutureEntryDateError, ValidationError) as e:
        raise _bad_request(e)

    asset_ids = await media_service.upload_files(current_user.id, files or [])
    entry = entry_service.create_past_entry(current_user.id, target, caption=caption, asset_ids=asset_ids)
    log_user_action(current_user.id, f"back-filled entry {entry.id}", local_date=target.isoformat())
    return EntryResponse.from_record(from_row(entry))


def _parse_asset_id_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="remove_asset_ids must be a JSON array of strings",
        ) from exc
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="remove_asset_ids must be a JSON array of strings",
        )
    return value


@router.put(
    "/{entry_id}",
    response_model=EntryResponse,
    responses={
        400: {"description": "Invalid update"},
        401: {"description": "Not authenticated"},
        404: {"description": "Entry not found"},
        502: {"description": "Media server error"},
    }
)
async def update_entry(
    entry_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    entry_service: Annotated[EntryService, Depends(get_entry_service)],
    media_service: Annotated[MediaService, Depends(get_media_service)],
    caption: Annotated[Optional[str], Form()] = None,
    remove_asset_ids: Annotated[Optional[str], Form()] = None,
    files: Annotated[Optional[List[UploadFile]], File()] = None,
):
    """Replace the caption, append uploaded media and remove listed assets."""
    removed = _parse_asset_id_list(remove_asset_ids)
    try:
        entry_service.get_entry_by_id(entry_id, current_user.id)
    except EntryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")

    added = await media_service.upload_files(current_user.id, files or [])
    try:
        entry = entry_service.update_entry(
            entry_id,
            current_user.id,
            caption=caption,
            add_asset_ids=added,
            remove_asset_ids=removed,
        )
    except EntryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")

    log_user_action(current_user.id, f"updated entry {entry.id}")
    return EntryResponse.from_record(from_row(entry))


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Entry not found"},
    }
)
async def delete_entry(
    entry_id: uuid.UUID,
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    entry_service: Annotated[EntryService, Depends(get_entry_service)],
):
    """Delete an entry."""
    try:
        entry_service.delete_entry(entry_id, current_user.id)
    except EntryNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    log_user_action(current_user.id, f"deleted entry {entry_id}")

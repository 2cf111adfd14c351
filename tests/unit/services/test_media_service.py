"""
Unit tests for MediaService.
"""
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import UploadFile

from app.core.exceptions import FileTooLargeError
from app.services.media_service import MediaService


def _upload(name, content, size=None):
    return UploadFile(file=BytesIO(content), filename=name, size=len(content) if size is None else size)


def _setup_service():
    client = MagicMock()
    client.upload_asset = AsyncMock(side_effect=["asset-1", "asset-2"])
    return MediaService(client=client), client


@pytest.mark.asyncio
async def test_upload_preserves_order_and_skips_empty_parts():
    service, client = _setup_service()

    asset_ids = await service.upload_files(
        "user_2abc",
        [_upload("a.jpg", b"aaa"), _upload("", b""), _upload("empty.jpg", b""), _upload("b.jpg", b"bbb")],
    )

    assert asset_ids == ["asset-1", "asset-2"]
    assert [c.kwargs["filename"] for c in client.upload_asset.await_args_list] == ["a.jpg", "b.jpg"]


@pytest.mark.asyncio
async def test_oversized_upload_is_rejected_before_reading():
    service, client = _setup_service()
    huge = _upload("big.mov", b"x", size=service.max_bytes + 1)

    with pytest.raises(FileTooLargeError):
        await service.upload_files("user_2abc", [huge])
    client.upload_asset.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_files():
    service, client = _setup_service()
    assert await service.upload_files("user_2abc", []) == []

"""
Media service for entry uploads and asset streaming.
"""
from typing import List, Optional, Sequence

from fastapi import UploadFile

from app.core.config import get_settings
from app.core.exceptions import FileTooLargeError
from app.core.logging_config import LogCategory, log_info
from app.integrations.immich import AssetStream, ImmichClient
from app.models.enums import MediaVariant


class MediaService:
    """Uploads entry files to Immich and opens asset streams for the proxy."""

    def __init__(self, client: Optional[ImmichClient] = None):
        self.settings = get_settings()
        self.client = client or ImmichClient()

    @property
    def max_bytes(self) -> int:
        return self.settings.max_file_size_mb * 1024 * 1024

    def _check_file_size(self, size: Optional[int], filename: Optional[str]) -> None:
        """Check if file size is within limits."""
        if size is not None and size > self.max_bytes:
            raise FileTooLargeError(
                f"File {filename or 'upload'} too large. Maximum size: {self.settings.max_file_size_mb}MB"
            )

    async def upload_files(self, user_id: str, files: Sequence[UploadFile]) -> List[str]:
        """
        Upload files in order and return their asset ids in the same order.

        Empty parts (browsers send one when no file is picked) are skipped.
        """
        asset_ids = []
        for upload in files or []:
            if upload is None or not upload.filename:
                continue
            self._check_file_size(upload.size, upload.filename)
            content = await upload.read()
            if not content:
                continue
            self._check_file_size(len(content), upload.filename)
            asset_id = await self.client.upload_asset(
                user_id=user_id,
                filename=upload.filename,
                content=content,
                content_type=upload.content_type,
            )
            asset_ids.append(asset_id)

        if asset_ids:
            log_info(f"Uploaded {len(asset_ids)} media files", category=LogCategory.MEDIA, user_id=user_id)
        return asset_ids

    async def open_asset(
        self,
        asset_id: str,
        variant: MediaVariant,
        range_header: Optional[str] = None,
    ) -> AssetStream:
        return await self.client.open_asset_stream(asset_id, variant, range_header)

"""
Immich media server client.

Uploads entry media and opens streamed asset downloads for the media proxy.

API Documentation: https://api.immich.app/introduction
"""
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx

from app.core.config import settings
from app.core.exceptions import (
    InvalidRangeError,
    MediaNotFoundError,
    MediaProviderError,
    MediaUploadError,
    ValidationError,
)
from app.core.logging_config import LogCategory, log_info, log_warning
from app.core.time_utils import serialize_datetime, utc_now
from app.models.enums import MediaVariant

IMMICH_API_ASSETS = "/api/assets"
IMMICH_API_ASSET_VARIANT = "/api/assets/{id}/{variant}"

ASSET_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')

DEVICE_ID_PREFIX = "thisday-backend-"


def validate_asset_id(asset_id: str) -> str:
    """Reject ids that could escape the asset path."""
    if not asset_id or not ASSET_ID_PATTERN.match(asset_id):
        raise ValidationError("Invalid asset ID format")
    return asset_id


@dataclass
class AssetStream:
    """An open streamed response from Immich. Must be closed with ``aclose``."""
    response: httpx.Response
    client: httpx.AsyncClient
    variant: MediaVariant

    @property
    def status_code(self) -> int:
        return 206 if self.response.status_code == 206 else 200

    @property
    def media_type(self) -> str:
        return self.response.headers.get("content-type", "application/octet-stream")

    def proxy_headers(self) -> dict:
        headers = {
            "Accept-Ranges": "bytes",
            "Cache-Control": self.variant.cache_control,
        }
        if "content-length" in self.response.headers:
            headers["Content-Length"] = self.response.headers["content-length"]
        if "content-range" in self.response.headers:
            headers["Content-Range"] = self.response.headers["content-range"]
        return headers

    async def aclose(self) -> None:
        """Ensure streamed HTTP responses release network resources."""
        try:
            await self.response.aclose()
        finally:
            await self.client.aclose()


class ImmichClient:
    """Thin REST client for a single Immich server and API key."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.immich_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.immich_api_key
        self.timeout = timeout if timeout is not None else settings.immich_timeout_seconds
        self._transport = transport

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    def _ensure_configured(self) -> None:
        if not self.base_url or not self.api_key:
            raise MediaProviderError("Immich is not configured")

    async def upload_asset(
        self,
        user_id: str,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> str:
        """
        Upload one file and return the Immich asset id.

        Raises:
            MediaUploadError: Immich rejected the upload or returned no id.
            MediaProviderError: Immich could not be reached.
        """
        self._ensure_configured()
        timestamp = serialize_datetime(created_at or utc_now())
        data = {
            "deviceAssetId": str(uuid.uuid4()),
            "deviceId": f"{DEVICE_ID_PREFIX}{user_id}",
            "fileCreatedAt": timestamp,
            "fileModifiedAt": timestamp,
        }
        files = {
            "assetData": (filename or "upload", content, content_type or "application/octet-stream"),
        }

        try:
            async with self._new_client() as client:
                response = await client.post(
                    f"{self.base_url}{IMMICH_API_ASSETS}",
                    headers={"x-api-key": self.api_key, "Accept": "application/json"},
                    data=data,
                    files=files,
                )
        except httpx.HTTPError as exc:
            raise MediaProviderError(f"Immich unreachable: {exc}") from exc

        if response.status_code not in (200, 201):
            log_warning(
                "Immich upload rejected",
                category=LogCategory.MEDIA,
                user_id=user_id,
                status_code=response.status_code,
            )
            raise MediaUploadError(f"Immich upload failed with status {response.status_code}")

        try:
            asset_id = response.json().get("id")
        except ValueError as exc:
            raise MediaUploadError("Immich upload returned invalid JSON") from exc
        if not asset_id:
            raise MediaUploadError("Immich upload response missing 'id' field")

        log_info("Uploaded asset to Immich", category=LogCategory.MEDIA, user_id=user_id, asset_id=asset_id, size=len(content))
        return str(asset_id)

    async def open_asset_stream(
        self,
        asset_id: str,
        variant: MediaVariant = MediaVariant.THUMBNAIL,
        range_header: Optional[str] = None,
    ) -> AssetStream:
        """
        Start streaming an asset rendition. ``Range`` is forwarded as is.

        Raises:
            ValidationError: malformed asset id.
            MediaNotFoundError: Immich has no such asset.
            InvalidRangeError: Immich answered 416.
            MediaProviderError: any other failure.
        """
        validate_asset_id(asset_id)
        self._ensure_configured()

        url = f"{self.base_url}{IMMICH_API_ASSET_VARIANT.format(id=asset_id, variant=variant.immich_path)}"
        headers = {"x-api-key": self.api_key}
        if range_header:
            headers["Range"] = range_header

        client = self._new_client()
        try:
            request = client.build_request("GET", url, headers=headers)
            response = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            raise MediaProviderError(f"Immich unreachable: {exc}") from exc

        stream = AssetStream(response=response, client=client, variant=variant)

        if response.status_code == 404:
            await stream.aclose()
            raise MediaNotFoundError(f"Asset {asset_id} not found")

        if response.status_code == 416:
            await stream.aclose()
            raise InvalidRangeError("Range Not Satisfiable")

        if response.status_code >= 400:
            await stream.aclose()
            log_warning(
                "Immich asset fetch failed",
                category=LogCategory.MEDIA,
                asset_id=asset_id,
                status_code=response.status_code,
            )
            raise MediaProviderError(f"Immich returned status {response.status_code}")

        return stream


def get_immich_client() -> ImmichClient:
    """Client for the configured Immich server."""
    return ImmichClient()

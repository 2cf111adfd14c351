"""
External media server integration (Immich).
"""

from app.integrations.immich import AssetStream, ImmichClient, get_immich_client

__all__ = [
    "AssetStream",
    "ImmichClient",
    "get_immich_client",
]

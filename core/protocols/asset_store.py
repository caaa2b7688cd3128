"""Protocol for the durable asset store."""

from typing import Protocol


class IAssetStore(Protocol):
    """Interface for storing generated media under stable URLs."""

    async def put(self, *, data: bytes, filename: str, content_type: str) -> str:
        """Store raw bytes.

        Args:
            data: Asset contents.
            filename: Suggested object name, e.g. ``shot-<id>.png``.
            content_type: MIME type.

        Returns:
            A stable public URL.

        Raises:
            AssetStoreError: If the upload fails.
        """
        ...

    async def fetch(self, url: str) -> bytes:
        """Download an asset, typically an ephemeral generation output.

        Raises:
            AssetStoreError: If the download fails.
        """
        ...

"""Durable asset store implementations."""

import base64
import logging
from typing import TYPE_CHECKING

import httpx

from core.constants import WorkerEndpoints, WorkerFields
from core.exceptions import AssetStoreError, VideoWorkerError
from core.services.video_worker import HttpVideoWorker

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


class WorkerAssetStore:
    """Asset store that re-hosts media through the video worker's storage.

    Images go to ``upload-image`` and audio to ``upload-audio`` as base64
    payloads; the worker answers with the public URL.
    """

    def __init__(self, settings: "Settings", *, worker: HttpVideoWorker | None = None):
        """Initialize the asset store.

        Args:
            settings: Application settings.
            worker: Optional worker client to reuse.
        """
        self._worker = worker or HttpVideoWorker(settings)
        self._download_timeout = settings.asset_download_timeout

    async def put(self, *, data: bytes, filename: str, content_type: str) -> str:
        """Upload bytes and return their stable URL.

        Raises:
            AssetStoreError: If the upload fails or returns no URL.
        """
        encoded = base64.b64encode(data).decode("ascii")
        if content_type.startswith("audio/"):
            endpoint, payload_key, url_key = (
                WorkerEndpoints.UPLOAD_AUDIO,
                WorkerFields.AUDIO_BASE64,
                WorkerFields.AUDIO_URL,
            )
        else:
            endpoint, payload_key, url_key = (
                WorkerEndpoints.UPLOAD_IMAGE,
                WorkerFields.IMAGE_BASE64,
                WorkerFields.IMAGE_URL,
            )

        try:
            result = await self._worker.call(endpoint, {
                payload_key: encoded,
                WorkerFields.FILENAME: filename,
                WorkerFields.CONTENT_TYPE: content_type,
            })
        except VideoWorkerError as e:
            raise AssetStoreError(f"Failed to upload {filename}: {e.message}") from e

        url = result.get(url_key)
        if not url:
            raise AssetStoreError(f"Upload of {filename} returned no URL")
        logger.info("Stored %s (%d bytes)", filename, len(data))
        return url

    async def fetch(self, url: str) -> bytes:
        """Download an asset over HTTP.

        Raises:
            AssetStoreError: If the download fails.
        """
        try:
            async with httpx.AsyncClient(timeout=self._download_timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise AssetStoreError(f"Failed to download {url}: {e}") from e
        return response.content


class InMemoryAssetStore:
    """Asset store kept in process memory, for debug mode and tests."""

    def __init__(self, settings: "Settings | None" = None):
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}

    async def put(self, *, data: bytes, filename: str, content_type: str) -> str:
        url = f"memory://assets/{filename}"
        self.objects[url] = data
        self.content_types[url] = content_type
        return url

    async def fetch(self, url: str) -> bytes:
        if url in self.objects:
            return self.objects[url]
        if url.startswith("mock://"):
            # Placeholder bytes for outputs of the mock generators
            return f"mock-asset:{url}".encode()
        raise AssetStoreError(f"Unknown asset: {url}")

"""Video composition worker client implementations."""

import hashlib
import logging
from typing import TYPE_CHECKING, Any

import httpx

from core.constants import WorkerEndpoints, WorkerFields
from core.exceptions import VideoWorkerError
from core.models import KenBurnsEffect, Transition
from core.protocols.video_worker import CaptionStyle

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


class HttpVideoWorker:
    """Client for the HTTP video composition worker.

    Each operation is a JSON ``POST {base_url}/api/video/{endpoint}``; the
    response carries the URL of the produced asset and failures carry an
    ``error`` field.
    """

    def __init__(self, settings: "Settings", *, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize the worker client.

        Args:
            settings: Application settings.
            transport: Optional httpx transport (used by tests).
        """
        self._base_url = settings.video_worker_url.rstrip("/")
        self._timeout = settings.video_worker_timeout
        self._transport = transport

    async def call(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body to a worker endpoint and return the JSON response.

        Raises:
            VideoWorkerError: On transport errors or non-2xx responses.
        """
        url = f"{self._base_url}/api/video/{endpoint}"
        logger.debug("Calling video worker %s", url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=body)
        except httpx.HTTPError as e:
            raise VideoWorkerError(
                f"Video worker request failed: {e}",
                operation=endpoint,
            ) from e

        if response.is_error:
            try:
                detail = response.json().get(WorkerFields.ERROR)
            except ValueError:
                detail = None
            raise VideoWorkerError(
                detail or f"Video worker error: {response.status_code}",
                operation=endpoint,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise VideoWorkerError("Video worker returned invalid JSON", operation=endpoint) from e

    async def _video_url(self, endpoint: str, body: dict[str, Any]) -> str:
        result = await self.call(endpoint, body)
        url = result.get(WorkerFields.VIDEO_URL)
        if not url:
            raise VideoWorkerError(f"No video URL returned from {endpoint}", operation=endpoint)
        return url

    async def ken_burns(
        self,
        *,
        image_url: str,
        duration: float,
        effect: KenBurnsEffect,
        width: int,
        height: int,
    ) -> str:
        return await self._video_url(WorkerEndpoints.KEN_BURNS, {
            WorkerFields.IMAGE_URL: image_url,
            WorkerFields.DURATION: duration,
            WorkerFields.EFFECT: effect.value,
            WorkerFields.WIDTH: width,
            WorkerFields.HEIGHT: height,
        })

    async def mix_audio(self, *, video_url: str, audio_url: str, volume: float = 1.0) -> str:
        return await self._video_url(WorkerEndpoints.MIX_AUDIO, {
            WorkerFields.VIDEO_URL: video_url,
            WorkerFields.AUDIO_URL: audio_url,
            WorkerFields.VOLUME: volume,
        })

    async def concatenate(
        self,
        *,
        video_urls: list[str],
        transition: Transition = Transition.NONE,
    ) -> str:
        return await self._video_url(WorkerEndpoints.CONCATENATE, {
            WorkerFields.VIDEO_URLS: list(video_urls),
            WorkerFields.TRANSITION: transition.value,
        })

    async def add_captions(self, *, video_url: str, srt_content: str, style: CaptionStyle) -> str:
        return await self._video_url(WorkerEndpoints.CAPTIONS, {
            WorkerFields.VIDEO_URL: video_url,
            WorkerFields.SRT_CONTENT: srt_content,
            WorkerFields.STYLE: {
                "fontName": style.font_name,
                "fontSize": style.font_size,
                "fontColor": style.font_color,
                "position": style.position,
            },
        })


class MockVideoWorker:
    """In-process stand-in for the video worker.

    Records every call and returns deterministic ``mock://`` URLs. Individual
    operations can be made to fail by name through ``fail_operations``.
    """

    def __init__(self, settings: "Settings | None" = None, *, fail_operations: set[str] | None = None):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_operations: set[str] = set(fail_operations or ())

    def _record(self, operation: str, **params: Any) -> str:
        self.calls.append((operation, params))
        if operation in self.fail_operations:
            raise VideoWorkerError(f"Simulated {operation} failure", operation=operation)
        digest = hashlib.md5(repr(sorted(params.items())).encode()).hexdigest()[:12]
        return f"mock://videos/{operation}-{digest}.mp4"

    def calls_for(self, operation: str) -> list[dict[str, Any]]:
        return [params for name, params in self.calls if name == operation]

    async def ken_burns(
        self,
        *,
        image_url: str,
        duration: float,
        effect: KenBurnsEffect,
        width: int,
        height: int,
    ) -> str:
        return self._record(
            WorkerEndpoints.KEN_BURNS,
            image_url=image_url,
            duration=duration,
            effect=effect.value,
            width=width,
            height=height,
        )

    async def mix_audio(self, *, video_url: str, audio_url: str, volume: float = 1.0) -> str:
        return self._record(
            WorkerEndpoints.MIX_AUDIO, video_url=video_url, audio_url=audio_url, volume=volume
        )

    async def concatenate(
        self,
        *,
        video_urls: list[str],
        transition: Transition = Transition.NONE,
    ) -> str:
        return self._record(
            WorkerEndpoints.CONCATENATE, video_urls=tuple(video_urls), transition=transition.value
        )

    async def add_captions(self, *, video_url: str, srt_content: str, style: CaptionStyle) -> str:
        return self._record(
            WorkerEndpoints.CAPTIONS, video_url=video_url, srt_content=srt_content, style=style
        )

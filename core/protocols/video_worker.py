"""Protocol for the video composition worker."""

from dataclasses import dataclass
from typing import Protocol

from core.models import KenBurnsEffect, Transition


@dataclass(frozen=True)
class CaptionStyle:
    """Caption rendering options passed to the worker."""

    font_name: str = "Arial"
    font_size: int = 32
    font_color: str = "white"
    position: str = "bottom"


class IVideoWorker(Protocol):
    """Interface for the worker that renders and combines clips.

    Every operation is keyed by URLs and returns the URL of a new asset.
    Calling an operation twice with the same inputs is safe.
    """

    async def ken_burns(
        self,
        *,
        image_url: str,
        duration: float,
        effect: KenBurnsEffect,
        width: int,
        height: int,
    ) -> str:
        """Render a pan/zoom video from a still image."""
        ...

    async def mix_audio(self, *, video_url: str, audio_url: str, volume: float = 1.0) -> str:
        """Mux an audio track onto a video."""
        ...

    async def concatenate(
        self,
        *,
        video_urls: list[str],
        transition: Transition = Transition.NONE,
    ) -> str:
        """Concatenate clips in the given order."""
        ...

    async def add_captions(self, *, video_url: str, srt_content: str, style: CaptionStyle) -> str:
        """Burn an SRT caption track into a video."""
        ...

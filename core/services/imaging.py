"""Image generation service implementations."""

import hashlib
import logging
from typing import TYPE_CHECKING

from together import AsyncTogether

from core.exceptions import ImageGenerationError

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


def _parse_size(size: str) -> tuple[int, int]:
    width, _, height = size.partition("x")
    try:
        return int(width), int(height)
    except ValueError as e:
        raise ImageGenerationError(f"Invalid image size class: {size!r}") from e


class TogetherImageGenerator:
    """Image generator backed by the Together.ai images endpoint."""

    def __init__(self, settings: "Settings"):
        """Initialize the image generator.

        Args:
            settings: Application settings.
        """
        self._client = (
            AsyncTogether(
                api_key=settings.llm_api_key,
                base_url=settings.llm_base_url,
                timeout=settings.llm_timeout,
            )
            if settings.llm_api_key
            else None
        )
        self._model = settings.image_model
        self._steps = settings.image_steps

    async def generate(self, *, prompt: str, size: str) -> str:
        """Generate one image and return its (temporary) URL.

        Args:
            prompt: Image description.
            size: Size class such as ``"1792x1024"``.

        Returns:
            URL of the generated image.

        Raises:
            ImageGenerationError: If the call fails or returns no URL.
        """
        if self._client is None:
            raise ImageGenerationError("Image API key not configured")

        width, height = _parse_size(size)
        logger.info("Generating %s image with %s", size, self._model)

        try:
            response = await self._client.images.generate(
                prompt=prompt,
                model=self._model,
                width=width,
                height=height,
                steps=self._steps,
                n=1,
            )
        except Exception as e:
            raise ImageGenerationError(f"Together.ai image error: {e}") from e

        data = getattr(response, "data", None) or []
        url = getattr(data[0], "url", None) if data else None
        if not url:
            raise ImageGenerationError("No image URL returned")
        return url


class MockImageGenerator:
    """Mock image generator for debug mode.

    Returns stable ``mock://`` URLs derived from the prompt and size.
    """

    def __init__(self, settings: "Settings | None" = None):
        self.calls: list[tuple[str, str]] = []

    async def generate(self, *, prompt: str, size: str) -> str:
        """Return a deterministic placeholder image URL."""
        _parse_size(size)
        self.calls.append((prompt, size))
        digest = hashlib.md5(f"{prompt}_{size}".encode()).hexdigest()[:16]
        url = f"mock://images/{digest}-{size}.png"
        logger.debug("Mock image generated: %s", url)
        return url

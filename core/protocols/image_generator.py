"""Protocol for the image generation service."""

from typing import Protocol


class IImageGenerator(Protocol):
    """Interface for image generation services."""

    async def generate(self, *, prompt: str, size: str) -> str:
        """Generate a single image.

        Args:
            prompt: Image description.
            size: Size class such as ``"1024x1792"``.

        Returns:
            URL of the generated image. The URL may expire, callers should
            re-host it.

        Raises:
            ImageGenerationError: If generation fails or returns no image.
        """
        ...

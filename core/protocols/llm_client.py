"""Protocol for the text generation service."""

from typing import Any, Protocol


class ILLMClient(Protocol):
    """Interface for text generation clients.

    Used for narrative writing, scene and shot breakdown, and image prompt
    rewriting.
    """

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """Send a prompt pair to the model and return the response text.

        Args:
            system_prompt: The system instruction.
            user_prompt: The user message.
            temperature: Sampling temperature (0.0-1.0).
            max_tokens: Optional cap on response length.
            response_format: Optional structured output format, e.g.
                ``{"type": "json_object"}``.

        Returns:
            The response text, possibly empty.

        Raises:
            TextGenerationError: If the call fails.
        """
        ...

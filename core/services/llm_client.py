"""Text generation client implementations."""

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from together import AsyncTogether

from core.constants import IMAGE_PROMPT_SYSTEM, FieldNames
from core.exceptions import TextGenerationError

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


class TogetherLLMClient:
    """Text generation client for Together.ai using the Together SDK."""

    def __init__(self, settings: "Settings"):
        """Initialize the Together.ai client.

        Args:
            settings: Application settings with API configuration.
        """
        self._api_key = settings.llm_api_key
        self._client = (
            AsyncTogether(
                api_key=settings.llm_api_key,
                base_url=settings.llm_base_url,
                timeout=settings.llm_timeout,
            )
            if settings.llm_api_key
            else None
        )
        self._model = settings.llm_model
        self._max_tokens = settings.llm_max_tokens

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """Send a chat completion request to Together.ai.

        Args:
            system_prompt: The system instruction.
            user_prompt: The user message.
            temperature: Sampling temperature.
            max_tokens: Optional cap on response length.
            response_format: Optional structured output format.

        Returns:
            The response text (empty string when the model returned nothing).

        Raises:
            TextGenerationError: If the key is missing or the API call fails.
        """
        if self._client is None:
            raise TextGenerationError("LLM API key not configured")

        request_params: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens or self._max_tokens,
        }
        if response_format:
            request_params["response_format"] = response_format

        logger.debug("Sending request to Together.ai model: %s", self._model)

        try:
            response = await self._client.chat.completions.create(**request_params)
        except Exception as e:
            error_msg = str(e)
            api_response = getattr(e, "api_response", None)
            if api_response is not None:
                error_type = getattr(api_response, "type_", None) or "unknown_error"
                error_message = getattr(api_response, "message", None) or error_msg
                error_msg = f"{error_type}: {error_message}"
            raise TextGenerationError(f"Together.ai API error: {error_msg}") from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content or ""
        logger.debug("Received response (%d chars)", len(content))
        return content


class MockLLMClient:
    """Deterministic text generation client for debug mode and tests.

    Recognizes the kind of request from the prompts and answers with a
    narrative, a scene breakdown, a shot breakdown or an image prompt.
    """

    def __init__(
        self,
        settings: "Settings | None" = None,
        *,
        scene_count: int = 3,
        shots_per_scene: int = 3,
    ):
        """Initialize the mock client.

        Args:
            settings: Optional settings (ignored in mock).
            scene_count: Number of scenes returned for a scene breakdown.
            shots_per_scene: Number of shots returned for a shot breakdown.
        """
        self._scene_count = scene_count
        self._shots_per_scene = shots_per_scene
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """Return a mock response appropriate for the request."""
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt})
        logger.debug("MockLLMClient generating response #%d", len(self.calls))

        if system_prompt == IMAGE_PROMPT_SYSTEM:
            return self._mock_image_prompt(user_prompt)
        if response_format is not None:
            if f'"{FieldNames.SCENES}"' in user_prompt:
                return self._mock_scene_response()
            if f'"{FieldNames.SHOTS}"' in user_prompt:
                return self._mock_shot_response(user_prompt)
            return '{"message": "Mock response"}'
        return self._mock_narrative(user_prompt)

    def _mock_narrative(self, user_prompt: str) -> str:
        source = user_prompt.split("\n\n")[0].strip()
        return (
            f"{source} The morning light crept over the quiet town. "
            "Nobody expected the old lighthouse to shine again. "
            "Yet that night, its beam swept across the harbor one last time."
        )

    def _mock_scene_response(self) -> str:
        return json.dumps({
            FieldNames.SCENES: [
                {
                    FieldNames.SCENE: {
                        FieldNames.NAME: f"Scene {i}",
                        FieldNames.SCRIPT: f"Scene {i} of the story unfolds at the harbor.",
                    }
                }
                for i in range(1, self._scene_count + 1)
            ]
        })

    def _mock_shot_response(self, user_prompt: str) -> str:
        scene_script = user_prompt.split("\n\n")[0].strip()
        label = re.sub(r"\s+", " ", scene_script)[:40]
        return json.dumps({
            FieldNames.SHOTS: [
                {
                    FieldNames.SHOT: {
                        FieldNames.NAME: f"Shot {i}",
                        FieldNames.SCRIPT: f"Shot {i}: {label}",
                    }
                }
                for i in range(1, self._shots_per_scene + 1)
            ]
        })

    def _mock_image_prompt(self, user_prompt: str) -> str:
        script = user_prompt.split("\n\n")[0].strip()
        return f"Cinematic illustration, soft light: {script}"

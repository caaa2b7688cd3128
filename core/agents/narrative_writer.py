"""Narrative writer agent: turns source content into a single prose narrative."""

import logging

from pydantic import BaseModel, Field

from config.prompt_loader import PromptName, prompt_or_default
from core.exceptions import NarrativeGenerationFailed
from core.models import StoryTemplate
from core.protocols.llm_client import ILLMClient

from .base import BaseAgent

logger = logging.getLogger(__name__)


class NarrativeRequest(BaseModel):
    """Input for narrative generation."""

    source_text: str = Field(..., min_length=1, description="Resolved source content")
    template: StoryTemplate = Field(..., description="Template supplying the prompt pair")


class NarrativeWriterAgent(BaseAgent[NarrativeRequest, str]):
    """Agent that rewrites source content into the story narrative."""

    def __init__(
        self,
        *,
        llm_client: ILLMClient,
        max_retries: int = 1,
        max_tokens: int = 2000,
    ):
        """Initialize the narrative writer.

        Args:
            llm_client: Text generation client.
            max_retries: Maximum retry attempts.
            max_tokens: Response length cap for the narrative.
        """
        super().__init__(max_retries=max_retries)
        self._llm = llm_client
        self._max_tokens = max_tokens

    async def _execute(self, input_data: NarrativeRequest) -> str:
        """Generate the narrative.

        Raises:
            NarrativeGenerationFailed: If the service returns no usable text.
        """
        template = input_data.template
        system_prompt = prompt_or_default(template.story_system_prompt, PromptName.STORY_SYSTEM)
        instruction = prompt_or_default(template.story_user_prompt, PromptName.STORY_USER)

        self.logger.info("Generating narrative from %d chars of source", len(input_data.source_text))
        narrative = await self._llm.complete(
            system_prompt=system_prompt,
            user_prompt=f"{input_data.source_text}\n\n{instruction}",
            max_tokens=self._max_tokens,
        )

        narrative = (narrative or "").strip()
        if not narrative:
            raise NarrativeGenerationFailed("Failed to generate story")

        self.logger.info("Narrative generated (%d chars)", len(narrative))
        return narrative

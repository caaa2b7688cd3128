"""Scene splitter agent for breaking a narrative into scenes."""

import logging

from pydantic import BaseModel, Field

from config.prompt_loader import PromptName, prompt_or_default
from core.constants import FieldNames
from core.exceptions import LLMParseError
from core.models import SceneDraft, StoryTemplate
from core.protocols.llm_client import ILLMClient

from .base import BaseAgent
from .structured import JSON_OBJECT_FORMAT, parse_items

logger = logging.getLogger(__name__)


class SceneRequest(BaseModel):
    """Input for scene breakdown."""

    narrative: str = Field(..., min_length=1, description="Generated narrative")
    template: StoryTemplate


class SceneSplitterAgent(BaseAgent[SceneRequest, list[SceneDraft]]):
    """Agent that splits a narrative into ordered scenes using structured output."""

    def __init__(
        self,
        *,
        llm_client: ILLMClient,
        max_retries: int = 1,
        max_tokens: int = 4000,
    ):
        """Initialize the scene splitter agent.

        Args:
            llm_client: Text generation client.
            max_retries: Maximum retry attempts.
            max_tokens: Response length cap.
        """
        super().__init__(max_retries=max_retries)
        self._llm = llm_client
        self._max_tokens = max_tokens

    async def _execute(self, input_data: SceneRequest) -> list[SceneDraft]:
        """Split the narrative into scenes.

        Args:
            input_data: Narrative and template.

        Returns:
            Scenes in narrative order.

        Raises:
            LLMParseError: If the response cannot be parsed or holds no scenes.
        """
        template = input_data.template
        system_prompt = prompt_or_default(template.shot_system_prompt, PromptName.SHOT_SYSTEM)
        instruction = prompt_or_default(template.scene_prompt, PromptName.SCENE_BREAKDOWN)

        self.logger.info("Splitting narrative into scenes (length: %d chars)", len(input_data.narrative))
        response = await self._llm.complete(
            system_prompt=system_prompt,
            user_prompt=f"{input_data.narrative}\n\n{instruction}",
            temperature=0.3,
            max_tokens=self._max_tokens,
            response_format=JSON_OBJECT_FORMAT,
        )
        self.logger.debug("Scene response: %s", (response or "")[:200])

        scenes = parse_items(
            response,
            collection_key=FieldNames.SCENES,
            item_key=FieldNames.SCENE,
            model=SceneDraft,
        )
        scenes = [s for s in scenes if s.script.strip()]
        if not scenes:
            raise LLMParseError("No scenes generated", raw_response=response)

        self.logger.info("Successfully parsed %d scenes", len(scenes))
        return scenes

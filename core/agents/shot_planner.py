"""Shot planner agent for breaking a scene script into shots."""

import logging

from pydantic import BaseModel, Field

from config.prompt_loader import PromptName, prompt_or_default
from core.constants import FieldNames
from core.models import ShotDraft, StoryTemplate
from core.protocols.llm_client import ILLMClient

from .base import BaseAgent
from .structured import JSON_OBJECT_FORMAT, parse_items

logger = logging.getLogger(__name__)


class ShotRequest(BaseModel):
    """Input for shot breakdown of one scene."""

    scene_script: str = Field(..., min_length=1, description="Script of the scene")
    template: StoryTemplate


class ShotPlannerAgent(BaseAgent[ShotRequest, list[ShotDraft]]):
    """Agent that plans the shots of a scene.

    An empty shot list is a valid answer; the caller decides what a scene
    without shots means.
    """

    def __init__(
        self,
        *,
        llm_client: ILLMClient,
        max_retries: int = 1,
        max_tokens: int = 4000,
    ):
        """Initialize the shot planner agent.

        Args:
            llm_client: Text generation client.
            max_retries: Maximum retry attempts.
            max_tokens: Response length cap.
        """
        super().__init__(max_retries=max_retries)
        self._llm = llm_client
        self._max_tokens = max_tokens

    async def _execute(self, input_data: ShotRequest) -> list[ShotDraft]:
        """Plan shots for the scene.

        Raises:
            LLMParseError: If the response is not a shot list.
        """
        template = input_data.template
        system_prompt = prompt_or_default(template.shot_system_prompt, PromptName.SHOT_SYSTEM)
        instruction = prompt_or_default(template.shot_user_prompt, PromptName.SHOT_BREAKDOWN)

        response = await self._llm.complete(
            system_prompt=system_prompt,
            user_prompt=f"{input_data.scene_script}\n\n{instruction}",
            temperature=0.3,
            max_tokens=self._max_tokens,
            response_format=JSON_OBJECT_FORMAT,
        )

        shots = parse_items(
            response,
            collection_key=FieldNames.SHOTS,
            item_key=FieldNames.SHOT,
            model=ShotDraft,
        )
        shots = [s for s in shots if s.script.strip()]
        self.logger.info("Planned %d shots", len(shots))
        return shots

"""Shot media agent: image, audio, video and final mix for a single shot."""

import logging
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from core.constants import (
    IMAGE_PROMPT_SYSTEM,
    IMAGE_SIZE_BY_ORIENTATION,
    KEN_BURNS_EFFECTS,
    MIN_SHOT_DURATION,
    WORDS_PER_SECOND,
)
from core.exceptions import (
    ImageGenerationError,
    StageError,
    StagePreconditionError,
    VoiceSynthesisError,
)
from core.models import MediaStatus, Shot, ShotStage, StoryTemplate
from core.planner import next_shot_stage
from core.protocols.asset_store import IAssetStore
from core.protocols.image_generator import IImageGenerator
from core.protocols.llm_client import ILLMClient
from core.protocols.story_repository import IStoryRepository
from core.protocols.video_worker import IVideoWorker
from core.protocols.voice_synthesizer import IVoiceSynthesizer

from .base import with_retries

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

_STAGE_ERRORS: dict[ShotStage, type[StageError]] = {
    ShotStage.IMAGE: ImageGenerationError,
    ShotStage.AUDIO: VoiceSynthesisError,
    ShotStage.VIDEO: StageError,
    ShotStage.FINAL: StageError,
}


def estimate_duration(
    script: str,
    words_per_second: float = WORDS_PER_SECOND,
    minimum: float = MIN_SHOT_DURATION,
) -> float:
    """Estimate spoken duration of a script in seconds.

    Args:
        script: Narration text.
        words_per_second: Assumed speaking rate.
        minimum: Floor for very short scripts.

    Returns:
        ``max(minimum, words / words_per_second)``.
    """
    return max(minimum, len(script.split()) / words_per_second)


class ShotMediaAgent:
    """Runs the four production stages of a shot against persisted state.

    Each stage is marked ``processing`` before its external calls and
    ``completed`` or ``failed`` afterwards, so the shot row always reflects
    what has been attempted. Stages run strictly in order.
    """

    def __init__(
        self,
        *,
        repository: IStoryRepository,
        llm_client: ILLMClient,
        image_generator: IImageGenerator,
        voice_synthesizer: IVoiceSynthesizer,
        asset_store: IAssetStore,
        video_worker: IVideoWorker,
        settings: "Settings",
        rng: random.Random | None = None,
    ):
        """Initialize the shot media agent.

        Args:
            repository: Story persistence.
            llm_client: Text client used to rewrite image prompts.
            image_generator: Image generation service.
            voice_synthesizer: Voice synthesis service.
            asset_store: Durable storage for images and audio.
            video_worker: Video composition worker.
            settings: Application settings.
            rng: Random source for Ken Burns effect selection.
        """
        self._repository = repository
        self._llm = llm_client
        self._images = image_generator
        self._voice = voice_synthesizer
        self._assets = asset_store
        self._worker = video_worker
        self._settings = settings
        self._rng = rng or random.Random()
        self.max_retries = settings.max_retries
        self.logger = logging.getLogger(self.__class__.__name__)

        self._handlers: dict[ShotStage, Callable[[Shot, StoryTemplate], Awaitable[dict[str, Any]]]] = {
            ShotStage.IMAGE: self._generate_image,
            ShotStage.AUDIO: self._generate_audio,
            ShotStage.VIDEO: self._generate_video,
            ShotStage.FINAL: self._mix_final,
        }

    async def run_stage(self, shot: Shot, stage: ShotStage, template: StoryTemplate) -> Shot:
        """Run one stage of a shot and persist the outcome.

        Args:
            shot: Current shot state.
            stage: Stage to run.
            template: Story template.

        Returns:
            The updated shot.

        Raises:
            StagePreconditionError: If an earlier stage is not completed.
            StageError: If the stage fails after retries. The failure is
                already recorded on the shot.
        """
        self._check_preconditions(shot, stage)
        status_field = f"{stage.value}_status"

        await self._repository.update_shot(shot.id, **{status_field: MediaStatus.PROCESSING})
        self.logger.info("Shot %s: running %s stage", shot.id, stage.value)

        try:
            changes = await with_retries(
                lambda: self._handlers[stage](shot, template),
                max_retries=self.max_retries,
                logger=self.logger,
                description=f"{stage.value} stage for shot {shot.id}",
            )
        except Exception as e:
            self.logger.error("Shot %s: %s stage failed: %s", shot.id, stage.value, e)
            await self._repository.update_shot(
                shot.id,
                **{status_field: MediaStatus.FAILED, "error_message": str(e)},
            )
            raise _STAGE_ERRORS[stage](
                f"{stage.value} stage failed: {e}",
                shot_id=shot.id,
                stage=stage.value,
            ) from e

        return await self._repository.update_shot(
            shot.id,
            **changes,
            **{status_field: MediaStatus.COMPLETED, "error_message": None},
        )

    async def run_next_stage(self, shot: Shot, template: StoryTemplate) -> tuple[ShotStage | None, Shot]:
        """Run exactly the next incomplete stage.

        Returns:
            The stage that ran (None if the shot was already complete) and
            the updated shot.
        """
        stage = next_shot_stage(shot)
        if stage is None:
            return None, shot
        return stage, await self.run_stage(shot, stage, template)

    async def run_all(self, shot: Shot, template: StoryTemplate) -> Shot:
        """Run every remaining stage in order, stopping at the first failure."""
        while (stage := next_shot_stage(shot)) is not None:
            shot = await self.run_stage(shot, stage, template)
        return shot

    def _check_preconditions(self, shot: Shot, stage: ShotStage) -> None:
        stages = list(ShotStage)
        for earlier in stages[: stages.index(stage)]:
            if shot.stage_status(earlier) != MediaStatus.COMPLETED:
                raise StagePreconditionError(
                    f"Cannot run {stage.value} stage: {earlier.value} stage is "
                    f"{shot.stage_status(earlier).value}",
                    shot_id=shot.id,
                    stage=stage.value,
                )

        if stage == ShotStage.VIDEO and not shot.image_url:
            raise StagePreconditionError("Cannot run video stage: no image", shot_id=shot.id, stage=stage.value)
        if stage == ShotStage.FINAL and not (shot.video_url and shot.audio_url):
            raise StagePreconditionError(
                "Cannot run final stage: video or audio missing",
                shot_id=shot.id,
                stage=stage.value,
            )

    async def _image_prompt(self, shot: Shot, template: StoryTemplate) -> str:
        if not template.image_prompt_template:
            return shot.script

        rewritten = await self._llm.complete(
            system_prompt=IMAGE_PROMPT_SYSTEM,
            user_prompt=f"{shot.script}\n\n{template.image_prompt_template}",
        )
        return (rewritten or "").strip() or shot.script

    async def _generate_image(self, shot: Shot, template: StoryTemplate) -> dict[str, Any]:
        prompt = await self._image_prompt(shot, template)
        size = IMAGE_SIZE_BY_ORIENTATION[template.orientation]

        ephemeral_url = await self._images.generate(prompt=prompt, size=size)
        if not ephemeral_url:
            raise ImageGenerationError("Image service returned no URL", shot_id=shot.id)

        data = await self._assets.fetch(ephemeral_url)
        image_url = await self._assets.put(
            data=data,
            filename=f"shot-{shot.id}.png",
            content_type="image/png",
        )
        return {"image_prompt": prompt, "image_url": image_url}

    async def _generate_audio(self, shot: Shot, template: StoryTemplate) -> dict[str, Any]:
        speech = await self._voice.synthesize(text=shot.script, voice_id=template.voice_id)
        audio_url = await self._assets.put(
            data=speech.data,
            filename=f"shot-{shot.id}.mp3",
            content_type="audio/mpeg",
        )

        if self._settings.prefer_reported_duration and speech.duration_seconds:
            duration = speech.duration_seconds
        else:
            duration = estimate_duration(
                shot.script,
                words_per_second=self._settings.words_per_second,
                minimum=self._settings.min_shot_duration,
            )
        return {"audio_url": audio_url, "audio_duration": duration}

    async def _generate_video(self, shot: Shot, template: StoryTemplate) -> dict[str, Any]:
        effect = self._rng.choice(KEN_BURNS_EFFECTS)
        video_url = await self._worker.ken_burns(
            image_url=shot.image_url,
            duration=shot.audio_duration or self._settings.default_shot_duration,
            effect=effect,
            width=template.width,
            height=template.height,
        )
        return {"video_url": video_url}

    async def _mix_final(self, shot: Shot, template: StoryTemplate) -> dict[str, Any]:
        final_url = await self._worker.mix_audio(
            video_url=shot.video_url,
            audio_url=shot.audio_url,
            volume=1.0,
        )
        return {"final_video_url": final_url}

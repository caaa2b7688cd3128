"""Video compositor agent for combining shot clips into scene and story videos."""

import logging
from typing import TYPE_CHECKING

from core.captions import build_caption_track, render_srt, track_duration
from core.exceptions import CompositionError
from core.models import MediaStatus, Scene, Story, StoryTemplate, Transition
from core.protocols.story_repository import IStoryRepository
from core.protocols.video_worker import CaptionStyle, IVideoWorker

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


class VideoCompositorAgent:
    """Agent that builds scene clips, the final video and its captions.

    Only shots whose final stage completed are ever combined; failed shots
    are left out rather than failing the scene.
    """

    def __init__(
        self,
        *,
        repository: IStoryRepository,
        video_worker: IVideoWorker,
        settings: "Settings",
    ):
        """Initialize the compositor.

        Args:
            repository: Story persistence.
            video_worker: Video composition worker.
            settings: Application settings.
        """
        self._repository = repository
        self._worker = video_worker
        self._default_duration = settings.default_shot_duration
        self.logger = logging.getLogger(self.__class__.__name__)

    async def combine_shots(self, scene: Scene) -> Scene:
        """Concatenate the completed shots of a scene into one clip.

        Args:
            scene: Scene to combine.

        Returns:
            The updated scene with ``video_url`` set.

        Raises:
            CompositionError: If the scene has no completed shots or the
                worker fails. The scene is marked failed in both cases.
        """
        shots = await self._repository.get_shots_by_scene(scene.id)
        clip_urls = [s.final_video_url for s in shots if s.is_complete and s.final_video_url]

        if not clip_urls:
            message = f"Scene {scene.sort_order} has no completed shots"
            await self._repository.update_scene(
                scene.id, status=MediaStatus.FAILED, error_message=message
            )
            raise CompositionError(message, stage="combine_shots")

        await self._repository.update_scene(scene.id, status=MediaStatus.PROCESSING)
        self.logger.info("Combining %d shots for scene %d", len(clip_urls), scene.sort_order)

        try:
            video_url = await self._concatenate(clip_urls, Transition.NONE)
        except Exception as e:
            await self._repository.update_scene(
                scene.id, status=MediaStatus.FAILED, error_message=str(e)
            )
            raise CompositionError(
                f"Failed to combine scene {scene.sort_order}: {e}", stage="combine_shots"
            ) from e

        return await self._repository.update_scene(
            scene.id,
            video_url=video_url,
            status=MediaStatus.COMPLETED,
            error_message=None,
        )

    async def combine_scenes(self, story: Story) -> Story:
        """Concatenate combined scene clips into the final video.

        Also records the final duration as the sum of the included shots.

        Raises:
            CompositionError: If no scene has a clip or the worker fails.
        """
        scenes = [s for s in await self._repository.get_scenes(story.id) if s.video_url]
        if not scenes:
            raise CompositionError("No scene videos available", stage="combine_scenes")

        self.logger.info("Combining %d scenes for story %s", len(scenes), story.id)
        try:
            final_url = await self._concatenate([s.video_url for s in scenes], Transition.FADE)
        except Exception as e:
            raise CompositionError(f"Failed to build final video: {e}", stage="combine_scenes") from e

        cues = await self._caption_cues(story.id)
        return await self._repository.update_story(
            story.id,
            final_video_url=final_url,
            duration_seconds=track_duration(cues),
        )

    async def add_captions(self, story: Story, template: StoryTemplate) -> Story:
        """Burn an SRT caption track into the final video.

        Returns the story unchanged when captions are disabled.

        Raises:
            CompositionError: If there is no final video or the worker fails.
        """
        if not template.captions_enabled:
            self.logger.info("Captions disabled for template %s", template.id)
            return story
        if not story.final_video_url:
            raise CompositionError("No final video to caption", stage="add_captions")

        srt_content = render_srt(await self._caption_cues(story.id))
        style = CaptionStyle(
            font_name=template.caption_font,
            font_size=template.caption_size,
            font_color=template.caption_color,
            position=template.caption_position,
        )

        try:
            captioned_url = await self._worker.add_captions(
                video_url=story.final_video_url,
                srt_content=srt_content,
                style=style,
            )
        except Exception as e:
            raise CompositionError(f"Failed to add captions: {e}", stage="add_captions") from e

        return await self._repository.update_story(
            story.id,
            final_video_captioned_url=captioned_url,
            srt_content=srt_content,
        )

    async def _concatenate(self, urls: list[str], transition: Transition) -> str:
        # The worker needs at least two inputs
        if len(urls) == 1:
            return urls[0]
        return await self._worker.concatenate(video_urls=urls, transition=transition)

    async def _caption_cues(self, story_id: str):
        scenes = await self._repository.get_scenes(story_id)
        shots_by_scene = {
            scene.id: await self._repository.get_shots_by_scene(scene.id) for scene in scenes
        }
        return build_caption_track(
            scenes, shots_by_scene, default_duration=self._default_duration
        )

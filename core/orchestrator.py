"""Pipeline orchestrator for faceless video generation."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from core.agents.narrative_writer import NarrativeRequest
from core.agents.scene_splitter import SceneRequest
from core.agents.shot_planner import ShotRequest
from core.constants import STORY_STATUS_RANK
from core.exceptions import (
    CompositionError,
    DecompositionError,
    InvalidTransitionError,
    NarrativeGenerationFailed,
    NotFoundError,
    RetryExhaustedError,
    StageError,
)
from core.models import (
    ProgressSnapshot,
    RunReport,
    Scene,
    Shot,
    ShotOutcome,
    ShotStage,
    SourceType,
    StepResult,
    Story,
    StoryStatus,
    StoryTemplate,
)
from core.planner import (
    ContinueAction,
    FinalizeAction,
    next_continue_action,
    next_finalize_action,
)
from core.progress import calculate_progress, describe_step, merge_progress

if TYPE_CHECKING:
    from config.settings import Settings
    from core.agents.narrative_writer import NarrativeWriterAgent
    from core.agents.scene_splitter import SceneSplitterAgent
    from core.agents.shot_media import ShotMediaAgent
    from core.agents.shot_planner import ShotPlannerAgent
    from core.agents.video_compositor import VideoCompositorAgent
    from core.protocols.story_repository import IStoryRepository
    from core.services.source_loader import SourceLoader

logger = logging.getLogger(__name__)

_STAGE_MESSAGES: dict[ShotStage, str] = {
    ShotStage.IMAGE: "Image generated",
    ShotStage.AUDIO: "Audio generated",
    ShotStage.VIDEO: "Video generated",
    ShotStage.FINAL: "Audio/video mixed",
}


class StoryPipeline:
    """Orchestrates story generation from source content to captioned video.

    Stages:
    1. Narrative generation (LLM)
    2. Scene and shot decomposition (LLM)
    3. Shot media: image, narration, Ken Burns clip, audio mix
    4. Scene and story composition (video worker)
    5. Captions (video worker)

    All state lives in the repository. ``process_story`` runs everything in
    one call; ``continue_story`` advances one unit of work per call for
    hosts with a per-invocation time budget.
    """

    def __init__(
        self,
        *,
        settings: "Settings",
        repository: "IStoryRepository",
        source_loader: "SourceLoader",
        narrative_writer: "NarrativeWriterAgent",
        scene_splitter: "SceneSplitterAgent",
        shot_planner: "ShotPlannerAgent",
        shot_media: "ShotMediaAgent",
        compositor: "VideoCompositorAgent",
    ):
        """Initialize the pipeline with all required agents.

        Args:
            settings: Application settings.
            repository: Story persistence.
            source_loader: Resolves story sources to text.
            narrative_writer: Agent generating the narrative.
            scene_splitter: Agent splitting the narrative into scenes.
            shot_planner: Agent planning shots per scene.
            shot_media: Agent producing per-shot media.
            compositor: Agent combining clips and adding captions.
        """
        self._settings = settings
        self._repository = repository
        self._source_loader = source_loader
        self._narrative_writer = narrative_writer
        self._scene_splitter = scene_splitter
        self._shot_planner = shot_planner
        self._shot_media = shot_media
        self._compositor = compositor
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def settings(self) -> "Settings":
        return self._settings

    # Queries and CRUD

    async def list_templates(self) -> list[StoryTemplate]:
        return await self._repository.list_templates(active_only=True)

    async def create_story(
        self,
        *,
        name: str,
        template_id: str,
        source_content: str,
        source_type: SourceType = SourceType.TEXT,
        user_id: str | None = None,
    ) -> Story:
        """Create a pending story.

        Raises:
            NotFoundError: If the template does not exist or is inactive.
        """
        template = await self._repository.get_template(template_id)
        if template is None or not template.active:
            raise NotFoundError(f"Story template not found: {template_id}")

        story = await self._repository.create_story(
            Story(
                name=name,
                template_id=template_id,
                source_content=source_content,
                source_type=source_type,
                user_id=user_id,
            )
        )
        self._logger.info("Created story %s from template %s", story.id, template.name)
        return story

    async def get_story(self, story_id: str) -> Story:
        """Get a story by ID.

        Raises:
            NotFoundError: If the story does not exist.
        """
        story = await self._repository.get_story(story_id)
        if story is None:
            raise NotFoundError(f"Story not found: {story_id}")
        return story

    async def list_stories(self, *, user_id: str | None = None, limit: int = 20) -> list[Story]:
        """Most recent stories first, optionally for one user."""
        return await self._repository.list_stories(user_id=user_id, limit=limit)

    async def get_scenes(self, story_id: str) -> list[Scene]:
        return await self._repository.get_scenes(story_id)

    async def get_shots(self, story_id: str) -> list[Shot]:
        return await self._repository.get_shots_by_story(story_id)

    async def delete_story(self, story_id: str) -> None:
        await self.get_story(story_id)
        await self._repository.delete_story(story_id)
        self._logger.info("Deleted story %s", story_id)

    async def get_progress(self, story_id: str) -> tuple[ProgressSnapshot, str]:
        """Live progress and a description of the current step.

        Terminal stories report their persisted progress.
        """
        story = await self.get_story(story_id)
        snapshot = calculate_progress(await self._repository.get_shots_by_story(story_id))
        if story.is_terminal:
            progress = story.progress
        else:
            progress = merge_progress(story.progress, story.status, snapshot.progress)
        snapshot = snapshot.model_copy(update={"progress": progress})
        return snapshot, describe_step(story.status, snapshot)

    # Full run

    async def process_story(self, story_id: str) -> RunReport:
        """Run the whole pipeline for a pending story.

        Shot and scene failures are recorded and skipped. Any other failure
        marks the story failed; it is reported, not raised.

        Args:
            story_id: The story to process.

        Returns:
            Report with per-shot outcomes and the final status.

        Raises:
            NotFoundError: If the story or its template does not exist.
            InvalidTransitionError: If the story is not pending.
        """
        story = await self.get_story(story_id)
        if story.status != StoryStatus.PENDING:
            raise InvalidTransitionError(
                f"Story {story_id} is {story.status.value}; only pending stories can be processed"
            )
        template = await self._get_template(story.template_id)
        report = RunReport(story_id=story_id, status=story.status)
        self._logger.info("Starting pipeline execution for story %s", story_id)

        try:
            story = await self._prepare(story, template)
            await self._transition(story_id, StoryStatus.GENERATING_MEDIA)
            report.shots = await self._produce_media(story_id, template)

            story = await self._transition(story_id, StoryStatus.BUILDING_VIDEO)
            report.scene_errors = await self._combine_each_scene(story_id)
            story = await self._compositor.combine_scenes(story)

            if template.captions_enabled:
                story = await self._transition(story_id, StoryStatus.ADDING_CAPTIONS)
                story = await self._compositor.add_captions(story, template)

            story = await self._complete(story_id)
            self._logger.info(
                "Pipeline completed for story %s: %d/%d shots succeeded",
                story_id,
                len(report.succeeded_shots),
                len(report.shots),
            )
        except Exception as e:
            self._logger.exception("Pipeline failed for story %s: %s", story_id, e)
            story = await self._fail(story_id, str(e))

        report.status = story.status
        report.final_video_url = story.output_url
        report.error_message = story.error_message
        return report

    async def _prepare(self, story: Story, template: StoryTemplate) -> Story:
        """Generate the narrative and decompose it, skipping finished parts."""
        story = await self._narrate(story, template)
        return await self._split(story, template)

    async def _narrate(self, story: Story, template: StoryTemplate) -> Story:
        if STORY_STATUS_RANK[story.status] < STORY_STATUS_RANK[StoryStatus.GENERATING_STORY]:
            story = await self._transition(story.id, StoryStatus.GENERATING_STORY)
        if story.generated_story:
            return story

        source_text = await self._source_loader.load(story.source_content, story.source_type)
        try:
            narrative = await self._narrative_writer.run(
                NarrativeRequest(source_text=source_text, template=template)
            )
        except RetryExhaustedError as e:
            cause = e.__cause__
            if isinstance(cause, NarrativeGenerationFailed):
                raise NarrativeGenerationFailed(str(cause), story_id=story.id) from e
            raise NarrativeGenerationFailed(
                f"Failed to generate story: {cause or e}", story_id=story.id
            ) from e
        return await self._repository.update_story(story.id, generated_story=narrative)

    async def _split(self, story: Story, template: StoryTemplate) -> Story:
        story = await self._transition(story.id, StoryStatus.GENERATING_SCENES)
        if not await self._repository.get_scenes(story.id):
            story = await self._decompose(story, template)
        return story

    async def _decompose(self, story: Story, template: StoryTemplate) -> Story:
        try:
            drafts = await self._scene_splitter.run(
                SceneRequest(narrative=story.generated_story or "", template=template)
            )
        except RetryExhaustedError as e:
            raise DecompositionError(
                f"Failed to split story into scenes: {e.__cause__ or e}", story_id=story.id
            ) from e

        scenes = await self._repository.create_scenes([
            Scene(story_id=story.id, name=draft.name or None, script=draft.script, sort_order=i + 1)
            for i, draft in enumerate(drafts)
        ])

        total_shots = 0
        for scene in scenes:
            try:
                shot_drafts = await self._shot_planner.run(
                    ShotRequest(scene_script=scene.script, template=template)
                )
            except RetryExhaustedError as e:
                self._logger.warning("Shot planning failed for scene %d: %s", scene.sort_order, e)
                continue
            if not shot_drafts:
                self._logger.warning("Scene %d produced no shots", scene.sort_order)
                continue

            await self._repository.create_shots([
                Shot(
                    scene_id=scene.id,
                    story_id=story.id,
                    name=draft.name or None,
                    script=draft.script,
                    sort_order=i + 1,
                )
                for i, draft in enumerate(shot_drafts)
            ])
            total_shots += len(shot_drafts)

        if total_shots == 0:
            raise DecompositionError("No shots generated", story_id=story.id)

        self._logger.info("Decomposed story %s into %d scenes, %d shots", story.id, len(scenes), total_shots)
        return await self._repository.update_story(
            story.id, total_scenes=len(scenes), total_shots=total_shots
        )

    async def _produce_media(self, story_id: str, template: StoryTemplate) -> list[ShotOutcome]:
        shots = await self._repository.get_shots_by_story(story_id)
        concurrency = self._settings.shot_concurrency

        if concurrency > 1:
            self._logger.info("Producing %d shots (concurrency %d)", len(shots), concurrency)
            semaphore = asyncio.Semaphore(concurrency)

            async def bounded(shot: Shot) -> ShotOutcome:
                async with semaphore:
                    return await self._produce_shot(shot, template)

            tasks = [asyncio.create_task(bounded(shot)) for shot in shots]
            try:
                return list(await asyncio.gather(*tasks))
            except BaseException:
                # Stop the sibling shots before the error propagates
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        outcomes = []
        for shot in shots:
            outcomes.append(await self._produce_shot(shot, template))
        return outcomes

    async def _produce_shot(self, shot: Shot, template: StoryTemplate) -> ShotOutcome:
        try:
            await self._shot_media.run_all(shot, template)
            outcome = ShotOutcome(shot_id=shot.id, scene_id=shot.scene_id, sort_order=shot.sort_order, ok=True)
        except StageError as e:
            self._logger.warning("Shot %s failed: %s", shot.id, e)
            outcome = ShotOutcome(
                shot_id=shot.id,
                scene_id=shot.scene_id,
                sort_order=shot.sort_order,
                ok=False,
                error=str(e),
                failed_stage=ShotStage(e.stage) if e.stage else None,
            )
        await self._update_progress(shot.story_id)
        return outcome

    async def _combine_each_scene(self, story_id: str) -> dict[str, str]:
        errors: dict[str, str] = {}
        for scene in await self._repository.get_scenes(story_id):
            try:
                await self._compositor.combine_shots(scene)
            except CompositionError as e:
                self._logger.warning("Skipping scene %d: %s", scene.sort_order, e)
                errors[scene.id] = str(e)
        return errors

    # Incremental execution

    async def process_one_shot(self, shot_id: str) -> StepResult:
        """Run the single next incomplete stage of a shot.

        A stage that previously failed is attempted again.

        Raises:
            NotFoundError: If the shot, story or template does not exist.
            StageError: If the stage fails; the failure is recorded on the shot.
        """
        shot = await self._repository.get_shot(shot_id)
        if shot is None:
            raise NotFoundError(f"Shot not found: {shot_id}")
        story = await self.get_story(shot.story_id)
        template = await self._get_template(story.template_id)

        stage, shot = await self._shot_media.run_next_stage(shot, template)
        snapshot = await self._update_progress(story.id)
        message = _STAGE_MESSAGES[stage] if stage else "Shot already complete"
        return StepResult(
            message=message,
            done=shot.is_complete,
            shot_id=shot.id,
            progress=snapshot.progress,
            completed_shots=snapshot.completed_shots,
            total_shots=snapshot.total_shots,
        )

    async def finalize_scenes_and_story(self, story_id: str) -> StepResult:
        """Perform the next composition step for a story.

        Scene combination failures skip the scene. A failure to build the
        final video or captions fails the story.
        """
        story = await self.get_story(story_id)
        if story.status == StoryStatus.FAILED:
            return StepResult(message=f"Story failed: {story.error_message}", done=True)

        template = await self._get_template(story.template_id)
        decision = next_finalize_action(story, await self._repository.get_scenes(story_id), template)

        if decision.action == FinalizeAction.DONE:
            return StepResult(message="Story already complete", done=True, final_video_url=story.output_url)

        try:
            if STORY_STATUS_RANK[story.status] < STORY_STATUS_RANK[StoryStatus.BUILDING_VIDEO]:
                story = await self._transition(story_id, StoryStatus.BUILDING_VIDEO)

            if decision.action == FinalizeAction.COMBINE_SCENE:
                scene = decision.scene
                try:
                    await self._compositor.combine_shots(scene)
                    message = f"Scene {scene.sort_order} combined"
                except CompositionError as e:
                    self._logger.warning("Skipping scene %d: %s", scene.sort_order, e)
                    message = f"Scene {scene.sort_order} skipped: {e}"
                return StepResult(message=message)

            if decision.action == FinalizeAction.COMBINE_STORY:
                story = await self._compositor.combine_scenes(story)
                return StepResult(message="Final video created", final_video_url=story.final_video_url)

            if decision.action == FinalizeAction.ADD_CAPTIONS:
                story = await self._transition(story_id, StoryStatus.ADDING_CAPTIONS)
                story = await self._compositor.add_captions(story, template)
                return StepResult(message="Captions added", final_video_url=story.output_url)

            story = await self._complete(story_id)
        except Exception as e:
            self._logger.exception("Finalization failed for story %s: %s", story_id, e)
            story = await self._fail(story_id, str(e))
            return StepResult(message=f"Story failed: {e}", done=True)

        return StepResult(
            message="Story completed",
            done=True,
            final_video_url=story.output_url,
            progress=story.progress,
        )

    async def continue_story(self, story_id: str) -> StepResult:
        """Advance a story by one unit of work.

        Returns:
            What was done; ``done`` is True once the story is terminal.
        """
        story = await self.get_story(story_id)
        shots = await self._repository.get_shots_by_story(story_id)
        decision = next_continue_action(story, shots)

        if decision.action == ContinueAction.DONE:
            if story.status == StoryStatus.FAILED:
                return StepResult(message=f"Story failed: {story.error_message}", done=True)
            return StepResult(message="Story already complete", done=True, final_video_url=story.output_url)

        if decision.action == ContinueAction.FAIL:
            await self._fail(story_id, decision.reason or "Story cannot continue")
            return StepResult(message=decision.reason or "Story failed", done=True)

        if decision.action == ContinueAction.FINALIZE:
            return await self.finalize_scenes_and_story(story_id)

        if decision.action in (ContinueAction.NARRATE, ContinueAction.DECOMPOSE):
            try:
                template = await self._get_template(story.template_id)
                if decision.action == ContinueAction.NARRATE:
                    story = await self._narrate(story, template)
                else:
                    story = await self._split(story, template)
                    story = await self._transition(story_id, StoryStatus.GENERATING_MEDIA)
            except Exception as e:
                self._logger.exception("Preparation failed for story %s: %s", story_id, e)
                await self._fail(story_id, str(e))
                return StepResult(message=f"Story failed: {e}", done=True)
            if decision.action == ContinueAction.NARRATE:
                return StepResult(message="Story generated", progress=story.progress)
            return StepResult(
                message=f"Story decomposed into {story.total_shots} shots",
                progress=story.progress,
                total_shots=story.total_shots,
                completed_shots=0,
            )

        if STORY_STATUS_RANK[story.status] < STORY_STATUS_RANK[StoryStatus.GENERATING_MEDIA]:
            await self._transition(story_id, StoryStatus.GENERATING_MEDIA)
        try:
            result = await self.process_one_shot(decision.shot.id)
        except StageError as e:
            snapshot = await self._update_progress(story_id)
            return StepResult(
                message=str(e),
                shot_id=decision.shot.id,
                progress=snapshot.progress,
                completed_shots=snapshot.completed_shots,
                total_shots=snapshot.total_shots,
            )
        # A finished shot is not a finished story
        return result.model_copy(update={"done": False})

    # State handling

    async def _get_template(self, template_id: str) -> StoryTemplate:
        template = await self._repository.get_template(template_id)
        if template is None:
            raise NotFoundError(f"Story template not found: {template_id}")
        return template

    async def _transition(self, story_id: str, status: StoryStatus) -> Story:
        """Move a story forward, raising the progress floor to the phase checkpoint.

        Raises:
            InvalidTransitionError: If the story is terminal or the move is backwards.
        """
        story = await self.get_story(story_id)
        if story.is_terminal or STORY_STATUS_RANK[status] < STORY_STATUS_RANK[story.status]:
            raise InvalidTransitionError(
                f"Cannot move story {story_id} from {story.status.value} to {status.value}"
            )
        self._logger.info("Story %s: %s", story_id, status.value)
        return await self._repository.update_story(
            story_id,
            status=status,
            progress=merge_progress(story.progress, status),
        )

    async def _complete(self, story_id: str) -> Story:
        story = await self._transition(story_id, StoryStatus.COMPLETED)
        return await self._repository.update_story(story.id, completed_at=datetime.now(timezone.utc))

    async def _fail(self, story_id: str, message: str) -> Story:
        """Mark a story failed, keeping its progress. Terminal stories are left as they are."""
        story = await self.get_story(story_id)
        if story.is_terminal:
            self._logger.warning("Story %s already %s; not marking failed", story_id, story.status.value)
            return story
        return await self._repository.update_story(
            story_id, status=StoryStatus.FAILED, error_message=message
        )

    async def _update_progress(self, story_id: str) -> ProgressSnapshot:
        story = await self.get_story(story_id)
        snapshot = calculate_progress(await self._repository.get_shots_by_story(story_id))
        if story.is_terminal:
            return snapshot.model_copy(update={"progress": story.progress})

        progress = merge_progress(story.progress, story.status, snapshot.progress)
        if progress != story.progress:
            await self._repository.update_story(story_id, progress=progress)
        return snapshot.model_copy(update={"progress": progress})

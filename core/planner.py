"""Pure decisions for incremental execution.

These functions only look at persisted state and say what to do next; the
pipeline executes the decision. Keeping them free of I/O makes the
"exactly one unit of work per call" behaviour easy to test.
"""

from dataclasses import dataclass
from enum import Enum

from core.constants import STORY_STATUS_RANK
from core.models import MediaStatus, Scene, Shot, ShotStage, Story, StoryStatus, StoryTemplate


class FinalizeAction(str, Enum):
    """Next composition step for a story whose shots are settled."""

    COMBINE_SCENE = "combine_scene"
    COMBINE_STORY = "combine_story"
    ADD_CAPTIONS = "add_captions"
    COMPLETE = "complete"
    DONE = "done"


class ContinueAction(str, Enum):
    """Next unit of work for an incremental step."""

    NARRATE = "narrate"
    DECOMPOSE = "decompose"
    WORK_SHOT = "work_shot"
    FINALIZE = "finalize"
    FAIL = "fail"
    DONE = "done"


@dataclass(frozen=True)
class FinalizeDecision:
    action: FinalizeAction
    scene: Scene | None = None


@dataclass(frozen=True)
class ContinueDecision:
    action: ContinueAction
    shot: Shot | None = None
    reason: str | None = None


def next_shot_stage(shot: Shot) -> ShotStage | None:
    """Return the first stage of ``shot`` that is not completed, or None."""
    for stage in ShotStage:
        if shot.stage_status(stage) != MediaStatus.COMPLETED:
            return stage
    return None


def next_workable_shot(shots: list[Shot]) -> Shot | None:
    """Return the first shot whose next stage can still be attempted.

    Shots with a failed stage are settled and never picked again. A stage
    left ``processing`` by an interrupted invocation is picked up again.
    """
    for shot in shots:
        if not shot.has_failed and next_shot_stage(shot) is not None:
            return shot
    return None


def next_finalize_action(
    story: Story,
    scenes: list[Scene],
    template: StoryTemplate,
) -> FinalizeDecision:
    """Decide the next composition step.

    Priority: combine the first scene still to be combined, then the final
    video, then captions, then mark the story completed. Scenes that already
    failed to combine are skipped.
    """
    if story.status == StoryStatus.COMPLETED:
        return FinalizeDecision(FinalizeAction.DONE)

    for scene in sorted(scenes, key=lambda s: s.sort_order):
        if scene.status not in (MediaStatus.COMPLETED, MediaStatus.FAILED):
            return FinalizeDecision(FinalizeAction.COMBINE_SCENE, scene)

    if not story.final_video_url:
        return FinalizeDecision(FinalizeAction.COMBINE_STORY)

    if template.captions_enabled and not story.final_video_captioned_url:
        return FinalizeDecision(FinalizeAction.ADD_CAPTIONS)

    return FinalizeDecision(FinalizeAction.COMPLETE)


def next_continue_action(story: Story, shots: list[Shot]) -> ContinueDecision:
    """Decide what one incremental step should do for ``story``."""
    if story.is_terminal:
        return ContinueDecision(ContinueAction.DONE)

    if not shots:
        if STORY_STATUS_RANK[story.status] < STORY_STATUS_RANK[StoryStatus.GENERATING_MEDIA]:
            if not story.generated_story:
                return ContinueDecision(ContinueAction.NARRATE)
            return ContinueDecision(ContinueAction.DECOMPOSE)
        return ContinueDecision(ContinueAction.FAIL, reason="Story has no shots")

    shot = next_workable_shot(shots)
    if shot is not None:
        return ContinueDecision(ContinueAction.WORK_SHOT, shot=shot)

    if not any(s.is_complete for s in shots):
        return ContinueDecision(ContinueAction.FAIL, reason="All shots failed")

    return ContinueDecision(ContinueAction.FINALIZE)

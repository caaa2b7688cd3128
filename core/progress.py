"""Progress accounting derived from persisted shot stage statuses."""

from core.constants import (
    PHASE_PROGRESS,
    PIPELINE_LEVEL_STEPS,
    STAGES_PER_SHOT,
    STEPS_DONE_AFTER_DECOMPOSITION,
)
from core.models import MediaStatus, ProgressSnapshot, Shot, ShotStage, StoryStatus


def calculate_progress(shots: list[Shot]) -> ProgressSnapshot:
    """Compute completion figures for a story's shots.

    The pipeline has four story-level steps (narrative, decomposition, final
    combine, captions) plus four stages per shot. Narrative and decomposition
    are counted as done once shots exist.

    Args:
        shots: All shots of the story.

    Returns:
        Snapshot with the percentage and shot/step counts.
    """
    if not shots:
        return ProgressSnapshot(progress=0)

    total_steps = len(shots) * STAGES_PER_SHOT + PIPELINE_LEVEL_STEPS
    completed_stages = sum(
        1
        for shot in shots
        for stage in ShotStage
        if shot.stage_status(stage) == MediaStatus.COMPLETED
    )
    completed_steps = STEPS_DONE_AFTER_DECOMPOSITION + completed_stages

    return ProgressSnapshot(
        progress=min(100, round(100 * completed_steps / total_steps)),
        total_shots=len(shots),
        completed_shots=sum(1 for shot in shots if shot.is_complete),
        completed_steps=completed_steps,
        total_steps=total_steps,
    )


def merge_progress(previous: int, status: StoryStatus, computed: int | None = None) -> int:
    """Combine persisted progress with a phase checkpoint and a computed value.

    Never returns less than ``previous``. A completed story is always 100.
    """
    if status == StoryStatus.COMPLETED:
        return 100
    candidates = [previous, PHASE_PROGRESS.get(status, 0)]
    if computed is not None:
        candidates.append(computed)
    return min(100, max(candidates))


def describe_step(status: StoryStatus, snapshot: ProgressSnapshot) -> str:
    """Human readable description of what a story is currently doing."""
    if status == StoryStatus.PENDING:
        return "Waiting to start"
    if status == StoryStatus.GENERATING_STORY:
        return "Generating story"
    if status == StoryStatus.GENERATING_SCENES:
        return "Breaking story into scenes and shots"
    if status == StoryStatus.GENERATING_MEDIA:
        return f"Generating media ({snapshot.completed_shots}/{snapshot.total_shots} shots)"
    if status == StoryStatus.BUILDING_VIDEO:
        return "Building final video"
    if status == StoryStatus.ADDING_CAPTIONS:
        return "Adding captions"
    if status == StoryStatus.COMPLETED:
        return "Completed"
    return "Failed"

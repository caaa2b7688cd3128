"""Unit tests for progress accounting."""

import pytest

from core.models import MediaStatus, ProgressSnapshot, Shot, StoryStatus
from core.progress import calculate_progress, describe_step, merge_progress


def _shot(stages_done: int = 0) -> Shot:
    fields = ("image_status", "audio_status", "video_status", "final_status")
    return Shot(
        scene_id="sc",
        story_id="st",
        script="text",
        sort_order=1,
        **{name: MediaStatus.COMPLETED for name in fields[:stages_done]},
    )


class TestCalculateProgress:
    """Tests for calculate_progress."""

    def test_no_shots_is_zero(self) -> None:
        snapshot = calculate_progress([])
        assert snapshot.progress == 0
        assert snapshot.total_shots == 0

    def test_after_decomposition(self) -> None:
        # 2 done out of 4*4 + 4 = 20
        snapshot = calculate_progress([_shot() for _ in range(4)])
        assert snapshot.progress == 10
        assert snapshot.completed_steps == 2
        assert snapshot.total_steps == 20

    def test_counts_completed_stages_and_shots(self) -> None:
        snapshot = calculate_progress([_shot(4), _shot(2), _shot(0), _shot(4)])
        # (2 + 10) / 20
        assert snapshot.progress == 60
        assert snapshot.completed_shots == 2
        assert snapshot.total_shots == 4

    def test_all_media_done_leaves_room_for_composition(self) -> None:
        snapshot = calculate_progress([_shot(4), _shot(4)])
        # (2 + 8) / 12
        assert snapshot.progress == 83

    def test_progress_never_decreases_as_stages_complete(self) -> None:
        values = [calculate_progress([_shot(done), _shot(0)]).progress for done in range(5)]
        assert values == sorted(values)
        assert all(0 <= v <= 100 for v in values)


class TestMergeProgress:
    """Tests for merge_progress."""

    def test_uses_phase_checkpoint(self) -> None:
        assert merge_progress(0, StoryStatus.GENERATING_MEDIA) == 20

    def test_never_decreases(self) -> None:
        assert merge_progress(90, StoryStatus.BUILDING_VIDEO, computed=50) == 90

    def test_computed_raises_value(self) -> None:
        assert merge_progress(20, StoryStatus.GENERATING_MEDIA, computed=55) == 55

    def test_completed_is_always_100(self) -> None:
        assert merge_progress(40, StoryStatus.COMPLETED) == 100


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (StoryStatus.GENERATING_STORY, "Generating story"),
        (StoryStatus.GENERATING_MEDIA, "Generating media (1/4 shots)"),
        (StoryStatus.ADDING_CAPTIONS, "Adding captions"),
        (StoryStatus.FAILED, "Failed"),
    ],
)
def test_describe_step(status: StoryStatus, expected: str) -> None:
    snapshot = ProgressSnapshot(progress=30, total_shots=4, completed_shots=1)
    assert describe_step(status, snapshot) == expected

"""SRT caption track construction."""

from dataclasses import dataclass

from core.constants import DEFAULT_SHOT_DURATION
from core.models import Scene, Shot


@dataclass(frozen=True)
class CaptionCue:
    """One caption entry spanning ``[start, end)`` seconds."""

    index: int
    start: float
    end: float
    text: str


def format_srt_time(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS,mmm``.

    Example:
        >>> format_srt_time(3725.5)
        '01:02:05,500'
    """
    total_ms = max(0, round(seconds * 1000))
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def build_caption_track(
    scenes: list[Scene],
    shots_by_scene: dict[str, list[Shot]],
    *,
    default_duration: float = DEFAULT_SHOT_DURATION,
) -> list[CaptionCue]:
    """Lay out one cue per shot that made it into the final video.

    Cue text is collapsed onto one line, since a blank line ends an SRT block.

    Scenes without a combined clip and shots whose final stage did not
    complete are skipped, so cue timing matches the concatenated output.

    Args:
        scenes: Story scenes (any order; sorted here).
        shots_by_scene: Shots keyed by scene id.
        default_duration: Interval for shots with no known audio duration.

    Returns:
        Contiguous cues starting at 0.
    """
    cues: list[CaptionCue] = []
    cursor = 0.0

    for scene in sorted(scenes, key=lambda s: s.sort_order):
        if not scene.video_url:
            continue
        shots = sorted(shots_by_scene.get(scene.id, []), key=lambda s: s.sort_order)
        for shot in shots:
            if not shot.is_complete:
                continue
            duration = shot.audio_duration or default_duration
            cues.append(
                CaptionCue(
                    index=len(cues) + 1,
                    start=cursor,
                    end=cursor + duration,
                    text=" ".join(shot.script.split()),
                )
            )
            cursor += duration

    return cues


def render_srt(cues: list[CaptionCue]) -> str:
    """Render cues as SRT text."""
    return "\n".join(
        f"{cue.index}\n{format_srt_time(cue.start)} --> {format_srt_time(cue.end)}\n{cue.text}\n"
        for cue in cues
    )


def track_duration(cues: list[CaptionCue]) -> float:
    return cues[-1].end if cues else 0.0

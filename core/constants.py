"""Constants for field names, size classes and pipeline defaults.

Centralizes the string literals used as JSON keys in structured LLM output
and on the video worker wire format.
"""

from typing import Final

from core.models import KenBurnsEffect, Orientation, StoryStatus


class FieldNames:
    """Keys used in structured scene/shot breakdown responses."""

    SCENES: Final[str] = "scenes"
    SCENE: Final[str] = "scene"
    SHOTS: Final[str] = "shots"
    SHOT: Final[str] = "shot"
    NAME: Final[str] = "name"
    SCRIPT: Final[str] = "script"


class WorkerFields:
    """camelCase keys of the video worker JSON API."""

    IMAGE_URL: Final[str] = "imageUrl"
    AUDIO_URL: Final[str] = "audioUrl"
    VIDEO_URL: Final[str] = "videoUrl"
    VIDEO_URLS: Final[str] = "videoUrls"
    DURATION: Final[str] = "duration"
    EFFECT: Final[str] = "effect"
    WIDTH: Final[str] = "width"
    HEIGHT: Final[str] = "height"
    VOLUME: Final[str] = "volume"
    TRANSITION: Final[str] = "transition"
    SRT_CONTENT: Final[str] = "srtContent"
    STYLE: Final[str] = "style"
    IMAGE_BASE64: Final[str] = "imageBase64"
    AUDIO_BASE64: Final[str] = "audioBase64"
    FILENAME: Final[str] = "filename"
    CONTENT_TYPE: Final[str] = "contentType"
    ERROR: Final[str] = "error"


class WorkerEndpoints:
    """Operation names appended to ``{worker_url}/api/video/``."""

    KEN_BURNS: Final[str] = "ken-burns"
    MIX_AUDIO: Final[str] = "mix-audio"
    CONCATENATE: Final[str] = "concatenate"
    CAPTIONS: Final[str] = "captions"
    UPLOAD_IMAGE: Final[str] = "upload-image"
    UPLOAD_AUDIO: Final[str] = "upload-audio"


# Image size class requested per output orientation
IMAGE_SIZE_BY_ORIENTATION: Final[dict[Orientation, str]] = {
    Orientation.LANDSCAPE: "1792x1024",
    Orientation.PORTRAIT: "1024x1792",
    Orientation.SQUARE: "1024x1024",
}

KEN_BURNS_EFFECTS: Final[tuple[KenBurnsEffect, ...]] = tuple(KenBurnsEffect)

# Narration timing heuristic
WORDS_PER_SECOND: Final[float] = 2.5
MIN_SHOT_DURATION: Final[float] = 2.0
DEFAULT_SHOT_DURATION: Final[float] = 5.0

# Progress accounting: narrative, decomposition, final combine, captions
PIPELINE_LEVEL_STEPS: Final[int] = 4
STEPS_DONE_AFTER_DECOMPOSITION: Final[int] = 2
STAGES_PER_SHOT: Final[int] = 4

# Forward-only rank of story statuses; FAILED is handled separately
STORY_STATUS_RANK: Final[dict[StoryStatus, int]] = {
    StoryStatus.PENDING: 0,
    StoryStatus.GENERATING_STORY: 1,
    StoryStatus.GENERATING_SCENES: 2,
    StoryStatus.GENERATING_MEDIA: 3,
    StoryStatus.BUILDING_VIDEO: 4,
    StoryStatus.ADDING_CAPTIONS: 5,
    StoryStatus.COMPLETED: 6,
}

# Progress checkpoints written when entering a phase
PHASE_PROGRESS: Final[dict[StoryStatus, int]] = {
    StoryStatus.GENERATING_STORY: 5,
    StoryStatus.GENERATING_SCENES: 15,
    StoryStatus.GENERATING_MEDIA: 20,
    StoryStatus.BUILDING_VIDEO: 85,
    StoryStatus.ADDING_CAPTIONS: 95,
    StoryStatus.COMPLETED: 100,
}

IMAGE_PROMPT_SYSTEM: Final[str] = "You create AI image generation prompts."

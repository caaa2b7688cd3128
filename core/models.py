"""Pydantic models for faceless video domain entities."""

import math
import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoryStatus(str, Enum):
    """Lifecycle of a story generation run."""

    PENDING = "pending"
    GENERATING_STORY = "generating_story"
    GENERATING_SCENES = "generating_scenes"
    GENERATING_MEDIA = "generating_media"
    BUILDING_VIDEO = "building_video"
    ADDING_CAPTIONS = "adding_captions"
    COMPLETED = "completed"
    FAILED = "failed"


class MediaStatus(str, Enum):
    """Status of a scene or of a single shot stage."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ShotStage(str, Enum):
    """The four production stages of a shot, in execution order."""

    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    FINAL = "final"


class SourceType(str, Enum):
    """Kind of source content a story is generated from."""

    TEXT = "text"
    URL = "url"
    AUDIO = "audio"


class Orientation(str, Enum):
    """Output orientation derived from template dimensions."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARE = "square"


class KenBurnsEffect(str, Enum):
    """Pan/zoom effects the video worker can render from a still image."""

    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    PAN_LEFT = "pan-left"
    PAN_RIGHT = "pan-right"


class Transition(str, Enum):
    """Transition used between concatenated clips."""

    NONE = "none"
    FADE = "fade"


class StoryTemplate(BaseModel):
    """Operator-defined configuration for a kind of story.

    Immutable for the duration of a run. Prompt fields left as None fall back
    to the prompt files shipped in ``config/prompts``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id, description="Template identifier")
    name: str = Field(..., description="Human readable template name")
    description: str | None = Field(None, description="Optional description")
    width: int = Field(default=1080, ge=16, le=8192, description="Output width in pixels")
    height: int = Field(default=1920, ge=16, le=8192, description="Output height in pixels")

    story_system_prompt: str | None = Field(None, description="System prompt for the narrative")
    story_user_prompt: str | None = Field(None, description="User instruction for the narrative")
    scene_prompt: str | None = Field(None, description="Instruction for scene breakdown")
    shot_system_prompt: str | None = Field(None, description="System prompt for scene/shot breakdown")
    shot_user_prompt: str | None = Field(None, description="Instruction for shot breakdown")
    image_prompt_template: str | None = Field(
        None,
        description="Instruction used to rewrite a shot script into an image prompt",
    )

    captions_enabled: bool = Field(default=True, description="Burn captions into the final video")
    caption_font: str = Field(default="Arial", description="Caption font name")
    caption_size: int = Field(default=32, ge=8, le=200, description="Caption font size")
    caption_color: str = Field(default="white", description="Caption font color")
    caption_position: str = Field(default="bottom", description="Caption position (bottom/top)")

    voice_id: str = Field(default="EXAVITQu4vr4xnSDxMaL", description="Voice synthesis voice id")
    active: bool = Field(default=True, description="Whether the template can be used")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def aspect_ratio(self) -> str:
        divisor = math.gcd(self.width, self.height)
        return f"{self.width // divisor}:{self.height // divisor}"

    @property
    def orientation(self) -> Orientation:
        if self.width > self.height:
            return Orientation.LANDSCAPE
        if self.height > self.width:
            return Orientation.PORTRAIT
        return Orientation.SQUARE


class Story(BaseModel):
    """Root aggregate of one end-to-end video generation run."""

    id: str = Field(default_factory=_new_id, description="Story identifier")
    name: str = Field(..., description="Story name")
    template_id: str = Field(..., description="StoryTemplate used for this run")
    user_id: str | None = Field(None, description="Owner, if known")
    source_content: str = Field(..., min_length=1, description="Raw source text or URL")
    source_type: SourceType = Field(SourceType.TEXT, description="Kind of source content")

    generated_story: str | None = Field(None, description="Generated narrative text")
    status: StoryStatus = Field(StoryStatus.PENDING, description="Lifecycle status")
    progress: int = Field(default=0, ge=0, le=100, description="Completion percentage")
    error_message: str | None = Field(None, description="Error message if failed")

    total_scenes: int = Field(default=0, ge=0)
    total_shots: int = Field(default=0, ge=0)
    final_video_url: str | None = Field(None, description="Combined video without captions")
    final_video_captioned_url: str | None = Field(None, description="Video with burned captions")
    srt_content: str | None = Field(None, description="Generated SRT caption track")
    duration_seconds: float | None = Field(None, description="Estimated final video duration")

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (StoryStatus.COMPLETED, StoryStatus.FAILED)

    @property
    def output_url(self) -> str | None:
        """Best available deliverable: captioned video, else the plain final video."""
        return self.final_video_captioned_url or self.final_video_url


class Scene(BaseModel):
    """An ordered narrative segment of a story."""

    id: str = Field(default_factory=_new_id)
    story_id: str = Field(..., description="Parent story id")
    name: str | None = Field(None, description="Scene name")
    script: str = Field(..., description="Narrative slice driving this scene")
    sort_order: int = Field(..., ge=1, description="1-based position within the story")
    video_url: str | None = Field(None, description="Combined scene clip")
    status: MediaStatus = Field(MediaStatus.PENDING)
    error_message: str | None = None


class Shot(BaseModel):
    """The smallest unit of media production within a scene."""

    id: str = Field(default_factory=_new_id)
    scene_id: str = Field(..., description="Parent scene id")
    story_id: str = Field(..., description="Owning story id")
    name: str | None = Field(None, description="Shot name")
    script: str = Field(..., description="Narration text for this shot")
    sort_order: int = Field(..., ge=1, description="1-based position within the scene")

    image_prompt: str | None = None
    image_url: str | None = None
    audio_url: str | None = None
    audio_duration: float | None = Field(None, gt=0, description="Spoken duration in seconds")
    video_url: str | None = None
    final_video_url: str | None = None

    image_status: MediaStatus = MediaStatus.PENDING
    audio_status: MediaStatus = MediaStatus.PENDING
    video_status: MediaStatus = MediaStatus.PENDING
    final_status: MediaStatus = MediaStatus.PENDING
    error_message: str | None = None

    def stage_status(self, stage: ShotStage) -> MediaStatus:
        return getattr(self, f"{stage.value}_status")

    @property
    def is_complete(self) -> bool:
        return self.final_status == MediaStatus.COMPLETED

    @property
    def has_failed(self) -> bool:
        return any(self.stage_status(stage) == MediaStatus.FAILED for stage in ShotStage)


class SceneDraft(BaseModel):
    """Scene as returned by the structure decomposer, before persistence."""

    name: str = Field(default="", description="Scene name")
    script: str = Field(..., min_length=1, description="Scene script")


class ShotDraft(BaseModel):
    """Shot as returned by the structure decomposer, before persistence."""

    name: str = Field(default="", description="Shot name")
    script: str = Field(..., min_length=1, description="Shot narration")


class ShotOutcome(BaseModel):
    """Per-shot result of a full run: ok, or the error that stopped the shot."""

    shot_id: str
    scene_id: str
    sort_order: int
    ok: bool
    error: str | None = None
    failed_stage: ShotStage | None = None


class RunReport(BaseModel):
    """Summary of a full pipeline run."""

    story_id: str
    status: StoryStatus
    shots: list[ShotOutcome] = Field(default_factory=list)
    scene_errors: dict[str, str] = Field(default_factory=dict)
    final_video_url: str | None = None
    error_message: str | None = None

    @property
    def failed_shots(self) -> list[ShotOutcome]:
        return [s for s in self.shots if not s.ok]

    @property
    def succeeded_shots(self) -> list[ShotOutcome]:
        return [s for s in self.shots if s.ok]


class StepResult(BaseModel):
    """Outcome of one incremental unit of work."""

    message: str
    done: bool = False
    shot_id: str | None = None
    final_video_url: str | None = None
    progress: int | None = None
    completed_shots: int | None = None
    total_shots: int | None = None


class ProgressSnapshot(BaseModel):
    """Derived completion figures for a story."""

    progress: int = Field(..., ge=0, le=100)
    total_shots: int = 0
    completed_shots: int = 0
    completed_steps: int = 0
    total_steps: int = 0

"""Pydantic schemas for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from core.models import MediaStatus, SourceType, StoryStatus

# Hard ceiling; the configured max_source_length is enforced per request
DEFAULT_MAX_SOURCE_LENGTH = 1_000_000


class CreateStoryRequest(BaseModel):
    """Request body for story creation."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Story name",
        examples=["The lighthouse keeper"],
    )
    template_id: str = Field(
        "default",
        description="Story template to use",
        examples=["default"],
    )
    source_content: str = Field(
        ...,
        min_length=1,
        max_length=DEFAULT_MAX_SOURCE_LENGTH,
        description="Source text, a URL to fetch, or a transcript",
    )
    source_type: SourceType = Field(SourceType.TEXT, description="Kind of source content")
    user_id: str | None = Field(None, max_length=200, description="Optional owner id")

    @field_validator("source_content")
    @classmethod
    def validate_source_content(cls, v: str) -> str:
        """Reject whitespace-only sources.

        Raises:
            ValueError: If the source contains only whitespace.
        """
        if not v.strip():
            raise ValueError("Source content cannot be empty or contain only whitespace")
        return v


class CreateStoryResponse(BaseModel):
    """Response from story creation endpoint."""

    story_id: str = Field(..., description="Unique identifier for the story")
    status: StoryStatus = Field(..., description="Current story status")
    message: str = Field(..., description="Human-readable status message")


class TemplateResponse(BaseModel):
    """A selectable story template."""

    id: str
    name: str
    description: str | None = None
    width: int
    height: int
    aspect_ratio: str
    captions_enabled: bool


class TemplateListResponse(BaseModel):
    """Response listing active templates."""

    templates: list[TemplateResponse]
    total: int


class ShotResponse(BaseModel):
    """Shot state as exposed by the API."""

    id: str
    name: str | None = None
    script: str
    sort_order: int
    image_url: str | None = None
    audio_url: str | None = None
    audio_duration: float | None = None
    video_url: str | None = None
    final_video_url: str | None = None
    image_status: MediaStatus
    audio_status: MediaStatus
    video_status: MediaStatus
    final_status: MediaStatus
    error_message: str | None = None


class SceneResponse(BaseModel):
    """Scene state with its shots."""

    id: str
    name: str | None = None
    script: str
    sort_order: int
    video_url: str | None = None
    status: MediaStatus
    error_message: str | None = None
    shots: list[ShotResponse] = Field(default_factory=list)


class StoryDetailResponse(BaseModel):
    """Full story state with live progress."""

    id: str
    name: str
    template_id: str
    status: StoryStatus
    progress: int = Field(..., description="Completion percentage (0-100)")
    current_step: str = Field(..., description="Description of the current step")
    total_scenes: int
    total_shots: int
    completed_shots: int
    generated_story: str | None = None
    final_video_url: str | None = None
    final_video_captioned_url: str | None = None
    duration_seconds: float | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    scenes: list[SceneResponse] = Field(default_factory=list)


class StorySummaryResponse(BaseModel):
    """A story as shown in listings."""

    id: str
    name: str
    template_id: str
    status: StoryStatus
    progress: int
    output_url: str | None = Field(None, description="Captioned video if present, else the plain one")
    created_at: datetime


class StoryListResponse(BaseModel):
    """Response listing recent stories."""

    stories: list[StorySummaryResponse]
    total: int


class StepResponse(BaseModel):
    """Outcome of one incremental step."""

    message: str
    done: bool
    shot_id: str | None = None
    final_video_url: str | None = None
    progress: int | None = None
    completed_shots: int | None = None
    total_shots: int | None = None


class HealthResponse(BaseModel):
    """Response from health check endpoint."""

    status: str = Field(..., description="Service health status")
    version: str = Field(..., description="API version")
    profile: str = Field(..., description="Current execution profile")

"""Core domain logic for faceless video generation."""

from core.exceptions import (
    CompositionError,
    DecompositionError,
    FacelessVideoError,
    ImageGenerationError,
    InvalidTransitionError,
    LLMParseError,
    NarrativeGenerationFailed,
    NotFoundError,
    RetryExhaustedError,
    StageError,
    StagePreconditionError,
    VideoWorkerError,
    VoiceSynthesisError,
)
from core.models import (
    MediaStatus,
    RunReport,
    Scene,
    Shot,
    ShotStage,
    SourceType,
    StepResult,
    Story,
    StoryStatus,
    StoryTemplate,
)

__all__ = [
    # Models
    "StoryStatus",
    "MediaStatus",
    "ShotStage",
    "SourceType",
    "StoryTemplate",
    "Story",
    "Scene",
    "Shot",
    "RunReport",
    "StepResult",
    # Exceptions
    "FacelessVideoError",
    "NarrativeGenerationFailed",
    "DecompositionError",
    "LLMParseError",
    "StageError",
    "ImageGenerationError",
    "VoiceSynthesisError",
    "StagePreconditionError",
    "VideoWorkerError",
    "CompositionError",
    "InvalidTransitionError",
    "NotFoundError",
    "RetryExhaustedError",
]

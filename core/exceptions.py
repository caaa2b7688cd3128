"""Domain exceptions for the faceless video pipeline."""


class FacelessVideoError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, *, context: dict | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class LLMParseError(FacelessVideoError):
    """Raised when the text service returns an unparseable response."""

    def __init__(self, message: str, *, raw_response: str | None = None):
        super().__init__(message, context={"raw_response": raw_response})
        self.raw_response = raw_response


class TextGenerationError(FacelessVideoError):
    """Raised when a text generation call fails at the transport level."""


class NarrativeGenerationFailed(FacelessVideoError):
    """Raised when no usable narrative could be generated."""

    def __init__(self, message: str, *, story_id: str | None = None):
        super().__init__(message, context={"story_id": story_id})
        self.story_id = story_id


class DecompositionError(FacelessVideoError):
    """Raised when the narrative cannot be split into scenes or shots."""

    def __init__(self, message: str, *, story_id: str | None = None):
        super().__init__(message, context={"story_id": story_id})
        self.story_id = story_id


class StageError(FacelessVideoError):
    """Base class for failures of a single shot stage."""

    def __init__(self, message: str, *, shot_id: str | None = None, stage: str | None = None):
        super().__init__(message, context={"shot_id": shot_id, "stage": stage})
        self.shot_id = shot_id
        self.stage = stage


class ImageGenerationError(StageError):
    """Raised when image generation fails."""


class VoiceSynthesisError(StageError):
    """Raised when voice synthesis fails."""


class StagePreconditionError(StageError):
    """Raised when a stage is attempted before its inputs are ready."""


class AssetStoreError(FacelessVideoError):
    """Raised when an asset cannot be stored or fetched."""


class VideoWorkerError(FacelessVideoError):
    """Raised when the video composition worker rejects or fails a request."""

    def __init__(self, message: str, *, operation: str | None = None, status_code: int | None = None):
        super().__init__(message, context={"operation": operation, "status_code": status_code})
        self.operation = operation
        self.status_code = status_code


class CompositionError(FacelessVideoError):
    """Raised when clips cannot be combined or captioned."""

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message, context={"stage": stage})
        self.stage = stage


class InvalidTransitionError(FacelessVideoError):
    """Raised when a story status would move backwards."""


class NotFoundError(FacelessVideoError):
    """Raised when a story, scene, shot or template does not exist."""


class UnsupportedSourceError(FacelessVideoError):
    """Raised when the story source cannot be turned into text."""


class RetryExhaustedError(FacelessVideoError):
    """Raised when all retry attempts have been exhausted."""

    def __init__(self, message: str, *, attempts: int = 0):
        super().__init__(message, context={"attempts": attempts})
        self.attempts = attempts

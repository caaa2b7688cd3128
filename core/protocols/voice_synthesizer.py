"""Protocol for the voice synthesis service."""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class SpeechAudio:
    """Synthesized speech.

    Attributes:
        data: Encoded audio bytes.
        content_type: MIME type of ``data``.
        duration_seconds: Spoken duration when the service reports it.
    """

    data: bytes
    content_type: str = "audio/mpeg"
    duration_seconds: float | None = None


class IVoiceSynthesizer(Protocol):
    """Interface for text-to-speech services."""

    async def synthesize(self, *, text: str, voice_id: str) -> SpeechAudio:
        """Synthesize speech for a script.

        Args:
            text: Narration text.
            voice_id: Provider voice identifier.

        Returns:
            The synthesized audio.

        Raises:
            VoiceSynthesisError: If synthesis fails.
        """
        ...

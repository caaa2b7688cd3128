"""Voice synthesis service implementations."""

import io
import logging
import wave
from typing import TYPE_CHECKING

from elevenlabs import VoiceSettings
from elevenlabs.client import AsyncElevenLabs

from core.constants import MIN_SHOT_DURATION, WORDS_PER_SECOND
from core.exceptions import VoiceSynthesisError
from core.protocols.voice_synthesizer import SpeechAudio

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "mp3_44100_128"


class ElevenLabsVoiceSynthesizer:
    """Production voice synthesizer using the ElevenLabs SDK.

    ElevenLabs returns MP3 bytes without duration metadata, so the reported
    duration is left empty and the caller estimates it.
    """

    def __init__(self, settings: "Settings"):
        """Initialize the ElevenLabs synthesizer.

        Args:
            settings: Application settings.
        """
        self._client = (
            AsyncElevenLabs(
                api_key=settings.voice_api_key,
                base_url=settings.voice_base_url,
                timeout=settings.voice_timeout,
            )
            if settings.voice_api_key
            else None
        )
        self._model = settings.voice_model
        self._voice_settings = VoiceSettings(
            stability=settings.voice_stability,
            similarity_boost=settings.voice_similarity_boost,
        )

    async def synthesize(self, *, text: str, voice_id: str) -> SpeechAudio:
        """Synthesize speech for the text with the given voice.

        Args:
            text: Narration text.
            voice_id: ElevenLabs voice id.

        Returns:
            MP3 audio.

        Raises:
            VoiceSynthesisError: If the key is missing or the request fails.
        """
        if self._client is None:
            raise VoiceSynthesisError("ElevenLabs API key not configured")
        if not text.strip():
            raise VoiceSynthesisError("Cannot synthesize empty text")

        logger.info("Synthesizing speech (%d chars) with voice %s", len(text), voice_id)
        audio = bytearray()
        try:
            async for chunk in self._client.text_to_speech.convert(
                voice_id=voice_id,
                text=text,
                model_id=self._model,
                output_format=OUTPUT_FORMAT,
                voice_settings=self._voice_settings,
            ):
                audio.extend(chunk)
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            detail = f"ElevenLabs error {status_code}" if status_code else "ElevenLabs request failed"
            raise VoiceSynthesisError(f"{detail}: {e}") from e

        if not audio:
            raise VoiceSynthesisError("ElevenLabs returned empty audio")
        return SpeechAudio(data=bytes(audio), content_type="audio/mpeg")


class MockVoiceSynthesizer:
    """Mock voice synthesizer for debug mode.

    Generates silent WAV audio of the estimated spoken length.
    """

    def __init__(self, settings: "Settings | None" = None, *, report_duration: bool = False):
        """Initialize the mock synthesizer.

        Args:
            settings: Optional settings (ignored in mock).
            report_duration: Report the generated audio length like a service
                that exposes duration metadata.
        """
        self._report_duration = report_duration
        self.calls: list[tuple[str, str]] = []

    async def synthesize(self, *, text: str, voice_id: str) -> SpeechAudio:
        """Generate silent audio for the text duration."""
        self.calls.append((text, voice_id))
        duration_seconds = max(MIN_SHOT_DURATION, len(text.split()) / WORDS_PER_SECOND)
        logger.debug("Generating mock speech (%.1fs) for: %s...", duration_seconds, text[:30])
        return SpeechAudio(
            data=self._silent_wav(duration_seconds),
            content_type="audio/wav",
            duration_seconds=duration_seconds if self._report_duration else None,
        )

    def _silent_wav(self, duration_seconds: float) -> bytes:
        sample_rate = 8000
        num_frames = int(sample_rate * duration_seconds)
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wav_file:
            wav_file.setnchannels(1)
            wav_file.setsampwidth(2)
            wav_file.setframerate(sample_rate)
            wav_file.writeframes(b"\x00\x00" * num_frames)
        return buffer.getvalue()

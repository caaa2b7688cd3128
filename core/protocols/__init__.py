"""Protocol interfaces for pipeline collaborators."""

from core.protocols.asset_store import IAssetStore
from core.protocols.image_generator import IImageGenerator
from core.protocols.llm_client import ILLMClient
from core.protocols.story_repository import IStoryRepository
from core.protocols.video_worker import CaptionStyle, IVideoWorker
from core.protocols.voice_synthesizer import IVoiceSynthesizer, SpeechAudio

__all__ = [
    "ILLMClient",
    "IImageGenerator",
    "IVoiceSynthesizer",
    "SpeechAudio",
    "IAssetStore",
    "IVideoWorker",
    "CaptionStyle",
    "IStoryRepository",
]

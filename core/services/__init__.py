"""Service implementations for pipeline infrastructure."""

from core.services.imaging import MockImageGenerator, TogetherImageGenerator
from core.services.llm_client import MockLLMClient, TogetherLLMClient
from core.services.repository import InMemoryStoryRepository
from core.services.source_loader import SourceLoader
from core.services.storage import InMemoryAssetStore, WorkerAssetStore
from core.services.video_worker import HttpVideoWorker, MockVideoWorker
from core.services.voice import ElevenLabsVoiceSynthesizer, MockVoiceSynthesizer

__all__ = [
    # LLM
    "TogetherLLMClient",
    "MockLLMClient",
    # Images
    "TogetherImageGenerator",
    "MockImageGenerator",
    # Voice
    "ElevenLabsVoiceSynthesizer",
    "MockVoiceSynthesizer",
    # Video worker
    "HttpVideoWorker",
    "MockVideoWorker",
    # Storage
    "WorkerAssetStore",
    "InMemoryAssetStore",
    "InMemoryStoryRepository",
    "SourceLoader",
]

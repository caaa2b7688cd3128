"""Dependency injection for FastAPI application."""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from config.settings import ExecutionProfile, Settings
from core.agents.narrative_writer import NarrativeWriterAgent
from core.agents.scene_splitter import SceneSplitterAgent
from core.agents.shot_media import ShotMediaAgent
from core.agents.shot_planner import ShotPlannerAgent
from core.agents.video_compositor import VideoCompositorAgent
from core.models import StoryTemplate
from core.orchestrator import StoryPipeline
from core.services.imaging import MockImageGenerator, TogetherImageGenerator
from core.services.llm_client import MockLLMClient, TogetherLLMClient
from core.services.repository import InMemoryStoryRepository
from core.services.source_loader import SourceLoader
from core.services.storage import InMemoryAssetStore, WorkerAssetStore
from core.services.video_worker import HttpVideoWorker, MockVideoWorker
from core.services.voice import ElevenLabsVoiceSynthesizer, MockVoiceSynthesizer

if TYPE_CHECKING:
    from core.protocols.asset_store import IAssetStore
    from core.protocols.image_generator import IImageGenerator
    from core.protocols.llm_client import ILLMClient
    from core.protocols.story_repository import IStoryRepository
    from core.protocols.video_worker import IVideoWorker
    from core.protocols.voice_synthesizer import IVoiceSynthesizer

logger = logging.getLogger(__name__)

# Singleton pipeline instance
_pipeline_instance: StoryPipeline | None = None

DEFAULT_TEMPLATES: tuple[StoryTemplate, ...] = (
    StoryTemplate(
        id="default",
        name="Vertical story",
        description="9:16 narrated story with captions",
        width=1080,
        height=1920,
    ),
    StoryTemplate(
        id="landscape",
        name="Landscape story",
        description="16:9 narrated story with captions",
        width=1920,
        height=1080,
    ),
)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from environment.
    """
    return Settings()


def _create_llm_client(settings: Settings, is_debug: bool) -> "ILLMClient":
    if is_debug and not settings.llm_api_key:
        logger.info("Using MockLLMClient (no API key configured)")
        return MockLLMClient(settings)
    logger.info("Using TogetherLLMClient (%s)", settings.llm_model)
    return TogetherLLMClient(settings)


def _create_image_generator(settings: Settings, is_debug: bool) -> "IImageGenerator":
    if is_debug:
        logger.info("Using MockImageGenerator")
        return MockImageGenerator(settings)
    logger.info("Using TogetherImageGenerator (%s)", settings.image_model)
    return TogetherImageGenerator(settings)


def _create_voice_synthesizer(settings: Settings, is_debug: bool) -> "IVoiceSynthesizer":
    if is_debug:
        logger.info("Using MockVoiceSynthesizer")
        return MockVoiceSynthesizer(settings)
    logger.info("Using ElevenLabsVoiceSynthesizer")
    return ElevenLabsVoiceSynthesizer(settings)


def _create_media_backends(settings: Settings, is_debug: bool) -> tuple["IVideoWorker", "IAssetStore"]:
    """Create the video worker and the asset store.

    In production both talk to the same worker deployment.
    """
    if is_debug:
        logger.info("Using MockVideoWorker and InMemoryAssetStore")
        return MockVideoWorker(settings), InMemoryAssetStore(settings)

    worker = HttpVideoWorker(settings)
    logger.info("Using HttpVideoWorker at %s", settings.video_worker_url)
    return worker, WorkerAssetStore(settings, worker=worker)


def create_repository() -> "IStoryRepository":
    """Create the story repository seeded with the default templates."""
    return InMemoryStoryRepository(templates=list(DEFAULT_TEMPLATES))


def create_pipeline(
    settings: Settings | None = None,
    *,
    repository: "IStoryRepository | None" = None,
) -> StoryPipeline:
    """Create a new pipeline instance with injected dependencies.

    Args:
        settings: Optional settings override.
        repository: Optional repository override.

    Returns:
        Configured StoryPipeline instance.
    """
    settings = settings or get_settings()
    is_debug = settings.execution_profile == ExecutionProfile.DEBUG
    logger.info(
        "Creating pipeline with profile: %s (debug=%s)",
        settings.execution_profile.value,
        is_debug,
    )

    repository = repository or create_repository()
    llm_client = _create_llm_client(settings, is_debug)
    image_generator = _create_image_generator(settings, is_debug)
    voice = _create_voice_synthesizer(settings, is_debug)
    worker, asset_store = _create_media_backends(settings, is_debug)

    return StoryPipeline(
        settings=settings,
        repository=repository,
        source_loader=SourceLoader(settings),
        narrative_writer=NarrativeWriterAgent(
            llm_client=llm_client,
            max_retries=settings.max_retries,
            max_tokens=settings.llm_narrative_max_tokens,
        ),
        scene_splitter=SceneSplitterAgent(
            llm_client=llm_client,
            max_retries=settings.max_retries,
            max_tokens=settings.llm_max_tokens,
        ),
        shot_planner=ShotPlannerAgent(
            llm_client=llm_client,
            max_retries=settings.max_retries,
            max_tokens=settings.llm_max_tokens,
        ),
        shot_media=ShotMediaAgent(
            repository=repository,
            llm_client=llm_client,
            image_generator=image_generator,
            voice_synthesizer=voice,
            asset_store=asset_store,
            video_worker=worker,
            settings=settings,
        ),
        compositor=VideoCompositorAgent(
            repository=repository,
            video_worker=worker,
            settings=settings,
        ),
    )


def get_pipeline() -> StoryPipeline:
    """Get the singleton pipeline instance.

    Creates a new instance if one doesn't exist.

    Returns:
        The pipeline instance.
    """
    global _pipeline_instance
    if _pipeline_instance is None:
        _pipeline_instance = create_pipeline()
    return _pipeline_instance


def reset_pipeline() -> None:
    """Reset the singleton pipeline instance.

    Useful for testing or reconfiguration.
    """
    global _pipeline_instance
    _pipeline_instance = None
    logger.info("Pipeline instance reset")

"""Pytest configuration and shared fixtures."""

import random

import pytest

from config.settings import ExecutionProfile, Settings
from core.agents.narrative_writer import NarrativeWriterAgent
from core.agents.scene_splitter import SceneSplitterAgent
from core.agents.shot_media import ShotMediaAgent
from core.agents.shot_planner import ShotPlannerAgent
from core.agents.video_compositor import VideoCompositorAgent
from core.models import MediaStatus, Scene, Shot, Story, StoryTemplate
from core.orchestrator import StoryPipeline
from core.services.imaging import MockImageGenerator
from core.services.llm_client import MockLLMClient
from core.services.repository import InMemoryStoryRepository
from core.services.source_loader import SourceLoader
from core.services.storage import InMemoryAssetStore
from core.services.video_worker import MockVideoWorker
from core.services.voice import MockVoiceSynthesizer

SAMPLE_SOURCE = (
    "An old lighthouse keeper retires after forty years. On his last night he "
    "climbs the tower one final time and lights the lamp for a ship that never comes."
)


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with debug profile and no retries."""
    return Settings(
        _env_file=None,
        execution_profile=ExecutionProfile.DEBUG,
        llm_api_key="",
        max_retries=0,
        incremental_poll_interval=0.0,
    )


@pytest.fixture
def template() -> StoryTemplate:
    """Provide a portrait template with captions enabled."""
    return StoryTemplate(id="tpl-test", name="Test template", width=1080, height=1920)


@pytest.fixture
def repository(template: StoryTemplate) -> InMemoryStoryRepository:
    return InMemoryStoryRepository(templates=[template])


@pytest.fixture
def llm_client() -> MockLLMClient:
    return MockLLMClient(scene_count=2, shots_per_scene=2)


@pytest.fixture
def image_generator() -> MockImageGenerator:
    return MockImageGenerator()


@pytest.fixture
def voice_synthesizer() -> MockVoiceSynthesizer:
    return MockVoiceSynthesizer()


@pytest.fixture
def asset_store() -> InMemoryAssetStore:
    return InMemoryAssetStore()


@pytest.fixture
def video_worker() -> MockVideoWorker:
    return MockVideoWorker()


@pytest.fixture
def shot_media(
    repository: InMemoryStoryRepository,
    llm_client: MockLLMClient,
    image_generator: MockImageGenerator,
    voice_synthesizer: MockVoiceSynthesizer,
    asset_store: InMemoryAssetStore,
    video_worker: MockVideoWorker,
    test_settings: Settings,
) -> ShotMediaAgent:
    """Provide a shot media agent wired to the mock services."""
    return ShotMediaAgent(
        repository=repository,
        llm_client=llm_client,
        image_generator=image_generator,
        voice_synthesizer=voice_synthesizer,
        asset_store=asset_store,
        video_worker=video_worker,
        settings=test_settings,
        rng=random.Random(7),
    )


@pytest.fixture
def compositor(
    repository: InMemoryStoryRepository,
    video_worker: MockVideoWorker,
    test_settings: Settings,
) -> VideoCompositorAgent:
    return VideoCompositorAgent(repository=repository, video_worker=video_worker, settings=test_settings)


@pytest.fixture
def pipeline(
    test_settings: Settings,
    repository: InMemoryStoryRepository,
    llm_client: MockLLMClient,
    shot_media: ShotMediaAgent,
    compositor: VideoCompositorAgent,
) -> StoryPipeline:
    """Provide a pipeline wired entirely to mock services."""
    return StoryPipeline(
        settings=test_settings,
        repository=repository,
        source_loader=SourceLoader(test_settings),
        narrative_writer=NarrativeWriterAgent(llm_client=llm_client, max_retries=0),
        scene_splitter=SceneSplitterAgent(llm_client=llm_client, max_retries=0),
        shot_planner=ShotPlannerAgent(llm_client=llm_client, max_retries=0),
        shot_media=shot_media,
        compositor=compositor,
    )


@pytest.fixture
def story_factory(repository: InMemoryStoryRepository, template: StoryTemplate):
    """Persist a story, optionally with scenes and shots.

    ``layout`` lists the number of shots per scene.
    """

    async def create(
        layout: list[int] | None = None,
        *,
        shot_status: MediaStatus = MediaStatus.PENDING,
        **story_fields,
    ) -> tuple[Story, list[Scene], list[Shot]]:
        story = await repository.create_story(
            Story(
                name="Test story",
                template_id=template.id,
                source_content=SAMPLE_SOURCE,
                **story_fields,
            )
        )
        scenes = await repository.create_scenes([
            Scene(story_id=story.id, name=f"Scene {i}", script=f"Scene {i} script", sort_order=i)
            for i in range(1, len(layout or []) + 1)
        ])
        shots: list[Shot] = []
        for scene, count in zip(scenes, layout or [], strict=True):
            shots += await repository.create_shots([
                Shot(
                    scene_id=scene.id,
                    story_id=story.id,
                    script=f"Shot {j} of scene {scene.sort_order} narrates a quiet harbor",
                    sort_order=j,
                    **_stage_fields(shot_status, f"{scene.sort_order}-{j}"),
                )
                for j in range(1, count + 1)
            ])
        return story, scenes, shots

    return create


def _stage_fields(status: MediaStatus, key: str) -> dict:
    if status != MediaStatus.COMPLETED:
        return {}
    return {
        "image_status": status,
        "audio_status": status,
        "video_status": status,
        "final_status": status,
        "image_url": f"memory://assets/img-{key}.png",
        "audio_url": f"memory://assets/audio-{key}.mp3",
        "audio_duration": 4.0,
        "video_url": f"mock://videos/kb-{key}.mp4",
        "final_video_url": f"mock://videos/final-{key}.mp4",
    }

"""Unit tests for service implementations."""

import base64
import json
from types import SimpleNamespace

import httpx
import pytest
from unittest.mock import AsyncMock

from config.settings import Settings
from core.constants import FieldNames
from core.exceptions import (
    AssetStoreError,
    ImageGenerationError,
    NotFoundError,
    TextGenerationError,
    UnsupportedSourceError,
    VideoWorkerError,
    VoiceSynthesisError,
)
from core.models import KenBurnsEffect, Scene, Shot, SourceType, Story, Transition
from core.protocols.video_worker import CaptionStyle
from core.services.imaging import MockImageGenerator, TogetherImageGenerator
from core.services.llm_client import MockLLMClient, TogetherLLMClient
from core.services.repository import InMemoryStoryRepository
from core.services.source_loader import SourceLoader, html_to_text
from core.services.storage import InMemoryAssetStore, WorkerAssetStore
from core.services.video_worker import HttpVideoWorker
from core.services.voice import ElevenLabsVoiceSynthesizer, MockVoiceSynthesizer


class WorkerStub:
    """Records worker requests and answers from a canned response."""

    def __init__(self, status_code: int = 200, payload: dict | None = None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {"videoUrl": "https://cdn/out.mp4"}
        self.requests: list[tuple[str, dict]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.url.path, json.loads(request.content)))
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class TestMockLLMClient:
    """Tests for MockLLMClient."""

    @pytest.mark.asyncio
    async def test_returns_scene_response_for_scene_prompt(self) -> None:
        client = MockLLMClient(scene_count=3)
        response = await client.complete(
            system_prompt="You're a writer.",
            user_prompt='Story text\n\nRespond with {"scenes": [...]}',
            response_format={"type": "json_object"},
        )

        data = json.loads(response)
        assert len(data[FieldNames.SCENES]) == 3
        assert FieldNames.SCRIPT in data[FieldNames.SCENES][0][FieldNames.SCENE]

    @pytest.mark.asyncio
    async def test_returns_shot_response_for_shot_prompt(self) -> None:
        client = MockLLMClient(shots_per_scene=4)
        response = await client.complete(
            system_prompt="You're a writer.",
            user_prompt='Scene text\n\nRespond with {"shots": [...]}',
            response_format={"type": "json_object"},
        )

        data = json.loads(response)
        assert len(data[FieldNames.SHOTS]) == 4
        assert data[FieldNames.SHOTS][0][FieldNames.SHOT][FieldNames.SCRIPT].startswith("Shot 1")

    @pytest.mark.asyncio
    async def test_returns_narrative_without_response_format(self) -> None:
        client = MockLLMClient()
        narrative = await client.complete(system_prompt="Writer", user_prompt="Source\n\nRewrite it.")
        assert narrative.startswith("Source")
        assert len(client.calls) == 1


class TestTogetherLLMClient:
    """Tests for TogetherLLMClient."""

    @pytest.mark.asyncio
    async def test_raises_without_api_key(self, test_settings: Settings) -> None:
        client = TogetherLLMClient(test_settings)

        with pytest.raises(TextGenerationError, match="API key not configured"):
            await client.complete(system_prompt="Test", user_prompt="Test")

    @pytest.mark.asyncio
    async def test_makes_correct_api_call(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"llm_api_key": "test_key"})
        client = TogetherLLMClient(settings)
        create = AsyncMock(
            return_value=SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content="Test response"))]
            )
        )
        client._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

        result = await client.complete(
            system_prompt="System",
            user_prompt="User",
            temperature=0.5,
            response_format={"type": "json_object"},
        )

        assert result == "Test response"
        kwargs = create.call_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "System"},
            {"role": "user", "content": "User"},
        ]
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_tokens"] == settings.llm_max_tokens
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_wraps_api_errors(self, test_settings: Settings) -> None:
        client = TogetherLLMClient(test_settings.model_copy(update={"llm_api_key": "test_key"}))
        failing = AsyncMock(side_effect=RuntimeError("rate limited"))
        client._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=failing)))

        with pytest.raises(TextGenerationError, match="rate limited"):
            await client.complete(system_prompt="S", user_prompt="U")


class TestImageGenerators:
    """Tests for image generators."""

    @pytest.mark.asyncio
    async def test_mock_is_deterministic(self) -> None:
        generator = MockImageGenerator()
        first = await generator.generate(prompt="harbor", size="1024x1792")
        second = await generator.generate(prompt="harbor", size="1024x1792")
        assert first == second
        assert first.startswith("mock://images/")

    @pytest.mark.asyncio
    async def test_invalid_size_rejected(self) -> None:
        with pytest.raises(ImageGenerationError):
            await MockImageGenerator().generate(prompt="harbor", size="huge")

    @pytest.mark.asyncio
    async def test_together_request(self, test_settings: Settings) -> None:
        generator = TogetherImageGenerator(test_settings.model_copy(update={"llm_api_key": "k"}))
        create = AsyncMock(return_value=SimpleNamespace(data=[SimpleNamespace(url="https://img/1.png")]))
        generator._client = SimpleNamespace(images=SimpleNamespace(generate=create))

        url = await generator.generate(prompt="harbor", size="1792x1024")

        assert url == "https://img/1.png"
        kwargs = create.call_args.kwargs
        assert (kwargs["width"], kwargs["height"], kwargs["n"]) == (1792, 1024, 1)


class TestVoiceSynthesizers:
    """Tests for voice synthesizers."""

    @pytest.mark.asyncio
    async def test_elevenlabs_requires_key(self, test_settings: Settings) -> None:
        synthesizer = ElevenLabsVoiceSynthesizer(test_settings)
        with pytest.raises(VoiceSynthesisError, match="API key not configured"):
            await synthesizer.synthesize(text="Hello there", voice_id="voice")

    @pytest.mark.asyncio
    async def test_elevenlabs_streams_sdk_audio(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"voice_api_key": "key"})
        synthesizer = ElevenLabsVoiceSynthesizer(settings)
        requests = []

        async def convert(**kwargs):
            requests.append(kwargs)
            for chunk in (b"ID3", b"frames"):
                yield chunk

        synthesizer._client = SimpleNamespace(text_to_speech=SimpleNamespace(convert=convert))

        audio = await synthesizer.synthesize(text="Hello there", voice_id="voice-1")

        assert audio.data == b"ID3frames"
        assert audio.content_type == "audio/mpeg"
        assert audio.duration_seconds is None
        (request,) = requests
        assert request["voice_id"] == "voice-1"
        assert request["model_id"] == settings.voice_model
        assert request["voice_settings"].stability == settings.voice_stability

    @pytest.mark.asyncio
    async def test_elevenlabs_sdk_error_is_wrapped(self, test_settings: Settings) -> None:
        synthesizer = ElevenLabsVoiceSynthesizer(test_settings.model_copy(update={"voice_api_key": "key"}))

        async def convert(**kwargs):
            raise RuntimeError("quota exceeded")
            yield b""

        synthesizer._client = SimpleNamespace(text_to_speech=SimpleNamespace(convert=convert))

        with pytest.raises(VoiceSynthesisError, match="quota exceeded"):
            await synthesizer.synthesize(text="Hello there", voice_id="voice-1")

    @pytest.mark.asyncio
    async def test_mock_produces_wav(self) -> None:
        audio = await MockVoiceSynthesizer().synthesize(text="one two three four five", voice_id="v")
        assert audio.content_type == "audio/wav"
        assert audio.data.startswith(b"RIFF")
        assert audio.duration_seconds is None

    @pytest.mark.asyncio
    async def test_mock_can_report_duration(self) -> None:
        synthesizer = MockVoiceSynthesizer(report_duration=True)
        audio = await synthesizer.synthesize(text="one two three four five six seven", voice_id="v")
        assert audio.duration_seconds == pytest.approx(2.8)


class TestHttpVideoWorker:
    """Tests for the HTTP video worker client."""

    @pytest.mark.asyncio
    async def test_ken_burns_wire_format(self, test_settings: Settings) -> None:
        stub = WorkerStub()
        worker = HttpVideoWorker(test_settings, transport=stub.transport)

        url = await worker.ken_burns(
            image_url="https://img/1.png",
            duration=4.0,
            effect=KenBurnsEffect.PAN_LEFT,
            width=1080,
            height=1920,
        )

        assert url == "https://cdn/out.mp4"
        path, body = stub.requests[0]
        assert path == "/api/video/ken-burns"
        assert body == {
            "imageUrl": "https://img/1.png",
            "duration": 4.0,
            "effect": "pan-left",
            "width": 1080,
            "height": 1920,
        }

    @pytest.mark.asyncio
    async def test_concatenate_and_captions_bodies(self, test_settings: Settings) -> None:
        stub = WorkerStub()
        worker = HttpVideoWorker(test_settings, transport=stub.transport)

        await worker.concatenate(video_urls=["a.mp4", "b.mp4"], transition=Transition.FADE)
        await worker.add_captions(
            video_url="final.mp4",
            srt_content="1\n00:00:00,000 --> 00:00:02,000\nHi\n",
            style=CaptionStyle(font_name="Arial", font_size=32, font_color="white", position="bottom"),
        )

        (concat_path, concat_body), (caption_path, caption_body) = stub.requests
        assert concat_path == "/api/video/concatenate"
        assert concat_body == {"videoUrls": ["a.mp4", "b.mp4"], "transition": "fade"}
        assert caption_path == "/api/video/captions"
        assert caption_body["style"] == {
            "fontName": "Arial",
            "fontSize": 32,
            "fontColor": "white",
            "position": "bottom",
        }

    @pytest.mark.asyncio
    async def test_error_field_is_surfaced(self, test_settings: Settings) -> None:
        stub = WorkerStub(status_code=500, payload={"error": "ffmpeg crashed"})
        worker = HttpVideoWorker(test_settings, transport=stub.transport)

        with pytest.raises(VideoWorkerError, match="ffmpeg crashed") as exc_info:
            await worker.mix_audio(video_url="v.mp4", audio_url="a.mp3")

        assert exc_info.value.status_code == 500
        assert exc_info.value.operation == "mix-audio"

    @pytest.mark.asyncio
    async def test_missing_video_url(self, test_settings: Settings) -> None:
        stub = WorkerStub(payload={})
        worker = HttpVideoWorker(test_settings, transport=stub.transport)

        with pytest.raises(VideoWorkerError, match="No video URL"):
            await worker.mix_audio(video_url="v.mp4", audio_url="a.mp3")


class TestAssetStores:
    """Tests for asset stores."""

    @pytest.mark.asyncio
    async def test_worker_store_routes_by_content_type(self, test_settings: Settings) -> None:
        stub = WorkerStub(payload={"imageUrl": "https://cdn/i.png", "audioUrl": "https://cdn/a.mp3"})
        store = WorkerAssetStore(
            test_settings, worker=HttpVideoWorker(test_settings, transport=stub.transport)
        )

        image_url = await store.put(data=b"png", filename="shot-1.png", content_type="image/png")
        audio_url = await store.put(data=b"mp3", filename="shot-1.mp3", content_type="audio/mpeg")

        assert (image_url, audio_url) == ("https://cdn/i.png", "https://cdn/a.mp3")
        (image_path, image_body), (audio_path, audio_body) = stub.requests
        assert image_path == "/api/video/upload-image"
        assert base64.b64decode(image_body["imageBase64"]) == b"png"
        assert audio_path == "/api/video/upload-audio"
        assert audio_body["filename"] == "shot-1.mp3"
        assert audio_body["contentType"] == "audio/mpeg"

    @pytest.mark.asyncio
    async def test_worker_store_wraps_upload_errors(self, test_settings: Settings) -> None:
        stub = WorkerStub(status_code=413, payload={"error": "too large"})
        store = WorkerAssetStore(
            test_settings, worker=HttpVideoWorker(test_settings, transport=stub.transport)
        )

        with pytest.raises(AssetStoreError, match="too large"):
            await store.put(data=b"x", filename="shot-1.png", content_type="image/png")

    @pytest.mark.asyncio
    async def test_in_memory_store(self) -> None:
        store = InMemoryAssetStore()
        url = await store.put(data=b"abc", filename="shot-1.png", content_type="image/png")

        assert url == "memory://assets/shot-1.png"
        assert await store.fetch(url) == b"abc"
        assert await store.fetch("mock://images/x.png")
        with pytest.raises(AssetStoreError):
            await store.fetch("https://elsewhere/x.png")


class TestSourceLoader:
    """Tests for SourceLoader."""

    def test_html_to_text(self) -> None:
        markup = "<html><script>var x;</script><p>Hello &amp; <b>welcome</b></p></html>"
        assert html_to_text(markup) == "Hello & welcome"

    @pytest.mark.asyncio
    async def test_text_passthrough(self, test_settings: Settings) -> None:
        loader = SourceLoader(test_settings)
        assert await loader.load("  A story.  ", SourceType.TEXT) == "A story."

    @pytest.mark.asyncio
    async def test_url_is_fetched_and_stripped(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                html="<h1>Title</h1><p>Body text</p>",
            )

        loader = SourceLoader(test_settings, transport=httpx.MockTransport(handler))
        assert await loader.load("https://example.com/post", SourceType.URL) == "Title Body text"

    @pytest.mark.asyncio
    async def test_untranscribed_audio_rejected(self, test_settings: Settings) -> None:
        loader = SourceLoader(test_settings)
        with pytest.raises(UnsupportedSourceError):
            await loader.load("https://example.com/a.mp3", SourceType.AUDIO)

    @pytest.mark.asyncio
    async def test_failed_fetch(self, test_settings: Settings) -> None:
        loader = SourceLoader(
            test_settings, transport=httpx.MockTransport(lambda request: httpx.Response(404))
        )
        with pytest.raises(UnsupportedSourceError):
            await loader.load("https://example.com/missing", SourceType.URL)


class TestInMemoryStoryRepository:
    """Tests for the in-memory repository."""

    @pytest.mark.asyncio
    async def test_reads_are_sort_ordered(self) -> None:
        repo = InMemoryStoryRepository()
        story = await repo.create_story(Story(name="s", template_id="t", source_content="x"))
        second, first = await repo.create_scenes([
            Scene(story_id=story.id, script="b", sort_order=2),
            Scene(story_id=story.id, script="a", sort_order=1),
        ])
        await repo.create_shots([
            Shot(scene_id=second.id, story_id=story.id, script="2-1", sort_order=1),
            Shot(scene_id=first.id, story_id=story.id, script="1-2", sort_order=2),
            Shot(scene_id=first.id, story_id=story.id, script="1-1", sort_order=1),
        ])

        assert [s.script for s in await repo.get_scenes(story.id)] == ["a", "b"]
        assert [s.script for s in await repo.get_shots_by_story(story.id)] == ["1-1", "1-2", "2-1"]

    @pytest.mark.asyncio
    async def test_returns_copies(self) -> None:
        repo = InMemoryStoryRepository()
        story = await repo.create_story(Story(name="s", template_id="t", source_content="x"))
        story.name = "changed"
        assert (await repo.get_story(story.id)).name == "s"

    @pytest.mark.asyncio
    async def test_update_missing_raises(self) -> None:
        with pytest.raises(NotFoundError):
            await InMemoryStoryRepository().update_story("missing", progress=5)

    @pytest.mark.asyncio
    async def test_delete_cascades(self) -> None:
        repo = InMemoryStoryRepository()
        story = await repo.create_story(Story(name="s", template_id="t", source_content="x"))
        (scene,) = await repo.create_scenes([Scene(story_id=story.id, script="a", sort_order=1)])
        (shot,) = await repo.create_shots([
            Shot(scene_id=scene.id, story_id=story.id, script="1", sort_order=1)
        ])

        await repo.delete_story(story.id)

        assert await repo.get_story(story.id) is None
        assert await repo.get_scenes(story.id) == []
        assert await repo.get_shot(shot.id) is None

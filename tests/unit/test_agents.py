"""Unit tests for the text-generation agents."""

import json

import pytest
from pydantic import BaseModel
from unittest.mock import AsyncMock

from core.agents.base import BaseAgent
from core.agents.narrative_writer import NarrativeRequest, NarrativeWriterAgent
from core.agents.scene_splitter import SceneRequest, SceneSplitterAgent
from core.agents.shot_planner import ShotRequest, ShotPlannerAgent
from core.agents.structured import extract_json, parse_items
from core.exceptions import (
    LLMParseError,
    NarrativeGenerationFailed,
    RetryExhaustedError,
    StagePreconditionError,
)
from core.models import SceneDraft, ShotDraft, StoryTemplate


class Echo(BaseModel):
    text: str


class ConcreteTestAgent(BaseAgent[Echo, str]):
    """Concrete implementation for testing BaseAgent."""

    def __init__(self, *, max_retries: int = 2, should_fail: int = 0, error: Exception | None = None):
        super().__init__(max_retries=max_retries)
        self.should_fail = should_fail
        self.error = error
        self.attempt_count = 0

    async def _execute(self, input_data: Echo) -> str:
        self.attempt_count += 1
        if self.attempt_count <= self.should_fail:
            raise self.error or ValueError(f"Simulated failure {self.attempt_count}")
        return f"Success: {input_data.text}"


class TestBaseAgent:
    """Tests for BaseAgent class."""

    @pytest.mark.asyncio
    async def test_successful_execution(self) -> None:
        agent = ConcreteTestAgent(max_retries=2, should_fail=0)
        assert await agent.run(Echo(text="hi")) == "Success: hi"
        assert agent.attempt_count == 1

    @pytest.mark.asyncio
    async def test_retry_then_success(self) -> None:
        agent = ConcreteTestAgent(max_retries=2, should_fail=1)
        assert await agent.run(Echo(text="hi")) == "Success: hi"
        assert agent.attempt_count == 2

    @pytest.mark.asyncio
    async def test_all_retries_exhausted(self) -> None:
        agent = ConcreteTestAgent(max_retries=2, should_fail=5)
        with pytest.raises(RetryExhaustedError) as exc_info:
            await agent.run(Echo(text="hi"))
        assert agent.attempt_count == 3  # 1 initial + 2 retries
        assert exc_info.value.attempts == 3
        assert "3 attempts failed" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_precondition_errors_are_not_retried(self) -> None:
        agent = ConcreteTestAgent(
            max_retries=3,
            should_fail=5,
            error=StagePreconditionError("not ready"),
        )
        with pytest.raises(StagePreconditionError):
            await agent.run(Echo(text="hi"))
        assert agent.attempt_count == 1


class TestStructuredParsing:
    """Tests for JSON extraction and item parsing."""

    def test_extract_json_from_code_block(self) -> None:
        response = 'Here you go:\n```json\n{"scenes": []}\n```'
        assert extract_json(response) == '{"scenes": []}'

    def test_extract_json_from_surrounding_text(self) -> None:
        response = 'Sure! {"shots": [{"a": {"b": 1}}]} Hope that helps.'
        assert json.loads(extract_json(response)) == {"shots": [{"a": {"b": 1}}]}

    def test_parse_nested_and_flat_items(self) -> None:
        response = json.dumps({
            "scenes": [
                {"scene": {"name": "One", "script": "First"}},
                {"name": "Two", "script": "Second"},
            ]
        })
        items = parse_items(response, collection_key="scenes", item_key="scene", model=SceneDraft)
        assert [(i.name, i.script) for i in items] == [("One", "First"), ("Two", "Second")]

    def test_invalid_items_are_dropped(self) -> None:
        response = json.dumps({"shots": [{"shot": {"script": ""}}, {"shot": {"script": "ok"}}, 42]})
        items = parse_items(response, collection_key="shots", item_key="shot", model=ShotDraft)
        assert [i.script for i in items] == ["ok"]

    @pytest.mark.parametrize("response", ["", "   ", "not json at all", '{"other": []}', "[1, 2]"])
    def test_unusable_responses_raise(self, response: str) -> None:
        with pytest.raises(LLMParseError):
            parse_items(response, collection_key="scenes", item_key="scene", model=SceneDraft)


class TestNarrativeWriterAgent:
    """Tests for NarrativeWriterAgent."""

    @pytest.mark.asyncio
    async def test_sends_source_then_instruction(self, template: StoryTemplate) -> None:
        mock_llm = AsyncMock()
        mock_llm.complete.return_value = "  A narrative.  "
        custom = template.model_copy(update={"story_user_prompt": "Make it spooky."})

        agent = NarrativeWriterAgent(llm_client=mock_llm, max_retries=0, max_tokens=1234)
        result = await agent.run(NarrativeRequest(source_text="Source text", template=custom))

        assert result == "A narrative."
        kwargs = mock_llm.complete.call_args.kwargs
        assert kwargs["user_prompt"] == "Source text\n\nMake it spooky."
        assert kwargs["max_tokens"] == 1234
        assert kwargs["system_prompt"]

    @pytest.mark.asyncio
    async def test_default_prompts_used_when_template_has_none(self, template: StoryTemplate) -> None:
        mock_llm = AsyncMock()
        mock_llm.complete.return_value = "Narrative"

        agent = NarrativeWriterAgent(llm_client=mock_llm, max_retries=0)
        await agent.run(NarrativeRequest(source_text="Source", template=template))

        user_prompt = mock_llm.complete.call_args.kwargs["user_prompt"]
        assert user_prompt.startswith("Source\n\n")
        assert "narrative" in user_prompt.lower()

    @pytest.mark.asyncio
    async def test_empty_narrative_fails(self, template: StoryTemplate) -> None:
        mock_llm = AsyncMock()
        mock_llm.complete.return_value = "   "

        agent = NarrativeWriterAgent(llm_client=mock_llm, max_retries=1)
        with pytest.raises(RetryExhaustedError) as exc_info:
            await agent.run(NarrativeRequest(source_text="Source", template=template))

        assert isinstance(exc_info.value.__cause__, NarrativeGenerationFailed)
        assert mock_llm.complete.await_count == 2


class TestSceneSplitterAgent:
    """Tests for SceneSplitterAgent."""

    @pytest.fixture
    def mock_llm(self) -> AsyncMock:
        """Create a mock LLM client."""
        return AsyncMock()

    @pytest.mark.asyncio
    async def test_successful_scene_split(self, mock_llm: AsyncMock, template: StoryTemplate) -> None:
        mock_llm.complete.return_value = json.dumps({
            "scenes": [
                {"scene": {"name": "Harbor", "script": "The harbor at dawn."}},
                {"scene": {"name": "Tower", "script": "He climbs the tower."}},
            ]
        })

        agent = SceneSplitterAgent(llm_client=mock_llm, max_retries=0)
        scenes = await agent.run(SceneRequest(narrative="A story.", template=template))

        assert [s.name for s in scenes] == ["Harbor", "Tower"]
        kwargs = mock_llm.complete.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["user_prompt"].startswith("A story.\n\n")

    @pytest.mark.asyncio
    async def test_template_scene_prompt_overrides_default(
        self, mock_llm: AsyncMock, template: StoryTemplate
    ) -> None:
        mock_llm.complete.return_value = '{"scenes": [{"scene": {"name": "A", "script": "B"}}]}'
        custom = template.model_copy(update={"scene_prompt": "Split it.", "shot_system_prompt": "You split."})

        agent = SceneSplitterAgent(llm_client=mock_llm, max_retries=0)
        await agent.run(SceneRequest(narrative="Story", template=custom))

        kwargs = mock_llm.complete.call_args.kwargs
        assert kwargs["user_prompt"] == "Story\n\nSplit it."
        assert kwargs["system_prompt"] == "You split."

    @pytest.mark.asyncio
    async def test_no_scenes_is_an_error(self, mock_llm: AsyncMock, template: StoryTemplate) -> None:
        mock_llm.complete.return_value = '{"scenes": []}'

        agent = SceneSplitterAgent(llm_client=mock_llm, max_retries=0)
        with pytest.raises(RetryExhaustedError) as exc_info:
            await agent.run(SceneRequest(narrative="Story", template=template))
        assert isinstance(exc_info.value.__cause__, LLMParseError)

    @pytest.mark.asyncio
    async def test_retry_on_parse_error(self, mock_llm: AsyncMock, template: StoryTemplate) -> None:
        mock_llm.complete.side_effect = [
            "Invalid JSON response",
            '{"scenes": [{"scene": {"name": "A", "script": "Recovered"}}]}',
        ]

        agent = SceneSplitterAgent(llm_client=mock_llm, max_retries=1)
        scenes = await agent.run(SceneRequest(narrative="Story", template=template))

        assert scenes[0].script == "Recovered"
        assert mock_llm.complete.await_count == 2


class TestShotPlannerAgent:
    """Tests for ShotPlannerAgent."""

    @pytest.mark.asyncio
    async def test_successful_shot_planning(self, template: StoryTemplate) -> None:
        mock_llm = AsyncMock()
        mock_llm.complete.return_value = json.dumps({
            "shots": [
                {"shot": {"name": "Wide", "script": "The sea is calm."}},
                {"shot": {"name": "Close", "script": "His hands shake."}},
            ]
        })

        agent = ShotPlannerAgent(llm_client=mock_llm, max_retries=0)
        shots = await agent.run(ShotRequest(scene_script="Scene script", template=template))

        assert [s.script for s in shots] == ["The sea is calm.", "His hands shake."]
        assert mock_llm.complete.call_args.kwargs["user_prompt"].startswith("Scene script\n\n")

    @pytest.mark.asyncio
    async def test_empty_shot_list_is_valid(self, template: StoryTemplate) -> None:
        mock_llm = AsyncMock()
        mock_llm.complete.return_value = '{"shots": []}'

        agent = ShotPlannerAgent(llm_client=mock_llm, max_retries=0)
        assert await agent.run(ShotRequest(scene_script="Scene", template=template)) == []

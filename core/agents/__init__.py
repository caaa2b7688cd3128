"""Agent classes for the faceless video pipeline."""

from core.agents.base import BaseAgent
from core.agents.narrative_writer import NarrativeWriterAgent
from core.agents.scene_splitter import SceneSplitterAgent
from core.agents.shot_media import ShotMediaAgent, estimate_duration
from core.agents.shot_planner import ShotPlannerAgent
from core.agents.video_compositor import VideoCompositorAgent

__all__ = [
    "BaseAgent",
    "NarrativeWriterAgent",
    "SceneSplitterAgent",
    "ShotPlannerAgent",
    "ShotMediaAgent",
    "VideoCompositorAgent",
    "estimate_duration",
]

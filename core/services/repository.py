"""In-memory story repository."""

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from core.exceptions import NotFoundError
from core.models import Scene, Shot, Story, StoryTemplate

logger = logging.getLogger(__name__)


class InMemoryStoryRepository:
    """Story/Scene/Shot persistence held in process memory.

    Records are copied on the way in and out so callers always work on a
    snapshot and must re-read to observe changes, as with a real database.
    A lock guards the tables because full runs execute on worker threads.
    """

    def __init__(self, templates: list[StoryTemplate] | None = None):
        self._lock = threading.RLock()
        self._templates: dict[str, StoryTemplate] = {t.id: t for t in templates or []}
        self._stories: dict[str, Story] = {}
        self._scenes: dict[str, Scene] = {}
        self._shots: dict[str, Shot] = {}

    # ==================== Templates ====================

    async def get_template(self, template_id: str) -> StoryTemplate | None:
        with self._lock:
            return self._templates.get(template_id)

    async def list_templates(self, *, active_only: bool = True) -> list[StoryTemplate]:
        with self._lock:
            templates = [t for t in self._templates.values() if t.active or not active_only]
        return sorted(templates, key=lambda t: t.name)

    async def save_template(self, template: StoryTemplate) -> StoryTemplate:
        with self._lock:
            self._templates[template.id] = template
        return template

    # ==================== Stories ====================

    async def create_story(self, story: Story) -> Story:
        with self._lock:
            self._stories[story.id] = story.model_copy(deep=True)
        logger.debug("Created story %s", story.id)
        return story.model_copy(deep=True)

    async def get_story(self, story_id: str) -> Story | None:
        with self._lock:
            story = self._stories.get(story_id)
            return story.model_copy(deep=True) if story else None

    async def list_stories(self, *, user_id: str | None = None, limit: int = 20) -> list[Story]:
        with self._lock:
            stories = [
                s.model_copy(deep=True)
                for s in self._stories.values()
                if user_id is None or s.user_id == user_id
            ]
        stories.sort(key=lambda s: s.created_at, reverse=True)
        return stories[:limit]

    async def update_story(self, story_id: str, **changes: Any) -> Story:
        with self._lock:
            story = self._stories.get(story_id)
            if story is None:
                raise NotFoundError(f"Story not found: {story_id}")
            updated = story.model_copy(update={**changes, "updated_at": _utcnow()})
            self._stories[story_id] = updated
            return updated.model_copy(deep=True)

    async def delete_story(self, story_id: str) -> None:
        with self._lock:
            if self._stories.pop(story_id, None) is None:
                raise NotFoundError(f"Story not found: {story_id}")
            scene_ids = [sid for sid, s in self._scenes.items() if s.story_id == story_id]
            for scene_id in scene_ids:
                del self._scenes[scene_id]
            shot_ids = [sid for sid, s in self._shots.items() if s.story_id == story_id]
            for shot_id in shot_ids:
                del self._shots[shot_id]
        logger.info("Deleted story %s (%d scenes, %d shots)", story_id, len(scene_ids), len(shot_ids))

    # ==================== Scenes ====================

    async def create_scenes(self, scenes: list[Scene]) -> list[Scene]:
        with self._lock:
            for scene in scenes:
                self._scenes[scene.id] = scene.model_copy(deep=True)
        return [s.model_copy(deep=True) for s in scenes]

    async def get_scenes(self, story_id: str) -> list[Scene]:
        with self._lock:
            scenes = [s.model_copy(deep=True) for s in self._scenes.values() if s.story_id == story_id]
        return sorted(scenes, key=lambda s: s.sort_order)

    async def update_scene(self, scene_id: str, **changes: Any) -> Scene:
        with self._lock:
            scene = self._scenes.get(scene_id)
            if scene is None:
                raise NotFoundError(f"Scene not found: {scene_id}")
            updated = scene.model_copy(update=changes)
            self._scenes[scene_id] = updated
            return updated.model_copy(deep=True)

    # ==================== Shots ====================

    async def create_shots(self, shots: list[Shot]) -> list[Shot]:
        with self._lock:
            for shot in shots:
                self._shots[shot.id] = shot.model_copy(deep=True)
        return [s.model_copy(deep=True) for s in shots]

    async def get_shot(self, shot_id: str) -> Shot | None:
        with self._lock:
            shot = self._shots.get(shot_id)
            return shot.model_copy(deep=True) if shot else None

    async def get_shots_by_scene(self, scene_id: str) -> list[Shot]:
        with self._lock:
            shots = [s.model_copy(deep=True) for s in self._shots.values() if s.scene_id == scene_id]
        return sorted(shots, key=lambda s: s.sort_order)

    async def get_shots_by_story(self, story_id: str) -> list[Shot]:
        """Shots of a story in narrative order (scene order, then shot order)."""
        with self._lock:
            scene_order = {
                s.id: s.sort_order for s in self._scenes.values() if s.story_id == story_id
            }
            shots = [s.model_copy(deep=True) for s in self._shots.values() if s.story_id == story_id]
        return sorted(shots, key=lambda s: (scene_order.get(s.scene_id, 0), s.sort_order))

    async def update_shot(self, shot_id: str, **changes: Any) -> Shot:
        with self._lock:
            shot = self._shots.get(shot_id)
            if shot is None:
                raise NotFoundError(f"Shot not found: {shot_id}")
            updated = shot.model_copy(update=changes)
            self._shots[shot_id] = updated
            return updated.model_copy(deep=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

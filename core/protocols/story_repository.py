"""Protocol for persisted story state."""

from typing import Any, Protocol

from core.models import Scene, Shot, Story, StoryTemplate


class IStoryRepository(Protocol):
    """Interface for Story/Scene/Shot persistence.

    Reads of scenes and shots are always returned in ``sort_order``.
    Updates return the stored record after applying the changes.
    """

    async def get_template(self, template_id: str) -> StoryTemplate | None: ...

    async def list_templates(self, *, active_only: bool = True) -> list[StoryTemplate]: ...

    async def save_template(self, template: StoryTemplate) -> StoryTemplate: ...

    async def create_story(self, story: Story) -> Story: ...

    async def get_story(self, story_id: str) -> Story | None: ...

    async def list_stories(self, *, user_id: str | None = None, limit: int = 20) -> list[Story]: ...

    async def update_story(self, story_id: str, **changes: Any) -> Story: ...

    async def delete_story(self, story_id: str) -> None: ...

    async def create_scenes(self, scenes: list[Scene]) -> list[Scene]: ...

    async def get_scenes(self, story_id: str) -> list[Scene]: ...

    async def update_scene(self, scene_id: str, **changes: Any) -> Scene: ...

    async def create_shots(self, shots: list[Shot]) -> list[Shot]: ...

    async def get_shot(self, shot_id: str) -> Shot | None: ...

    async def get_shots_by_scene(self, scene_id: str) -> list[Shot]: ...

    async def get_shots_by_story(self, story_id: str) -> list[Shot]: ...

    async def update_shot(self, shot_id: str, **changes: Any) -> Shot: ...

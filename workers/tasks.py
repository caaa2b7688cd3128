"""Background driver for incremental story generation.

Full runs are scheduled by the API on FastAPI background tasks. This driver
calls ``continue_story`` until the story is done, for hosts that can only
afford one short unit of work per invocation.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from core.models import StepResult

if TYPE_CHECKING:
    from core.orchestrator import StoryPipeline

logger = logging.getLogger(__name__)


async def drive_incremental(
    pipeline: "StoryPipeline",
    story_id: str,
    *,
    poll_interval: float | None = None,
    max_steps: int | None = None,
) -> StepResult:
    """Call ``continue_story`` until it reports done or the step cap is hit.

    Args:
        pipeline: The configured pipeline instance.
        story_id: The story to advance.
        poll_interval: Delay between steps; defaults to the configured interval.
        max_steps: Step cap; defaults to the configured cap.

    Returns:
        The last step result.
    """
    settings = pipeline.settings
    interval = settings.incremental_poll_interval if poll_interval is None else poll_interval
    limit = max_steps or settings.incremental_max_steps

    result = StepResult(message="Not started")
    for step in range(1, limit + 1):
        result = await pipeline.continue_story(story_id)
        logger.info("Story %s step %d: %s", story_id, step, result.message)
        if result.done:
            return result
        if interval:
            await asyncio.sleep(interval)

    logger.warning("Story %s not finished after %d steps", story_id, limit)
    return result

"""FastAPI application main module."""

import logging
from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.dependencies import get_pipeline, get_settings, reset_pipeline
from app.schemas import (
    CreateStoryRequest,
    CreateStoryResponse,
    HealthResponse,
    SceneResponse,
    ShotResponse,
    StepResponse,
    StoryDetailResponse,
    StoryListResponse,
    StorySummaryResponse,
    TemplateListResponse,
    TemplateResponse,
)
from app.security import setup_rate_limiter, verify_api_key
from config.settings import Settings
from core.exceptions import FacelessVideoError, InvalidTransitionError, NotFoundError
from core.orchestrator import StoryPipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    settings = get_settings()
    logger.info("Starting faceless video API")
    logger.info("Execution Profile: %s", settings.execution_profile.value)
    logger.info("Text model: %s", settings.llm_model)
    logger.info("Video worker: %s", settings.video_worker_url)
    logger.info("API Key Auth: %s", "enabled" if settings.api_key_enabled else "disabled")

    _ = get_pipeline()
    logger.info("Pipeline initialized")

    yield

    logger.info("Shutting down faceless video API")
    reset_pipeline()


app = FastAPI(
    title="Faceless Video",
    description="Turn source text into a narrated, captioned short-form video",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

setup_rate_limiter(app)

_settings = get_settings()
if _settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("CORS enabled for origins: %s", _settings.cors_origins)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


@app.exception_handler(InvalidTransitionError)
async def conflict_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": exc.message})


@app.exception_handler(FacelessVideoError)
async def pipeline_error_handler(request: Request, exc: FacelessVideoError) -> JSONResponse:
    logger.error("Pipeline error: %s", exc.message)
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": exc.message})


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint redirect to docs."""
    return {"message": "Faceless Video API", "docs": "/docs"}


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        profile=settings.execution_profile.value,
    )


@app.get("/story-templates", response_model=TemplateListResponse, tags=["Stories"])
async def list_templates(
    pipeline: StoryPipeline = Depends(get_pipeline),
) -> TemplateListResponse:
    """List the active story templates."""
    templates = await pipeline.list_templates()
    return TemplateListResponse(
        templates=[
            TemplateResponse(
                id=t.id,
                name=t.name,
                description=t.description,
                width=t.width,
                height=t.height,
                aspect_ratio=t.aspect_ratio,
                captions_enabled=t.captions_enabled,
            )
            for t in templates
        ],
        total=len(templates),
    )


@app.post(
    "/stories",
    response_model=CreateStoryResponse,
    status_code=status.HTTP_202_ACCEPTED,
    tags=["Stories"],
)
async def create_story(
    request: CreateStoryRequest,
    background_tasks: BackgroundTasks,
    pipeline: StoryPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
    _api_key: str = Depends(verify_api_key),
) -> CreateStoryResponse:
    """Create a story and start generating its video.

    Returns immediately; poll ``GET /stories/{story_id}`` for progress.

    Raises:
        HTTPException: If the source exceeds the configured length.
    """
    if len(request.source_content) > settings.max_source_length:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Source content exceeds {settings.max_source_length} characters",
        )

    story = await pipeline.create_story(
        name=request.name,
        template_id=request.template_id,
        source_content=request.source_content,
        source_type=request.source_type,
        user_id=request.user_id,
    )
    logger.info("Created story: %s", story.id)

    background_tasks.add_task(_run_pipeline, pipeline, story.id)

    return CreateStoryResponse(
        story_id=story.id,
        status=story.status,
        message="Story generation started. Use /stories/{story_id} to track progress.",
    )


async def _run_pipeline(pipeline: StoryPipeline, story_id: str) -> None:
    """Run the full pipeline in the background."""
    try:
        await pipeline.process_story(story_id)
    except Exception as e:
        logger.exception("Background pipeline execution failed: %s", e)


@app.get("/stories", response_model=StoryListResponse, tags=["Stories"])
async def list_stories(
    user_id: str | None = Query(None, description="Only stories created by this user"),
    limit: int = Query(20, ge=1, le=100),
    pipeline: StoryPipeline = Depends(get_pipeline),
) -> StoryListResponse:
    """List the most recent stories."""
    stories = await pipeline.list_stories(user_id=user_id, limit=limit)
    return StoryListResponse(
        stories=[
            StorySummaryResponse(
                id=s.id,
                name=s.name,
                template_id=s.template_id,
                status=s.status,
                progress=s.progress,
                output_url=s.output_url,
                created_at=s.created_at,
            )
            for s in stories
        ],
        total=len(stories),
    )


@app.get("/stories/{story_id}", response_model=StoryDetailResponse, tags=["Stories"])
async def get_story(
    story_id: str,
    pipeline: StoryPipeline = Depends(get_pipeline),
) -> StoryDetailResponse:
    """Get a story with its scenes, shots and live progress."""
    story = await pipeline.get_story(story_id)
    snapshot, current_step = await pipeline.get_progress(story_id)
    scenes = await pipeline.get_scenes(story_id)
    shots = await pipeline.get_shots(story_id)

    return StoryDetailResponse(
        id=story.id,
        name=story.name,
        template_id=story.template_id,
        status=story.status,
        progress=snapshot.progress,
        current_step=current_step,
        total_scenes=story.total_scenes,
        total_shots=story.total_shots,
        completed_shots=snapshot.completed_shots,
        generated_story=story.generated_story,
        final_video_url=story.final_video_url,
        final_video_captioned_url=story.final_video_captioned_url,
        duration_seconds=story.duration_seconds,
        error_message=story.error_message,
        created_at=story.created_at,
        updated_at=story.updated_at,
        completed_at=story.completed_at,
        scenes=[
            SceneResponse(
                **scene.model_dump(exclude={"story_id"}),
                shots=[
                    ShotResponse(**shot.model_dump(exclude={"scene_id", "story_id", "image_prompt"}))
                    for shot in shots
                    if shot.scene_id == scene.id
                ],
            )
            for scene in scenes
        ],
    )


@app.post("/stories/{story_id}/continue", response_model=StepResponse, tags=["Stories"])
async def continue_story(
    story_id: str,
    pipeline: StoryPipeline = Depends(get_pipeline),
    _api_key: str = Depends(verify_api_key),
) -> StepResponse:
    """Advance a story by one unit of work."""
    result = await pipeline.continue_story(story_id)
    return StepResponse(**result.model_dump())


@app.delete("/stories/{story_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Stories"])
async def delete_story(
    story_id: str,
    pipeline: StoryPipeline = Depends(get_pipeline),
    _api_key: str = Depends(verify_api_key),
) -> None:
    """Delete a story with its scenes and shots."""
    await pipeline.delete_story(story_id)

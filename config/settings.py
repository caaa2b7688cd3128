"""Pydantic Settings configuration for the faceless video pipeline."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExecutionProfile(str, Enum):
    """Execution profile for the pipeline."""

    DEBUG = "debug"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Execution
    execution_profile: ExecutionProfile = Field(
        default=ExecutionProfile.DEBUG,
        description="debug wires mock services, production wires real ones",
    )

    # Text generation (Together.ai)
    llm_api_key: str = Field(default="", description="Together.ai API key")
    llm_model: str = Field(
        default="meta-llama/Llama-3.3-70B-Instruct-Turbo",
        description="Model for narrative, scene, shot and image-prompt generation",
    )
    llm_base_url: str = Field(
        default="https://api.together.xyz/v1",
        description="Together.ai API base URL",
    )
    llm_timeout: float = Field(
        default=120.0,
        ge=1.0,
        le=600.0,
        description="Text generation request timeout in seconds",
    )
    llm_max_tokens: int = Field(
        default=4000,
        ge=256,
        le=32768,
        description="Maximum tokens for structured responses",
    )
    llm_narrative_max_tokens: int = Field(
        default=2000,
        ge=128,
        le=32768,
        description="Maximum tokens for the narrative",
    )

    # Image generation (Together.ai images endpoint)
    image_model: str = Field(
        default="black-forest-labs/FLUX.1-schnell",
        description="Image generation model",
    )
    image_steps: int = Field(default=4, ge=1, le=50, description="Diffusion steps per image")

    # Voice synthesis (ElevenLabs)
    voice_api_key: str = Field(default="", description="ElevenLabs API key")
    voice_base_url: str = Field(
        default="https://api.elevenlabs.io",
        description="ElevenLabs API base URL",
    )
    voice_model: str = Field(default="eleven_turbo_v2_5", description="ElevenLabs model id")
    voice_stability: float = Field(default=0.5, ge=0.0, le=1.0)
    voice_similarity_boost: float = Field(default=0.5, ge=0.0, le=1.0)
    voice_timeout: float = Field(default=60.0, ge=1.0, le=600.0)

    # Video composition worker
    video_worker_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the video composition worker",
    )
    video_worker_timeout: float = Field(
        default=300.0,
        ge=1.0,
        le=1800.0,
        description="Worker request timeout in seconds (renders are slow)",
    )
    asset_download_timeout: float = Field(default=60.0, ge=1.0, le=600.0)

    # Timing
    default_shot_duration: float = Field(
        default=5.0,
        ge=1.0,
        le=30.0,
        description="Shot duration used when no narration duration is known",
    )
    words_per_second: float = Field(
        default=2.5,
        gt=0.0,
        le=10.0,
        description="Narration speed used to estimate spoken duration",
    )
    min_shot_duration: float = Field(
        default=2.0,
        ge=0.5,
        le=30.0,
        description="Lower bound for estimated spoken duration",
    )
    prefer_reported_duration: bool = Field(
        default=True,
        description="Use the synthesizer's reported duration when it provides one",
    )

    # Orchestration
    max_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Maximum retry attempts per agent",
    )
    shot_concurrency: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Shots processed concurrently in a full run (1 = sequential)",
    )
    incremental_poll_interval: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Delay between incremental steps in the polling driver",
    )
    incremental_max_steps: int = Field(
        default=500,
        ge=1,
        le=10_000,
        description="Safety cap on incremental steps per polling session",
    )

    # Security
    api_key_enabled: bool = Field(
        default=False,
        description="Enable API key authentication",
    )
    api_key: str = Field(
        default="",
        description="API key for authentication (required if api_key_enabled=True)",
    )
    rate_limit_per_minute: int = Field(
        default=30,
        ge=1,
        le=1000,
        description="Maximum requests per minute per client",
    )
    max_source_length: int = Field(
        default=50_000,
        ge=100,
        le=1_000_000,
        description="Maximum source content length in characters",
    )
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins (empty = no CORS)",
    )

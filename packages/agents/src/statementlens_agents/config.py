"""Configuration system for StatementLens Agents.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for the document pipeline.

Usage:
    from statementlens_agents.config import StatementLensConfig

    # Load from environment variables and .env file
    config = StatementLensConfig()

    # Access LLM settings
    print(config.llm.model)

    # Access pipeline settings
    print(config.pipeline.allowed_mime_types)
"""

import logging
from typing import Optional

import structlog

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_MIME_TYPES = [
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
]


class LLMConfig(BaseSettings):
    """Vision model configuration settings.

    Environment Variables:
        STATEMENTLENS_LLM_MODEL: Model name
        STATEMENTLENS_LLM_TEMPERATURE: Sampling temperature (0.0-1.0)
        STATEMENTLENS_LLM_MAX_TOKENS: Maximum output tokens
        STATEMENTLENS_LLM_API_KEY: API key for the provider
        STATEMENTLENS_LLM_TIMEOUT: Request timeout in seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="STATEMENTLENS_LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Vision-capable model used for page extraction",
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for generation",
    )
    max_tokens: int = Field(
        default=4096,
        gt=0,
        le=200000,
        description="Maximum tokens in response",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for the LLM provider",
    )
    timeout: float = Field(
        default=120.0,
        gt=0,
        description="Request timeout in seconds",
    )

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        """Ensure model name is not empty."""
        if not v or not v.strip():
            raise ValueError("Model name cannot be empty")
        return v.strip()


class PipelineConfig(BaseSettings):
    """Document pipeline settings.

    Progress values are the checkpoints a job reports while processing:
    accepted, pages rendered, then ``progress_rasterized +
    progress_page_span * i / n`` after page i of n, then merged.

    Environment Variables:
        STATEMENTLENS_PIPELINE_ALLOWED_MIME_TYPES: JSON list of accepted media types
        STATEMENTLENS_PIPELINE_MAX_UPLOAD_BYTES: Largest accepted upload in bytes
        STATEMENTLENS_PIPELINE_MAX_PAGES: Maximum pages rendered per document
        STATEMENTLENS_PIPELINE_RENDER_RESOLUTION: PDF render resolution in DPI
        STATEMENTLENS_PIPELINE_MAX_IMAGE_DIMENSION: Longest image side in pixels
        STATEMENTLENS_PIPELINE_RECOVERY_MAX_CANDIDATES: Brace candidates tried in recovery
    """

    model_config = SettingsConfigDict(
        env_prefix="STATEMENTLENS_PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    allowed_mime_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_MIME_TYPES),
        description="Media types accepted at enqueue time",
    )
    max_upload_bytes: int = Field(
        default=50 * 1024 * 1024,
        gt=0,
        description="Uploads larger than this are rejected at enqueue time",
    )
    max_pages: int = Field(
        default=50,
        gt=0,
        description="Maximum number of pages rendered per document",
    )
    render_resolution: int = Field(
        default=150,
        ge=72,
        le=600,
        description="Resolution (DPI) used to render PDF pages",
    )
    max_image_dimension: int = Field(
        default=2048,
        ge=256,
        description="Images are downscaled to fit within this size",
    )
    recovery_max_candidates: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Balanced-brace candidates tried during text recovery",
    )
    progress_accepted: int = Field(default=10, ge=1, le=100)
    progress_rasterized: int = Field(default=40, ge=1, le=100)
    progress_page_span: int = Field(default=50, ge=0, le=100)
    progress_merged: int = Field(default=95, ge=1, le=99)

    @field_validator("allowed_mime_types")
    @classmethod
    def normalize_mime_types(cls, v: list[str]) -> list[str]:
        """Lower-case and strip media types."""
        return [m.strip().lower() for m in v if m and m.strip()]

    @model_validator(mode="after")
    def validate_progress_order(self) -> "PipelineConfig":
        """Progress checkpoints must increase and stay below completion."""
        if not (
            self.progress_accepted
            <= self.progress_rasterized
            <= self.progress_rasterized + self.progress_page_span
            <= self.progress_merged
        ):
            raise ValueError(
                "Progress checkpoints must satisfy accepted <= rasterized <= "
                "rasterized + page_span <= merged"
            )
        return self


class StatementLensConfig(BaseSettings):
    """Root configuration for StatementLens Agents.

    Environment Variables:
        STATEMENTLENS_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Example:
        config = StatementLensConfig(
            pipeline=PipelineConfig(max_pages=10),
        )
        tracker = DocumentLifecycleTracker.from_config(config)
    """

    model_config = SettingsConfigDict(
        env_prefix="STATEMENTLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    llm: LLMConfig = Field(default_factory=LLMConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    def configure_logging(self) -> None:
        """Drop structlog events below ``log_level``."""
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(
                getattr(logging, self.log_level)
            ),
        )

"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Global ledger settings loaded from environment variables.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        log_retention: Entries kept by an attached LogBuffer
        default_degradation_rate: Trust decay per hour for newly created evidence
        minting_threshold: Minimum 6-axis composite (0-1) for minting
        extraction_minimum_confidence: Default cutoff for extracted facts
        contradiction_minimum_confidence: Cutoff for reported contradictions
        temporal_tolerance_hours: Allowed gap between dates of the same event
        sweep_batch_size: Evidence pairs compared per sweep batch
        sweep_max_pairs: Default cap on pairs per sweep (None = unbounded)
        persistence_dir: Directory for JSON persistence of the stores
    """

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    log_retention: int = Field(
        default=10_000,
        ge=1,
        description="Maximum entries retained by an attached LogBuffer"
    )
    default_degradation_rate: float = Field(
        default=0.0001,
        ge=0.0,
        description="Trust decay per hour for non-minted evidence"
    )
    minting_threshold: float = Field(
        default=0.70,
        ge=0.0,
        le=1.0,
        description="Minimum composite score required for minting"
    )
    extraction_minimum_confidence: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Default minimum confidence for extracted facts"
    )
    contradiction_minimum_confidence: float = Field(
        default=0.70,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for reported contradictions"
    )
    temporal_tolerance_hours: float = Field(
        default=1.0,
        ge=0.0,
        description="Tolerance between dates describing the same event"
    )
    sweep_batch_size: int = Field(
        default=25,
        ge=1,
        description="Evidence pairs compared per sweep batch"
    )
    sweep_max_pairs: int | None = Field(
        default=None,
        description="Default pair cap for contradiction sweeps"
    )
    persistence_dir: str | None = Field(
        default=None,
        description="Directory for JSON persistence (memory-only if unset)"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Singleton instance - import this throughout the application
settings = Settings()

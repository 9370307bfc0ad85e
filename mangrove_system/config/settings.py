"""Application settings using Pydantic BaseSettings for environment variable management."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Attributes:
        gemini_api_key: Google Gemini API key (required for live analysis)
        gemini_model: Default Gemini model to use
        max_rpm: Maximum requests per minute (free tier default)
        max_tpm: Maximum tokens per minute
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        log_component_levels: Level overrides per component prefix (e.g. {"llm": "DEBUG"})
        log_file: Optional rotating JSON log file
        progress_events: Where workflow progress events go (none, log, hub)
        analysis_timeout_seconds: Upper bound on a single facet analysis call
        analysis_temperature: Sampling temperature for facet analysis
        synthesis_enabled: Whether to request a narrative after aggregation
        synthesis_temperature: Sampling temperature for narrative synthesis
        complaint_interval_seconds: Scheduler cadence for complaints
        complaint_batch_size: Complaints claimed per tick
        plantation_interval_seconds: Scheduler cadence for plantations
        plantation_batch_size: Plantations claimed per tick
        max_attempts: Claims allowed before a submission is marked failed
        retry_backoff_seconds: Base delay before a released submission is claimable
        retry_backoff_max_seconds: Cap on the retry delay
        stale_claim_seconds: Age after which an in_progress claim is recovered
        submission_store_path: Optional JSON persistence file for submissions
        ledger_store_path: Optional JSON persistence file for the reward ledger
        strong_image_confidence: Image confidence treated as strong evidence
        complaint_severity_credits: Credits granted per verified complaint severity
        complaint_severity_points: Points granted per verified complaint severity
    """

    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        description="Default Gemini model identifier"
    )
    max_rpm: int = Field(
        default=15,
        description="Maximum requests per minute (free tier limit)"
    )
    max_tpm: int = Field(
        default=1_000_000,
        description="Maximum tokens per minute"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    log_component_levels: dict[str, str] = Field(
        default_factory=lambda: {"llm.rate_limiter": "WARNING"},
        description="Per-component level overrides, matched on dotted prefix"
    )
    log_file: str | None = Field(
        default=None,
        description="Optional rotating JSON log file alongside stdout/stderr"
    )
    progress_events: Literal["none", "log", "hub"] = Field(
        default="none",
        description="Progress channel for workflow events: none, log or hub"
    )

    analysis_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Per-facet timeout for the content-analysis call"
    )
    analysis_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for facet analysis"
    )
    synthesis_enabled: bool = Field(
        default=True,
        description="Request a narrative summary after aggregation"
    )
    synthesis_temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for narrative synthesis"
    )

    complaint_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between complaint verification ticks"
    )
    complaint_batch_size: int = Field(
        default=10,
        ge=1,
        description="Complaints claimed per tick"
    )
    plantation_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Seconds between plantation verification ticks"
    )
    plantation_batch_size: int = Field(
        default=5,
        ge=1,
        description="Plantations claimed per tick"
    )

    max_attempts: int = Field(
        default=5,
        ge=1,
        description="Claims allowed before a submission is marked failed"
    )
    retry_backoff_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Base retry delay, doubled per attempt"
    )
    retry_backoff_max_seconds: float = Field(
        default=3600.0,
        ge=0,
        description="Maximum retry delay"
    )
    stale_claim_seconds: float = Field(
        default=900.0,
        gt=0,
        description="in_progress claims older than this are returned to pending"
    )

    submission_store_path: str | None = Field(
        default=None,
        description="JSON file for submission persistence (memory-only if unset)"
    )
    ledger_store_path: str | None = Field(
        default=None,
        description="JSON file for ledger persistence (memory-only if unset)"
    )

    strong_image_confidence: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum image confidence counted as strong evidence"
    )
    complaint_severity_credits: dict[str, float] = Field(
        default_factory=lambda: {"low": 0.5, "medium": 1.0, "high": 2.0},
        description="Credits per verified complaint, keyed by severity"
    )
    complaint_severity_points: dict[str, int] = Field(
        default_factory=lambda: {"low": 10, "medium": 20, "high": 30},
        description="Points per verified complaint, keyed by severity"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Singleton instance - import this throughout the application
settings = Settings()

"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Logging configured once, from config
"""

import logging
import os
import sys
from functools import lru_cache
from typing import Literal, cast

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AnalysisConfig(BaseModel):
    """Evidence analysis tuning."""

    evaluation_period_days: int | None = Field(
        default=None,
        gt=0,
        description="Override for every condition's evaluation window (None keeps per-condition defaults)",
    )
    minimum_span_days: int = Field(
        default=30, gt=0, description="Floor applied to the observation span when computing rates"
    )
    max_concurrent_analyses: int = Field(
        default=4, gt=0, description="Maximum number of condition analyses run concurrently"
    )

    def period_for(self, default_days: int) -> int:
        return self.evaluation_period_days or default_days


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
    v = val.strip().lower()
    if v in {"dev", "development"}:
        return "development"
    if v in {"stage", "staging"}:
        return "staging"
    return "production"


def _level_to_literal(val: str) -> LogLevel:
    v = val.strip().upper()
    return cast(LogLevel, v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO")


def _parse_optional_int(val: str | None) -> int | None:
    if val is None or not val.strip():
        return None
    return int(val)


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""
    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    analysis_config = AnalysisConfig(
        evaluation_period_days=_parse_optional_int(os.getenv("EVALUATION_PERIOD_DAYS")),
        minimum_span_days=int(os.getenv("MINIMUM_SPAN_DAYS", "30")),
        max_concurrent_analyses=int(os.getenv("MAX_CONCURRENT_ANALYSES", "4")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        analysis=analysis_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog on top of the stdlib logging module."""
    config = config or get_config().logging
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=config.level, force=True)

    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Configuration validation and helpers
def validate_config() -> AppConfig:
    """Validate configuration at startup."""
    try:
        config = get_config()
    except ValueError as e:
        print(f"Configuration validation failed: {e}")
        raise
    print(f"Configuration loaded for {config.environment} environment")
    return config


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level} ({config.logging.format})")

    print("\nANALYSIS CONFIGURATION")
    period = config.analysis.evaluation_period_days
    print(f"Evaluation Period: {f'{period} days' if period else 'per-condition default'}")
    print(f"Minimum Span: {config.analysis.minimum_span_days} days")
    print(f"Max Concurrent Analyses: {config.analysis.max_concurrent_analyses}")


if __name__ == "__main__":
    validate_config()
    print_config_summary()

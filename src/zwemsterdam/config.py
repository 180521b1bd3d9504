"""Pipeline configuration loaded from environment variables.

Every field can be overridden through the environment (case-insensitive,
e.g. ``OUTPUT_DIR=dist``) or a ``.env`` file in the project root.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class ZwemsterdamConfig(BaseSettings):
    """Pipeline configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Paths
    output_dir: str = Field(
        default="frontend/public",
        description="Directory receiving data.json and metadata.json",
    )
    optisport_cache_file: str = Field(
        default="data/optisport_data.json",
        description="JSON cache written by the Optisport browser step",
    )

    # HTTP
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for each plain HTTP request",
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="User-Agent sent to every upstream",
    )

    # Browser (Optisport)
    headless: bool = Field(
        default=True,
        description="Run Chromium headless for the Optisport step",
    )
    browser_timeout_ms: int = Field(
        default=60000,
        description="Navigation timeout for the Optisport pool page",
    )
    challenge_timeout_seconds: float = Field(
        default=30.0,
        description="How long to wait for the bot challenge to clear",
    )
    optisport_max_pages: int = Field(
        default=10,
        description="Safety ceiling on schedule pages per location",
    )
    optisport_page_size: int = Field(
        default=50,
        description="Results requested per schedule page",
    )

    # Sources
    # One week at most: a longer window repeats weekdays in the weekly export
    municipal_window_days: int = Field(
        default=7,
        ge=1,
        le=7,
        description="Number of days (starting today) requested per municipal pool",
    )
    timezone: str = Field(
        default="Europe/Amsterdam",
        description="Local timezone for dates, weekdays and lastUpdatedLocal",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for scheduled builds)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: ZwemsterdamConfig | None = None


def get_config() -> ZwemsterdamConfig:
    """Get the pipeline configuration singleton.

    Returns:
        ZwemsterdamConfig: Pipeline configuration instance
    """
    global _config
    if _config is None:
        _config = ZwemsterdamConfig()
    return _config

"""
Relay configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import sys
from pydantic import Field, field_validator
from services.common.core.config import BaseAppConfig


class RelayConfig(BaseAppConfig):
    """
    Configuration management for the repository relay.
    """

    # Server settings
    UVICORN_WORKERS: int = Field(default=4, description="Number of worker processes")
    UVICORN_BIND_ADDR: str = Field(default="0.0.0.0:8000", description="Listen address")
    LOG_CONFIG_PATH: str = Field(
        default="config/relay_log.yaml", description="Logging dictConfig YAML path"
    )
    VICTORIALOGS_URL: str = Field(default="", description="VictoriaLogs ingestion URL")

    # Remote repository API (required from env)
    REMOTE_API_ENDPOINT: str = Field(..., description="Base URL of the remote repository API")
    LOCAL_BASE_URL: str = Field(default="/", description="Local prefix for rewritten URLs")
    AUTH_COOKIE_NAME: str = Field(
        default="Authorization", description="Name of the remote auth cookie"
    )

    # Outbound identification
    USER_AGENT_PRODUCT: str = Field(default="RSUI", description="User-Agent product token")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    CONTACT_EMAIL: str = Field(default="dlts@nyu.edu", description="User-Agent contact")

    # Timeouts (seconds)
    REQUEST_TIMEOUT: float = Field(default=10.0, description="Overall budget for API calls")
    CONNECT_TIMEOUT: float = Field(default=10.0, description="Connect timeout for API calls")
    STREAM_TIMEOUT: float = Field(default=3600.0, description="Read budget for downloads")
    STREAM_CONNECT_TIMEOUT: float = Field(
        default=10.0, description="Connect timeout for downloads"
    )

    # Search
    SEARCH_DEFAULT_ROWS: int = Field(default=10, gt=0, description="Default page size")
    SEARCH_MAX_ROWS: int = Field(default=100, gt=0, description="Largest accepted page size")
    AUTOCOMPLETE_MIN_CHARS: int = Field(default=2, description="Shortest autocomplete term")
    HIGHLIGHT_CLASS: str = Field(
        default="bg-yellow-100 text-black font-semibold not-italic",
        description="CSS class of the highlight marker",
    )

    # Sessions
    SESSION_PRUNE_INTERVAL: float = Field(
        default=300.0, gt=0, description="Seconds between sweeps of expired sessions"
    )

    # Diagnostics
    LOG_HTTP_EXCHANGES: bool = Field(
        default=False, description="Log every upstream exchange with masked headers"
    )

    # Authentication/security (required from env)
    JWT_SECRET_KEY: str = Field(..., min_length=32, description="JWT signing secret key")
    JWT_EXPIRES_DELTA: int = Field(default=3000, description="Token expiry (seconds)")
    X_API_KEY: str = Field(..., description="API key for session registration")

    # FastAPI settings
    root_path: str = Field(default="", description="API root path (for proxy)")

    @field_validator("REMOTE_API_ENDPOINT")
    @classmethod
    def _strip_endpoint(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def user_agent(self) -> str:
        return f"{self.USER_AGENT_PRODUCT}/{self.APP_VERSION} ({self.CONTACT_EMAIL})"


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = RelayConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise

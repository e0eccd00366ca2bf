from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global settings for the 4-in-a-Row client.

    Values are loaded from environment variables and the project .env file.
    Intervals and timeouts are in seconds.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    backend_url: str = Field(
        default="http://localhost:9090",
        description="Base HTTP URL of the game server",
        validation_alias="FOURINAROW_BACKEND_URL",
    )

    reconnect_attempts: int = Field(
        default=10,
        ge=0,
        description="Consecutive reconnect attempts before giving up",
        validation_alias="FOURINAROW_RECONNECT_ATTEMPTS",
    )

    reconnect_interval: float = Field(
        default=3.0,
        ge=0,
        description="Fixed delay before each reconnect attempt",
        validation_alias="FOURINAROW_RECONNECT_INTERVAL",
    )

    heartbeat_interval: float = Field(
        default=45.0,
        gt=0,
        description="Interval between transport-level ping probes while connected",
        validation_alias="FOURINAROW_HEARTBEAT_INTERVAL",
    )

    heartbeat_timeout: float = Field(
        default=60.0,
        gt=0,
        description="How long an unanswered probe may stay pending before the channel is closed",
        validation_alias="FOURINAROW_HEARTBEAT_TIMEOUT",
    )

    framing: Literal["brace", "ndjson"] = Field(
        default="brace",
        description="Inbound framing: 'brace' splits back-to-back objects, 'ndjson' splits lines",
        validation_alias="FOURINAROW_FRAMING",
    )

    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for one-shot HTTP requests such as the leaderboard",
        validation_alias="FOURINAROW_REQUEST_TIMEOUT",
    )

    log_stream: Literal["stdout", "stderr"] = Field(
        default="stderr",
        description="Stream to use for logging output: 'stdout' or 'stderr'",
        validation_alias="FOURINAROW_LOG_STREAM",
    )

    @property
    def ws_url(self) -> str:
        """WebSocket endpoint derived from the HTTP base URL (http -> ws, https -> wss)."""
        base = self.backend_url.rstrip("/")
        if base.startswith("http"):
            base = "ws" + base[len("http") :]
        return f"{base}/ws"


# Create a singleton instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings

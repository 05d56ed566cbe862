from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SHARDLEASE_", env_file=".env", extra="ignore")

    app_name: str = "shardlease"

    # Coordination store
    store_url: str = "http://127.0.0.1:4001"
    request_timeout: float = Field(default=5.0, gt=0)

    # Election
    shard: str = "shard-5"
    actor_count: int = Field(default=30, ge=1)
    lease_ttl: float = Field(default=1.0, gt=0)  # Seconds
    release_on_stop: bool = False

    # Fault injection (simulated slow leader)
    stall_probability: float = Field(default=0.25, ge=0.0, le=1.0)
    stall_multiplier: float = Field(default=10.0, ge=0.0)  # Stall = multiplier * lease_ttl

    # Observability
    log_level: str = "INFO"
    log_json: bool = False
    enable_metrics: bool = True
    metrics_port: int | None = None


settings = Settings()

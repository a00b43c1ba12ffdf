from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ZENALYST_",
    )

    # MongoDB
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    database_name: str = Field(default="zenalyst_analytics")
    max_pool_size: int = Field(default=10, description="pymongo maxPoolSize")
    server_selection_timeout_ms: int = Field(default=5000)
    socket_timeout_ms: int = Field(default=45000)

    # Collections
    countries_collection: str = "countries"
    regions_collection: str = "regions"
    quarterly_revenue_collection: str = "quarterly_revenue"
    revenue_bridge_collection: str = "revenue_bridge"
    customer_concentration_collection: str = "customer_concentration"
    revenue_summary_collection: str = "revenue_summary"

    # API
    api_prefix: str = Field(default="/api", description="Mount point for all routes")
    api_version: str = "1.0.0"
    log_level: str = Field(default="INFO")
    dashboard_workers: int = Field(
        default=5, description="Threads used to fetch dashboard datasets concurrently"
    )

    # Seeding
    data_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding the JSON exports loaded by zenalyst-seed",
    )

    # Frontend origins - can be comma-separated string or list
    allowed_origins: str | list[str] = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        if isinstance(v, str):
            # Split by comma and strip whitespace
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, v):
        return str(v).upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()

"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Sweep Configuration
    epsilon: float = Field(default=1e-9, gt=0, description="Coordinate tolerance relative to the bounding box size")
    collinear_tolerance: float = Field(
        default=1e-12, ge=0, description="Relative tolerance for collinear site triples"
    )

    class Config:
        env_prefix = "VORONOI_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

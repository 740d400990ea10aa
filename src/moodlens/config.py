"""Environment-based configuration for MoodLens."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from MOODLENS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MOODLENS_",
        case_sensitive=False,
        protected_namespaces=(),
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8083

    # ML device
    device: Literal["cpu", "cuda"] = "cpu"

    # Assets
    assets_dir: Path = Path("assets")
    assets_repo_id: str | None = None
    model_filename: str = "emotions.onnx"
    labels_filename: str = "labels.txt"

    # Model input contract
    input_width: int = Field(default=224, ge=1)
    input_height: int = Field(default=224, ge=1)
    channels: int = Field(default=3, ge=1, le=3)

    # Ranking
    results_to_show: int = Field(default=3, ge=1)
    # Rank surfaced in the mood sentence. 1 (second best) is the shipped
    # behaviour, pending product review.
    display_rank: int = Field(default=1, ge=0)

    # ONNX Runtime threading
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    max_file_size: int = Field(default=20_971_520, ge=1)

    @property
    def model_path(self) -> Path:
        return self.assets_dir / self.model_filename

    @property
    def labels_path(self) -> Path:
        return self.assets_dir / self.labels_filename


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()

"""Configuration management with YAML and environment variable support."""

from pathlib import Path
from typing import ClassVar, Optional

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from veovision.schemas.video import AspectRatio


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads configuration from YAML file."""

    def get_field_value(self, field, field_name: str):
        # Not used with prepare method
        pass

    def prepare_field_value(self, field_name: str, field, value, value_is_complex: bool):
        return value

    def __call__(self):
        # Load from config.yaml in current directory
        yaml_path = Path("config.yaml")
        if not yaml_path.exists():
            return {}

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return data


class GoogleConfig(BaseModel):
    """Gemini API credentials.

    api_key may be left unset; the auth provider then falls back to
    GEMINI_API_KEY / GOOGLE_API_KEY or asks the user to select one.
    """

    api_key: Optional[str] = None


class ModelsConfig(BaseModel):
    """AI model identifiers."""

    prompt_llm: str = "gemini-2.5-flash"
    video_gen: str = "veo-3.1-fast-generate-preview"


class PipelineConfig(BaseModel):
    """Pipeline execution parameters."""

    video_poll_interval: float = 5
    video_poll_max: int = 120
    video_resolution: str = "1080p"
    number_of_videos: int = 1
    download_timeout: float = 120


class DefaultsConfig(BaseModel):
    """Fallback values used when a launch URL only carries a prompt or topic."""

    style: str = "cinematic, modern"
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    duration: int = 6
    enhance_prompt: bool = True


class StorageConfig(BaseModel):
    """Session media storage.

    tmp_dir is the parent for the per-session media directory; None means
    the system temp location.
    """

    tmp_dir: Optional[Path] = None

    @field_validator("tmp_dir", mode="before")
    @classmethod
    def convert_tmp_dir_to_path(cls, v):
        """Convert string to Path object."""
        if isinstance(v, str):
            return Path(v)
        return v


class Settings(BaseSettings):
    """Main application settings with YAML and environment variable support.

    Configuration sources (in priority order):
    1. Environment variables (prefix: VEOVISION_, delimiter: __)
    2. YAML file (config.yaml)
    3. Field defaults
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_nested_delimiter="__",
        env_prefix="VEOVISION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    google: GoogleConfig = GoogleConfig()
    models: ModelsConfig = ModelsConfig()
    pipeline: PipelineConfig = PipelineConfig()
    defaults: DefaultsConfig = DefaultsConfig()
    storage: StorageConfig = StorageConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        """Customize settings sources to include YAML configuration.

        Priority order (highest to lowest):
        1. Environment variables
        2. YAML file
        3. Init settings (programmatic defaults)
        """
        return (
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            init_settings,
        )


# Singleton instance
settings = Settings()

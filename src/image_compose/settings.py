from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

# Bundled font files shipped in assets/fonts/ — resolved relative to this module file
_BUNDLED_FONTS_DIR = Path(__file__).resolve().parents[2] / "assets" / "fonts"


class Settings(BaseModel):
    default_format: str = Field(default="jpg", min_length=1)
    fonts_dir: Path = _BUNDLED_FONTS_DIR
    fit_strategy: Literal["bisect", "linear"] = "bisect"
    max_fit_size: int = Field(default=4096, ge=1)


def load_settings() -> Settings:
    """Build settings from ``IMAGE_COMPOSE_*`` environment variables, keeping defaults for unset ones."""
    env_map = {
        "default_format": "IMAGE_COMPOSE_DEFAULT_FORMAT",
        "fonts_dir": "IMAGE_COMPOSE_FONTS_DIR",
        "fit_strategy": "IMAGE_COMPOSE_FIT_STRATEGY",
        "max_fit_size": "IMAGE_COMPOSE_MAX_FIT_SIZE",
    }
    values = {field: os.environ[name] for field, name in env_map.items() if os.environ.get(name)}
    return Settings.model_validate(values)

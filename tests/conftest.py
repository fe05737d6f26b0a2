from pathlib import Path

import pytest

from image_compose.settings import Settings

from stub_engine import RecordingEngine


@pytest.fixture
def engine() -> RecordingEngine:
    return RecordingEngine()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(fonts_dir=tmp_path / "fonts")

from __future__ import annotations

import os
from pathlib import Path

os.environ["LOG_TO_FILE"] = "false"
os.environ.setdefault("CLIPJOIN_ENV_FILE", "/nonexistent/.env")

import pytest  # noqa: E402

from clipjoin.models_cj.item import ItemState, MediaItem, StreamDescriptor  # noqa: E402
from shared.utils.settings import TempSettings  # noqa: E402
from shared.utils.logger import get_logger  # noqa: E402
from tests.helpers import descriptor  # noqa: E402

# Loggers configurés une seule fois : leurs handlers restent liés au stderr de la session
for _name in ("ClipJoin", "ClipJoin-Planner", "ClipJoin-Dispatcher", "ClipJoin-Ffmpeg"):
    get_logger(_name)


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    d = tmp_path / "media"
    d.mkdir()
    return d


@pytest.fixture
def temp_settings(tmp_path: Path) -> TempSettings:
    return TempSettings(tmp_dir=tmp_path / "tmp")


@pytest.fixture
def output(tmp_path: Path) -> Path:
    out = tmp_path / "out" / "joined.mp4"
    out.parent.mkdir()
    out.touch()
    return out


@pytest.fixture
def make_item(media_dir: Path):
    def _make(
        name: str,
        duration: float = 10,
        streams: list[StreamDescriptor] | None = None,
        state: ItemState = ItemState.VALID,
    ) -> MediaItem:
        path = media_dir / name
        path.touch()
        return MediaItem(
            path=path,
            state=state,
            duration=duration,
            video_streams=[descriptor()] if streams is None else streams,
        )

    return _make

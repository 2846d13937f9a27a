from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

# ============================================================
# 📦 Éléments à concaténer
# ============================================================


class ItemState(str, Enum):
    """Cycle de vie d'un élément, piloté par le pipeline de validation externe."""

    IN_PROGRESS = "in_progress"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class StreamDescriptor:
    """
    Attributs d'un flux vidéo utilisés pour la comparaison de compatibilité.

    Seuls width, height, codec_tag, tbn, tbc et tbr participent à la décision ;
    index et codec_name sont informatifs.
    """

    width: int
    height: int
    codec_tag: str | int | None
    tbn: str | None
    tbc: str | None
    tbr: str | None
    index: int | None = field(default=None, compare=False)
    codec_name: str | None = field(default=None, compare=False)


class ConcatItem(Protocol):
    """Vue lecture seule d'un élément, telle que consommée par le planner."""

    @property
    def path(self) -> Path: ...

    @property
    def state(self) -> ItemState: ...

    @property
    def duration(self) -> float: ...

    @property
    def video_streams(self) -> Sequence[StreamDescriptor]: ...


@dataclass
class MediaItem:
    path: Path
    state: ItemState = ItemState.IN_PROGRESS
    duration: float = 0.0
    video_streams: list[StreamDescriptor] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from clipjoin.models_cj.item import ConcatItem

# ============================================================
# 🧾 Requête et plan de concaténation
# ============================================================


class Strategy(str, Enum):
    DEMUXER = "demuxer"  # copie de flux, rapide
    FILTER = "filter"  # filtre concat, ré-encodage


@dataclass
class ConcatRequest:
    items: Sequence[ConcatItem]
    output: Path

    def __post_init__(self) -> None:
        self.output = Path(self.output)


@dataclass(frozen=True)
class ConcatPlan:
    """
    Plan dérivé d'une requête : créé à chaque appel, remis au dispatcher puis oublié.
    """

    strategy: Strategy
    args: list[str]
    output: Path
    progress_file: Path
    duration: float
    manifest_file: Path | None = None

    @property
    def side_files(self) -> list[Path]:
        """Artefacts temporaires propres à ce plan."""
        files = [self.progress_file]
        if self.manifest_file is not None:
            files.append(self.manifest_file)
        return files

    def command_line(self) -> str:
        return " ".join(self.args)

"""
Lecture du fichier de progression écrit par `ffmpeg -progress <fichier>`.

Le fichier est une suite de blocs `clé=valeur` terminés par `progress=continue`
ou `progress=end`. Seul le dernier bloc compte.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

MICROSECONDS = 1_000_000


@dataclass(frozen=True)
class ProgressSnapshot:
    out_time: float = 0.0
    duration: float = 0.0
    finished: bool = False
    speed: str | None = None

    @property
    def percent(self) -> float:
        if self.finished:
            return 100.0
        if self.duration <= 0:
            return 0.0
        return max(0.0, min(100.0, self.out_time / self.duration * 100))

    @property
    def remaining(self) -> float | None:
        """Temps média restant (secondes), None si la durée attendue est inconnue."""
        if self.duration <= 0:
            return None
        return max(0.0, self.duration - self.out_time)


def parse_timestamp(value: str) -> float | None:
    """'00:01:02.500000' → 62.5"""
    try:
        hours, minutes, seconds = value.strip().split(":")
        return int(hours) * 3600 + int(minutes) * 60 + float(seconds)
    except ValueError:
        return None


def _out_time(block: dict[str, str]) -> float | None:
    # out_time_ms est aussi exprimé en microsecondes côté ffmpeg
    for key in ("out_time_us", "out_time_ms"):
        raw = block.get(key, "")
        if raw.lstrip("-").isdigit():
            return max(0, int(raw)) / MICROSECONDS
    if "out_time" in block:
        return parse_timestamp(block["out_time"])
    return None


def parse_progress(text: str, duration: float = 0.0) -> ProgressSnapshot:
    current: dict[str, str] = {}
    last_complete: dict[str, str] | None = None

    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        current[key.strip()] = value.strip()
        if key.strip() == "progress":
            last_complete = current
            current = {}

    block = last_complete if last_complete is not None else current
    out_time = _out_time(block) or 0.0
    return ProgressSnapshot(
        out_time=out_time,
        duration=duration,
        finished=block.get("progress") == "end",
        speed=block.get("speed"),
    )


def read_progress(progress_file: Path, duration: float = 0.0) -> ProgressSnapshot:
    """Fichier absent ou vide → 0 %."""
    try:
        text = Path(progress_file).read_text(encoding="utf-8", errors="ignore")
    except FileNotFoundError:
        return ProgressSnapshot(duration=duration)
    return parse_progress(text, duration)

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import uuid


class JobStatus:
    # --- Dispatcher ---
    ACCEPTED = "accepted"
    RUNNING = "running"

    # --- Fin de job ---
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ConcatJob:
    """Invocation complète remise à la facilité d'exécution."""

    args: tuple[str, ...]
    output: Path
    progress_file: Path
    duration: float
    side_files: tuple[Path, ...] = ()
    uid: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

"""
settings.py — Centralisation typée des paramètres YAML via dataclasses.
Doit être initialisé UNE seule fois via init_settings(config) dans main().
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
import tempfile
from typing import Any

from shared.utils.logger import LoggerProtocol, ensure_logger

# ==========================================================
#               CLIPJOIN — DATACLASSES
# ==========================================================


@dataclass
class FfmpegSettings:
    binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    allow_unsafe_paths: bool = False


@dataclass
class TempSettings:
    tmp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    progress_prefix: str = "vc-pg"
    manifest_prefix: str = "vc-ls"

    def __post_init__(self) -> None:
        self.tmp_dir = Path(self.tmp_dir)


@dataclass
class DispatchSettings:
    max_workers: int = 1
    poll_interval: float = 1.0
    cleanup: bool = True


# ==========================================================
#                 SETTINGS ROOT OBJECT
# ==========================================================


@dataclass
class Settings:
    ffmpeg: FfmpegSettings
    temp: TempSettings
    dispatch: DispatchSettings


SETTINGS: Settings | None = None


# ==========================================================
#                     INITIALISATION
# ==========================================================


SECTIONS: dict[str, type] = {
    "ffmpeg": FfmpegSettings,
    "temp": TempSettings,
    "dispatch": DispatchSettings,
}


def known_keys(section: str) -> set[str]:
    return {f.name for f in fields(SECTIONS[section])}


def _section_kwargs(config: Any, section: str, logger: LoggerProtocol) -> dict[str, Any]:
    data = config.section(section)
    allowed = known_keys(section)
    unknown = sorted(str(key) for key in data if key not in allowed)
    if unknown:
        logger.warning("⚠️ Clés inconnues ignorées dans %s : %s", section, ", ".join(unknown))
    return {key: value for key, value in data.items() if key in allowed}


def init_settings(config: Any, logger: LoggerProtocol | None = None) -> None:
    """
    Initialise toutes les settings à partir du YAML chargé par ConfigManager.
    Les clés absentes gardent leur valeur par défaut, les clés inconnues sont ignorées.
    """
    global SETTINGS
    logger = ensure_logger(logger, __name__)

    SETTINGS = Settings(
        ffmpeg=FfmpegSettings(**_section_kwargs(config, "ffmpeg", logger)),
        temp=TempSettings(**_section_kwargs(config, "temp", logger)),
        dispatch=DispatchSettings(**_section_kwargs(config, "dispatch", logger)),
    )


def get_settings() -> Settings:
    if SETTINGS is None:
        raise RuntimeError("SETTINGS non initialisé. Appeler init_settings(config).")
    return SETTINGS

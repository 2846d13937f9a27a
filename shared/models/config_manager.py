"""
config_manager.py — Lecture et contrôle de clipjoin.yaml.

Le fichier est optionnel : absent ou illisible, les valeurs par défaut des
dataclasses de `shared.utils.settings` s'appliquent.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from shared.utils.config import CONFIG_DIR
from shared.utils.logger import LoggerProtocol, ensure_logger, with_child_logger
from shared.utils.settings import SECTIONS, init_settings, known_keys

YamlDict = dict[str, Any]

CONFIG_FILENAME = "clipjoin.yaml"

REQUIRED_KEYS: dict[str, list[str]] = {
    "ffmpeg": ["binary"],
    "temp": ["progress_prefix", "manifest_prefix"],
    "dispatch": ["max_workers", "poll_interval"],
}


class ConfigManager:
    """
    Charge clipjoin.yaml et expose ses sections (ffmpeg, temp, dispatch).
    """

    @with_child_logger
    def __init__(self, config_dir: Path | None = None, logger: LoggerProtocol | None = None) -> None:
        logger = ensure_logger(logger, __name__)
        self.config_dir: Path = Path(config_dir) if config_dir else CONFIG_DIR
        self.clipjoin: YamlDict = {}
        self._reload_all(logger=logger)

    @property
    def path(self) -> Path:
        return self.config_dir / CONFIG_FILENAME

    # --- Lecture --- #
    @with_child_logger
    def _read_yaml(self, logger: LoggerProtocol | None = None) -> YamlDict:
        logger = ensure_logger(logger, __name__)
        if not self.path.is_file():
            logger.warning("⚠️ %s absent, valeurs par défaut utilisées.", self.path)
            return {}
        try:
            data: Any = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.error("YAML illisible (%s) : %s", self.path, e)
            return {}
        except OSError as exc:
            logger.error("💥 Lecture impossible de %s : %s", self.path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "⚠️ %s doit contenir un mapping de sections (reçu : %s).", CONFIG_FILENAME, type(data).__name__
            )
            return {}
        logger.debug("✅ %s chargé : sections %s", CONFIG_FILENAME, ", ".join(sorted(map(str, data))))
        return data

    @with_child_logger
    def _reload_all(self, logger: LoggerProtocol | None = None) -> None:
        logger = ensure_logger(logger, __name__)
        self.clipjoin = self._read_yaml(logger=logger)

    # --- Accès --- #
    def section(self, name: str) -> YamlDict:
        data = self.clipjoin.get(name)
        return data if isinstance(data, dict) else {}

    def get(self, section: str, key: str, default: Any = None) -> Any:
        return self.section(section).get(key, default)

    # --- Contrôle --- #
    def _missing_keys(self) -> list[str]:
        missing = []
        for name, keys in REQUIRED_KEYS.items():
            if name not in self.clipjoin:
                missing.append(f"⛔ Section manquante : {name}")
                continue
            data = self.section(name)
            missing += [f"⛔ Clé manquante : {name}.{key}" for key in keys if key not in data]
        return missing

    def _invalid_values(self) -> list[str]:
        invalid = []
        for name in SECTIONS:
            allowed = known_keys(name)
            invalid += [f"⛔ Clé inconnue : {name}.{key}" for key in self.section(name) if key not in allowed]
        workers = self.get("dispatch", "max_workers")
        if workers is not None and (not isinstance(workers, int) or workers < 1):
            invalid.append(f"⛔ dispatch.max_workers doit être un entier ≥ 1 (reçu : {workers!r})")
        interval = self.get("dispatch", "poll_interval")
        if interval is not None and (not isinstance(interval, (int, float)) or interval <= 0):
            invalid.append(f"⛔ dispatch.poll_interval doit être > 0 (reçu : {interval!r})")
        return invalid

    @with_child_logger
    def validate(self, strict: bool = True, logger: LoggerProtocol | None = None) -> bool:
        """
        Vérifie la présence des clés attendues et la cohérence des valeurs de dispatch.
        strict=True : lève ValueError ; sinon retourne False.
        """
        logger = ensure_logger(logger, __name__)
        logger.info("🧩 Contrôle de %s…", self.path)

        errors = self._missing_keys() + self._invalid_values()
        if not errors:
            logger.info("✅ Configuration ClipJoin complète.")
            return True

        for err in errors:
            logger.error(err)
        if strict:
            raise ValueError(f"Configuration invalide ({len(errors)} erreurs).")
        logger.warning("⚠️ Configuration incomplète (%d problèmes), défauts appliqués.", len(errors))
        return False

    @with_child_logger
    def reload(self, logger: LoggerProtocol | None = None) -> None:
        logger = ensure_logger(logger, __name__)
        logger.info("♻️ Relecture de %s…", self.path)
        self._reload_all(logger=logger)


# --- Instance globale --- #
_CONFIG: ConfigManager | None = None


def get_config() -> ConfigManager:
    if _CONFIG is None:
        raise RuntimeError("CONFIG non initialisé. Appeler main() d'abord.")
    return _CONFIG


def set_config(cfg: ConfigManager) -> None:
    global _CONFIG
    _CONFIG = cfg


@with_child_logger
def reload_and_apply(logger: LoggerProtocol | None = None) -> None:
    """Relit le YAML puis reconstruit les settings typés."""
    logger = ensure_logger(logger, __name__)
    cfg = get_config()
    cfg.reload(logger=logger)
    init_settings(cfg, logger=logger)

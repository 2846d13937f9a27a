"""Module config en lien avec env."""

# config.py
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Chargement du .env
ENV_FILE: str = os.getenv("CLIPJOIN_ENV_FILE", "/app/config/.env")
load_dotenv(ENV_FILE)


class ConfigError(Exception):
    """
    Erreur de configuration (.env / variables d'environnement).
    """


# --- Fonctions utilitaires ---


def get_required(key: str) -> str:
    """
    Récupère la valeur d'une variable env requise.

    Lève ConfigError si absente.
    """
    value = os.getenv(key)
    if value is None:
        raise ConfigError(f"[CONFIG ERROR] La variable {key} est requise mais absente.")
    return value


def get_bool(key: str, default: str = "false") -> bool:
    """
    Retourne la variable env convertie en booléen.
    """
    return os.getenv(key, default).lower() in ("true", "1", "yes", "y")


def get_str(key: str, default: str = "") -> str:
    """
    Retourne la variable env sous forme de chaîne.
    """
    return os.getenv(key, default)


def get_int(key: str, default: int = 0) -> int:
    """
    Retourne la variable env convertie en entier.

    Lève ConfigError si conversion impossible.
    """
    raw = os.getenv(key, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"[CONFIG ERROR] La variable {key} doit être un entier (valeur: {raw!r}).") from exc


def get_float(key: str, default: float = 0.0) -> float:
    """
    Retourne la variable env convertie en float.

    Lève ConfigError si conversion impossible.
    """
    raw = os.getenv(key, str(default))
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"[CONFIG ERROR] La variable {key} doit être un float (valeur: {raw!r}).") from exc


# --- Variables d'environnement accessibles globalement ---

CONFIG_DIR: Path = Path(get_str("CLIPJOIN_CONFIG_DIR", "/app/config"))

# LOGS
LOG_FILE_PATH = get_str("LOG_FILE_PATH", "logs")
LOG_ROTATION_DAYS = get_int("LOG_ROTATION_DAYS", 100)
LOG_LEVEL: str = get_str("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE: bool = get_bool("LOG_TO_FILE", "true")

# COULEURS CONSOLE
COLOR_RESET = "\033[0m"
COLOR_RED = "\033[31m"
COLOR_GREEN = "\033[32m"
COLOR_YELLOW = "\033[33m"
COLOR_BLUE = "\033[34m"
COLOR_PURPLE = "\033[35m"
COLOR_CYAN = "\033[36m"

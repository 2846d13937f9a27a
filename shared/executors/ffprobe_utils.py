from __future__ import annotations

import json
from pathlib import Path
import subprocess

from shared.models.exceptions import ClipJoinError, ErrCode, get_step_ctx
from shared.models.ffprobe import FFprobeData, FFprobeStream

# ============================================================
# 🧰 Helper interne
# ============================================================


def _get_probe_or_load(probe: FFprobeData | None, video_path: Path, binary: str = "ffprobe") -> FFprobeData:
    """Retourne `probe` si fourni, sinon charge via ffprobe."""
    return probe if probe is not None else ffprobe_json(video_path, binary=binary)


# ============================================================
# 🔧 Exécution FFprobe → JSON
# ============================================================


def ffprobe_json(video_path: Path, binary: str = "ffprobe") -> FFprobeData:
    """
    Exécute ffprobe (JSON complet : format + streams) et renvoie le dictionnaire typé.
    """
    cmd = [
        binary,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(video_path),
    ]

    try:
        output = subprocess.check_output(cmd, stderr=subprocess.STDOUT)
        data: FFprobeData = json.loads(output.decode("utf-8"))
        return data

    except FileNotFoundError as exc:
        raise ClipJoinError(
            "❌ Exécutable ffprobe introuvable.",
            code=ErrCode.NOFILE,
            ctx=get_step_ctx({"binary": binary}),
        ) from exc

    except subprocess.CalledProcessError as exc:
        raise ClipJoinError(
            "❌ FFprobe a échoué.",
            code=ErrCode.FFMPEG,
            ctx=get_step_ctx(
                {
                    "video_path": str(video_path),
                    "error": exc.output.decode("utf-8", errors="ignore"),
                }
            ),
        ) from exc

    except ValueError as exc:
        raise ClipJoinError(
            "❌ Sortie FFprobe illisible.",
            code=ErrCode.BADFORMAT,
            ctx=get_step_ctx({"video_path": str(video_path)}),
        ) from exc


# ============================================================
# 🔍 Extraction des streams
# ============================================================


def get_video_streams(probe: FFprobeData) -> list[FFprobeStream]:
    """Retourne tous les flux vidéo, dans l'ordre du conteneur (liste vide si aucun)."""
    return [stream for stream in probe.get("streams", []) if stream.get("codec_type") == "video"]


# ============================================================
# 🎞️ Métadonnées
# ============================================================


def get_duration(video_path: Path, probe: FFprobeData | None = None) -> float:
    probe = _get_probe_or_load(probe, video_path)
    fmt = probe.get("format", {})
    raw = fmt.get("duration")

    try:
        return float(raw) if raw is not None else 0.0
    except ValueError as exc:
        raise ClipJoinError(
            "❌ Durée illisible.",
            code=ErrCode.BADFORMAT,
            ctx=get_step_ctx({"video_path": str(video_path), "duration": raw}),
        ) from exc


def invert_rate(rate: str | None) -> str | None:
    """'30000/1001' → '1001/30000'. Retourne None si le ratio est absent ou nul."""
    if not rate or "/" not in rate:
        return None
    num, den = rate.split("/", 1)
    if num.strip() in ("", "0"):
        return None
    return f"{den.strip()}/{num.strip()}"

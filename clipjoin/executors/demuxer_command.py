from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from clipjoin.models_cj.item import ConcatItem
from shared.models.exceptions import ClipJoinError, ErrCode, get_step_ctx
from shared.utils.logger import LoggerProtocol, ensure_logger, with_child_logger


def manifest_line(path: Path) -> str:
    """Ligne `file '<chemin>'` ; les apostrophes sont échappées selon la syntaxe du concat demuxer."""
    quoted = path.absolute().as_posix().replace("'", "'\\''")
    return f"file '{quoted}'\n"


def write_manifest(manifest_file: Path, items: Sequence[ConcatItem]) -> None:
    """Écrit la liste des entrées, une ligne par élément, dans l'ordre de la requête."""
    try:
        with open(manifest_file, "w", encoding="utf-8", newline="\n") as f:
            for item in items:
                f.write(manifest_line(Path(item.path)))
    except OSError as exc:
        raise ClipJoinError(
            "Erreur lors de l'écriture du fichier concat.",
            code=ErrCode.IO,
            ctx=get_step_ctx({"manifest_file": str(manifest_file)}),
        ) from exc


@with_child_logger
def build_demuxer_command(
    *,
    output: Path,
    progress_file: Path,
    items: Sequence[ConcatItem],
    manifest_file: Path,
    binary: str = "ffmpeg",
    allow_unsafe_paths: bool = False,
    logger: LoggerProtocol | None = None,
) -> list[str]:
    """
    Concaténation par le concat demuxer (copie de flux, aucun ré-encodage).

    ffmpeg -y -progress <progress> -f concat -auto_convert 1 -i <manifest> -codec copy <output>
    """
    logger = ensure_logger(logger, __name__)

    write_manifest(manifest_file, items)

    cmd = [
        binary,
        "-y",
        "-progress",
        str(progress_file),
        "-f",
        "concat",
    ]
    if allow_unsafe_paths:
        cmd += ["-safe", "0"]
    cmd += [
        "-auto_convert",
        "1",
        "-i",
        str(manifest_file),
        "-codec",
        "copy",
        str(output),
    ]

    logger.debug("🎞️ ffmpeg concat demuxer command: %s", " ".join(cmd))
    return cmd

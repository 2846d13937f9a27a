from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from clipjoin.models_cj.item import ConcatItem
from shared.utils.logger import LoggerProtocol, ensure_logger, with_child_logger

# Convention : flux 0 = vidéo, flux 1 = audio ; les autres flux sont ignorés.
VIDEO_STREAM = 0
AUDIO_STREAM = 1
VIDEO_PAD = "[v]"
AUDIO_PAD = "[a]"


def concat_filter_graph(inputs: Sequence[str], count: int) -> str:
    """'[0:0] [0:1] [1:0] [1:1] concat=n=2:v=1:a=1 [v] [a]'"""
    return f"{' '.join(inputs)} concat=n={count}:v=1:a=1 {VIDEO_PAD} {AUDIO_PAD}"


@with_child_logger
def build_filter_command(
    *,
    output: Path,
    progress_file: Path,
    items: Sequence[ConcatItem],
    binary: str = "ffmpeg",
    logger: LoggerProtocol | None = None,
) -> list[str]:
    """
    Concaténation par filtre concat (ré-encodage, accepte des entrées hétérogènes).

    ffmpeg -y -strict experimental -progress <progress> -i a -i b \
        -filter_complex '[0:0] [0:1] [1:0] [1:1] concat=n=2:v=1:a=1 [v] [a]' \
        -map [v] -map [a] -strict experimental <output>
    """
    logger = ensure_logger(logger, __name__)

    # Entrées et références positionnelles construites dans la même passe :
    # l'occurrence i de -i correspond toujours à [i:…].
    input_args: list[str] = []
    stream_refs: list[str] = []
    for i, item in enumerate(items):
        input_args += ["-i", str(item.path)]
        stream_refs += [f"[{i}:{VIDEO_STREAM}]", f"[{i}:{AUDIO_STREAM}]"]

    cmd = [
        binary,
        "-y",
        "-strict",
        "experimental",
        "-progress",
        str(progress_file),
        *input_args,
        "-filter_complex",
        concat_filter_graph(stream_refs, len(items)),
        "-map",
        VIDEO_PAD,
        "-map",
        AUDIO_PAD,
        "-strict",
        "experimental",
        str(output),
    ]

    logger.debug("🎞️ ffmpeg concat filter command: %s", " ".join(cmd))
    return cmd

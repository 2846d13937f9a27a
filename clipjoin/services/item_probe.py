from __future__ import annotations

from pathlib import Path

from clipjoin.models_cj.item import ItemState, MediaItem, StreamDescriptor
from shared.executors.ffprobe_utils import ffprobe_json, get_duration, get_video_streams, invert_rate
from shared.models.exceptions import ClipJoinError
from shared.models.ffprobe import FFprobeData, FFprobeStream
from shared.utils.logger import LoggerProtocol, ensure_logger, with_child_logger

# ============================================================
# 🔎 Construction des éléments à partir de ffprobe
# ============================================================


def to_descriptor(stream: FFprobeStream) -> StreamDescriptor:
    """
    tbn = time_base du flux, tbr = r_frame_rate,
    tbc = codec_time_base (ffmpeg < 5) sinon l'inverse de avg_frame_rate.
    """
    tbc = stream.get("codec_time_base")
    if not tbc or tbc == "0/1":
        tbc = invert_rate(stream.get("avg_frame_rate"))
    return StreamDescriptor(
        width=int(stream.get("width", 0)),
        height=int(stream.get("height", 0)),
        codec_tag=stream.get("codec_tag_string"),
        tbn=stream.get("time_base"),
        tbc=tbc,
        tbr=stream.get("r_frame_rate"),
        index=stream.get("index"),
        codec_name=stream.get("codec_name"),
    )


def item_from_probe(path: Path, probe: FFprobeData) -> MediaItem:
    return MediaItem(
        path=path,
        state=ItemState.VALID,
        duration=get_duration(path, probe),
        video_streams=[to_descriptor(s) for s in get_video_streams(probe)],
    )


@with_child_logger
def probe_item(path: Path, ffprobe_binary: str = "ffprobe", logger: LoggerProtocol | None = None) -> MediaItem:
    """
    Analyse un fichier ; toute erreur d'analyse produit un élément INVALID (jamais d'exception).
    """
    logger = ensure_logger(logger, __name__)
    path = Path(path)
    try:
        item = item_from_probe(path, ffprobe_json(path, binary=ffprobe_binary))
    except ClipJoinError as err:
        logger.warning("⚠️ Analyse impossible pour %s : %s", path.name, err)
        return MediaItem(path=path, state=ItemState.INVALID)

    logger.debug(
        "🎞️ %s : %.1fs, %d flux vidéo",
        path.name,
        item.duration,
        len(item.video_streams),
    )
    return item


def probe_items(
    paths: list[Path], ffprobe_binary: str = "ffprobe", logger: LoggerProtocol | None = None
) -> list[MediaItem]:
    return [probe_item(p, ffprobe_binary=ffprobe_binary, logger=logger) for p in paths]

"""
Choix de la stratégie de concaténation.

Le concat demuxer (copie de flux) n'est applicable que si tous les flux vidéo
partagent largeur, hauteur, codec tag, TBN, TBC et TBR.
"""

from __future__ import annotations

from collections.abc import Sequence

from clipjoin.models_cj.item import ConcatItem, StreamDescriptor
from clipjoin.models_cj.plan import Strategy
from shared.utils.logger import LoggerProtocol, ensure_logger, with_child_logger


def streams_match(a: StreamDescriptor, b: StreamDescriptor) -> bool:
    return (
        a.width == b.width
        and a.height == b.height
        and a.codec_tag == b.codec_tag
        and a.tbn == b.tbn
        and a.tbc == b.tbc
        and a.tbr == b.tbr
    )


@with_child_logger
def select_strategy(items: Sequence[ConcatItem], logger: LoggerProtocol | None = None) -> Strategy:
    """
    Parcourt tous les flux vidéo dans l'ordre des éléments et les compare au premier rencontré.
    Le premier écart fait basculer sur FILTER sans examiner la suite.
    """
    logger = ensure_logger(logger, __name__)
    reference: StreamDescriptor | None = None

    for position, item in enumerate(items):
        for stream in item.video_streams:
            if reference is None:
                reference = stream
                continue
            if not streams_match(reference, stream):
                logger.info(
                    "🔀 Flux incompatibles (élément %d : %sx%s %s ≠ %sx%s %s) → filtre concat",
                    position,
                    stream.width,
                    stream.height,
                    stream.codec_tag,
                    reference.width,
                    reference.height,
                    reference.codec_tag,
                )
                return Strategy.FILTER

    logger.debug("✅ Flux vidéo compatibles → concat demuxer")
    return Strategy.DEMUXER

from __future__ import annotations

from typing import TypedDict

# ============================================================
# 🧩 TypedDict : structure FFprobe JSON
# ============================================================


class FFprobeFormat(TypedDict, total=False):
    filename: str
    duration: str
    bit_rate: str


class FFprobeStream(TypedDict, total=False):
    index: int
    codec_type: str
    codec_name: str
    codec_tag_string: str
    width: int
    height: int
    time_base: str
    codec_time_base: str
    r_frame_rate: str
    avg_frame_rate: str
    duration: str


class FFprobeData(TypedDict):
    streams: list[FFprobeStream]
    format: FFprobeFormat

"""
Validation et parsing des listes d'éléments pré-analysés
========================================================

- Un fichier JSON décrit les éléments dans l'ordre de concaténation
- Validation stricte avec Pydantic
- Tolère les champs inconnus et les métadonnées nulles (None)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from clipjoin.models_cj.item import ItemState, MediaItem, StreamDescriptor
from shared.models.exceptions import ClipJoinError, ErrCode, get_step_ctx
from shared.utils.logger import get_logger

logger = get_logger(__name__)


# ------------------------------------------------------------
# 🧩 STREAM
# ------------------------------------------------------------
class StreamModel(BaseModel):
    width: int
    height: int
    codec_tag: str | int | None = None
    tbn: str | None = None
    tbc: str | None = None
    tbr: str | None = None
    index: int | None = None
    codec_name: str | None = None

    class Config:
        extra = "ignore"

    def to_descriptor(self) -> StreamDescriptor:
        return StreamDescriptor(
            width=self.width,
            height=self.height,
            codec_tag=self.codec_tag,
            tbn=self.tbn,
            tbc=self.tbc,
            tbr=self.tbr,
            index=self.index,
            codec_name=self.codec_name,
        )


# ------------------------------------------------------------
# 🎞️ ITEM
# ------------------------------------------------------------
class ItemModel(BaseModel):
    path: Path
    state: ItemState = ItemState.VALID
    duration: float = Field(default=0.0, ge=0)
    video_streams: list[StreamModel] = Field(default_factory=list)

    class Config:
        extra = "ignore"

    def to_item(self) -> MediaItem:
        return MediaItem(
            path=self.path,
            state=self.state,
            duration=self.duration,
            video_streams=[s.to_descriptor() for s in self.video_streams],
        )


class ItemListModel(BaseModel):
    items: list[ItemModel] = Field(default_factory=list)

    class Config:
        extra = "ignore"


# ------------------------------------------------------------
# 🧠 Parsing
# ------------------------------------------------------------


def parse_items(data: dict[str, Any] | list[Any], source: str = "<memory>") -> list[MediaItem]:
    """
    Valide une liste d'éléments (objet {"items": [...]} ou liste brute).
    Les chemins relatifs restent relatifs : ils sont résolus par l'appelant.
    """
    payload = {"items": data} if isinstance(data, list) else data
    try:
        parsed = ItemListModel(**payload)
    except ValidationError as err:
        logger.warning("❌ Erreur validation éléments %s : %s", source, err)
        raise ClipJoinError(
            "Liste d'éléments invalide.",
            code=ErrCode.VALIDATION,
            ctx=get_step_ctx({"source": source, "errors": err.errors()}),
        ) from err

    items = [model.to_item() for model in parsed.items]
    logger.debug("✅ %d éléments chargés depuis %s", len(items), source)
    return items


def load_items(json_file: Path) -> list[MediaItem]:
    """Charge un fichier JSON d'éléments ; chemins relatifs résolus depuis son dossier."""
    json_file = Path(json_file)
    try:
        data = json.loads(json_file.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ClipJoinError(
            "Fichier d'éléments introuvable.",
            code=ErrCode.NOFILE,
            ctx=get_step_ctx({"path": str(json_file)}),
        ) from exc
    except json.JSONDecodeError as exc:
        raise ClipJoinError(
            "Fichier d'éléments illisible (JSON invalide).",
            code=ErrCode.BADFORMAT,
            ctx=get_step_ctx({"path": str(json_file), "error": str(exc)}),
        ) from exc

    if not isinstance(data, (dict, list)):
        raise ClipJoinError(
            "Fichier d'éléments illisible (objet ou liste attendu).",
            code=ErrCode.BADFORMAT,
            ctx=get_step_ctx({"path": str(json_file)}),
        )

    items = parse_items(data, source=json_file.name)
    for item in items:
        if not item.path.is_absolute():
            item.path = json_file.parent / item.path
    return items

"""
ConcatPlanner
=============

Valide une requête de concaténation, choisit la stratégie et construit la commande ffmpeg.

- Validation complète AVANT toute création de fichier temporaire
- Fichier de progression (et liste concat pour le demuxer) uniques par appel
- Remise au dispatcher optionnelle : `plan()` seul est une étape pure de construction
"""

from __future__ import annotations

import os
from pathlib import Path
import tempfile

from clipjoin.executors.demuxer_command import build_demuxer_command
from clipjoin.executors.filter_command import build_filter_command
from clipjoin.models_cj.item import ItemState
from clipjoin.models_cj.plan import ConcatPlan, ConcatRequest, Strategy
from clipjoin.process.dispatcher import JobDispatcher, JobHandle
from clipjoin.services.compatibility import select_strategy
from shared.models.exceptions import ClipJoinError, ErrCode, get_step_ctx
from shared.utils.logger import LoggerProtocol, get_logger
from shared.utils.settings import FfmpegSettings, TempSettings

MIN_ITEMS = 2


def remove_quietly(paths: list[Path], logger: LoggerProtocol) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Impossible de supprimer le fichier temporaire %s", path)


class ConcatPlanner:
    """Planifie (et éventuellement lance) la concaténation d'une liste ordonnée d'éléments."""

    def __init__(
        self,
        dispatcher: JobDispatcher | None = None,
        ffmpeg: FfmpegSettings | None = None,
        temp: TempSettings | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.ffmpeg = ffmpeg or FfmpegSettings()
        self.temp = temp or TempSettings()
        self.logger = logger or get_logger("ClipJoin-Planner")

    # ---------------------------------------------------------
    # ✅ Validation
    # ---------------------------------------------------------
    def validate(self, request: ConcatRequest) -> float:
        """
        Vérifie la requête et retourne la durée totale attendue (somme des durées).
        Lève ClipJoinError(code=VALIDATION), sans aucun effet de bord.
        """
        if len(request.items) < MIN_ITEMS:
            raise ClipJoinError(
                "Au moins deux vidéos sont nécessaires pour une concaténation.",
                code=ErrCode.VALIDATION,
                ctx=get_step_ctx({"item_count": len(request.items)}),
            )

        duration: float = 0
        for position, item in enumerate(request.items):
            if item.state != ItemState.VALID:
                raise ClipJoinError(
                    "Concaténation annulée ! Certains éléments sont invalides ou encore en cours d'analyse.",
                    code=ErrCode.VALIDATION,
                    ctx=get_step_ctx(
                        {
                            "position": position,
                            "path": str(item.path),
                            "state": getattr(item.state, "value", item.state),
                        }
                    ),
                )
            duration += item.duration

        if not request.output.parent.is_dir():
            raise ClipJoinError(
                "Dossier de destination introuvable.",
                code=ErrCode.VALIDATION,
                ctx=get_step_ctx({"output": str(request.output)}),
            )

        return duration

    # ---------------------------------------------------------
    # 🗂️ Fichiers temporaires
    # ---------------------------------------------------------
    def _allocate(self, prefix: str) -> Path:
        try:
            self.temp.tmp_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(prefix=prefix, dir=self.temp.tmp_dir)
            os.close(fd)
        except OSError as exc:
            raise ClipJoinError(
                "Impossible de créer un fichier temporaire.",
                code=ErrCode.IO,
                ctx=get_step_ctx({"tmp_dir": str(self.temp.tmp_dir), "prefix": prefix}),
            ) from exc
        return Path(name)

    # ---------------------------------------------------------
    # 🧠 Construction du plan
    # ---------------------------------------------------------
    def plan(self, request: ConcatRequest) -> ConcatPlan:
        duration = self.validate(request)
        strategy = select_strategy(request.items, logger=self.logger)

        allocated: list[Path] = []
        try:
            progress_file = self._allocate(self.temp.progress_prefix)
            allocated.append(progress_file)

            manifest_file: Path | None = None
            if strategy is Strategy.DEMUXER:
                manifest_file = self._allocate(self.temp.manifest_prefix)
                allocated.append(manifest_file)
                args = build_demuxer_command(
                    output=request.output,
                    progress_file=progress_file,
                    items=request.items,
                    manifest_file=manifest_file,
                    binary=self.ffmpeg.binary,
                    allow_unsafe_paths=self.ffmpeg.allow_unsafe_paths,
                    logger=self.logger,
                )
            else:
                args = build_filter_command(
                    output=request.output,
                    progress_file=progress_file,
                    items=request.items,
                    binary=self.ffmpeg.binary,
                    logger=self.logger,
                )
        except ClipJoinError as err:
            remove_quietly(allocated, self.logger)
            raise err.with_context(get_step_ctx({"output": str(request.output)}))

        self.logger.info(
            "🧾 Plan %s : %d éléments, durée attendue %.1fs → %s",
            strategy.value,
            len(request.items),
            duration,
            request.output.name,
        )
        return ConcatPlan(
            strategy=strategy,
            args=args,
            output=request.output,
            progress_file=progress_file,
            duration=duration,
            manifest_file=manifest_file,
        )

    # ---------------------------------------------------------
    # 🚀 Planification + remise au dispatcher
    # ---------------------------------------------------------
    def concat(self, request: ConcatRequest) -> JobHandle:
        """Construit le plan et le remet au dispatcher ; retourne dès que le job est accepté."""
        if self.dispatcher is None:
            raise RuntimeError("Aucun dispatcher fourni au ConcatPlanner.")

        plan = self.plan(request)
        try:
            return self.dispatcher.dispatch(
                plan.args,
                plan.output,
                plan.progress_file,
                plan.duration,
                side_files=plan.side_files,
            )
        except ClipJoinError as err:
            remove_quietly(plan.side_files, self.logger)
            raise err.with_context(get_step_ctx({"strategy": plan.strategy.value}))

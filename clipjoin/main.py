"""
main projet clipjoin
"""

from __future__ import annotations

import argparse
from collections.abc import Callable, Sequence
from pathlib import Path

from clipjoin.models_cj.item import MediaItem
from clipjoin.models_cj.items_parser import load_items
from clipjoin.models_cj.plan import ConcatRequest
from clipjoin.process.dispatcher import JobDispatcher
from clipjoin.process.ffmpeg_service import FfmpegService
from clipjoin.services.item_probe import probe_items
from clipjoin.services.planner import ConcatPlanner, remove_quietly
from clipjoin.services.progress import ProgressSnapshot
from shared.models.config_manager import ConfigManager, set_config
from shared.models.exceptions import ClipJoinError
from shared.utils.config import COLOR_CYAN, COLOR_GREEN, COLOR_RED, COLOR_RESET
from shared.utils.logger import LoggerProtocol, get_logger
from shared.utils.settings import Settings, get_settings, init_settings

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_FAILURE = 2


def _load_items(args: argparse.Namespace, settings: Settings, logger: LoggerProtocol) -> list[MediaItem]:
    if args.items:
        return load_items(Path(args.items))
    return probe_items([Path(p) for p in args.inputs], ffprobe_binary=settings.ffmpeg.ffprobe_binary, logger=logger)


def _log_progress(logger: LoggerProtocol) -> Callable[[ProgressSnapshot], None]:
    last = {"percent": -1.0}

    def on_progress(snapshot: ProgressSnapshot) -> None:
        percent = round(snapshot.percent, 1)
        if percent != last["percent"]:
            logger.info(
                f"{COLOR_CYAN}⏳ {percent:5.1f} % ({snapshot.out_time:.1f}s / {snapshot.duration:.1f}s){COLOR_RESET}"
            )
            last["percent"] = percent

    return on_progress


def run(args: argparse.Namespace, logger: LoggerProtocol) -> int:
    settings = get_settings()
    items = _load_items(args, settings, logger)

    output = Path(args.output)
    request = ConcatRequest(items=items, output=output)

    if args.plan_only:
        planner = ConcatPlanner(ffmpeg=settings.ffmpeg, temp=settings.temp, logger=logger)
        plan = planner.plan(request)
        print(plan.command_line())
        remove_quietly(plan.side_files, logger)
        return EXIT_OK

    if output.parent.is_dir():
        # Le fichier de destination doit exister avant le lancement du job
        output.touch(exist_ok=True)

    with FfmpegService(
        max_workers=settings.dispatch.max_workers,
        cleanup=settings.dispatch.cleanup,
        logger=logger,
    ) as service:
        planner = ConcatPlanner(
            dispatcher=JobDispatcher(service, logger=logger),
            ffmpeg=settings.ffmpeg,
            temp=settings.temp,
            logger=logger,
        )
        handle = planner.concat(request)
        try:
            result = handle.wait(poll_interval=settings.dispatch.poll_interval, on_progress=_log_progress(logger))
        finally:
            if settings.dispatch.cleanup:
                handle.cleanup()

    logger.info(f"{COLOR_GREEN}✅ Concaténation terminée → {result}{COLOR_RESET}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """
    main du projet clipjoin : configuration, planification, exécution et suivi.
    """
    args = parse_args(argv)
    logger = get_logger("ClipJoin")
    config = ConfigManager(config_dir=Path(args.config_dir) if args.config_dir else None, logger=logger)
    set_config(config)
    init_settings(config, logger=logger)

    try:
        return run(args, logger)
    except ClipJoinError as exc:
        if exc.user_facing:
            logger.error(f"{COLOR_RED}⛔ {exc.message}{COLOR_RESET}")
            return EXIT_VALIDATION
        logger.exception("[%s] %s | ctx=%r", exc.code.value, exc.message, exc.ctx)
        return EXIT_FAILURE


# ============================================================
# 🚀 CLI
# ============================================================
def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Concaténation de vidéos via ffmpeg (demuxer ou filtre concat)")
    parser.add_argument("output", help="Fichier de sortie")
    parser.add_argument("inputs", nargs="*", help="Vidéos à concaténer, dans l'ordre")
    parser.add_argument("--items", help="Fichier JSON d'éléments déjà analysés (remplace les entrées)")
    parser.add_argument("--config-dir", help="Dossier contenant clipjoin.yaml")
    parser.add_argument(
        "--plan-only",
        action="store_true",
        help="Affiche la commande ffmpeg sans l'exécuter",
    )
    args = parser.parse_args(argv)
    if args.items and args.inputs:
        parser.error("--items et une liste d'entrées sont exclusifs")
    return args


if __name__ == "__main__":
    raise SystemExit(main())

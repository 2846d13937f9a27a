"""
FfmpegService
=============

Facilité d'exécution en arrière-plan : exécute les commandes ffmpeg dans un pool de threads.

- `submit()` retourne immédiatement un Future
- ffmpeg écrit lui-même sa progression dans le fichier passé à `-progress`
- la liste concat (manifest) est supprimée dès la fin de l'exécution
- aucune nouvelle tentative en cas d'échec
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
import subprocess

from clipjoin.models_cj.job import ConcatJob
from shared.models.exceptions import ClipJoinError, ErrCode, get_step_ctx
from shared.models.timer_manager import Timer
from shared.utils.logger import LoggerProtocol, get_logger

STDERR_TAIL = 2000


class FfmpegService:
    def __init__(self, max_workers: int = 1, cleanup: bool = True, logger: LoggerProtocol | None = None) -> None:
        self.logger = logger or get_logger("ClipJoin-Ffmpeg")
        self.cleanup = cleanup
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="clipjoin-ffmpeg")

    def __enter__(self) -> FfmpegService:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.shutdown(wait=True)

    def submit(self, job: ConcatJob) -> Future[Path]:
        """Lève RuntimeError si le service est arrêté."""
        return self._pool.submit(self.run, job)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    # ---------------------------------------------------------
    # 🎬 Exécution
    # ---------------------------------------------------------
    def run(self, job: ConcatJob) -> Path:
        try:
            with Timer(f"concaténation {job.output.name} (job {job.uid})", self.logger):
                result = subprocess.run(
                    list(job.args),
                    capture_output=True,
                    text=True,
                    check=False,
                )
        except FileNotFoundError as exc:
            raise ClipJoinError(
                "Exécutable ffmpeg introuvable.",
                code=ErrCode.NOFILE,
                ctx=get_step_ctx({"job": job.uid, "binary": job.args[0] if job.args else None}),
            ) from exc
        finally:
            if self.cleanup:
                self._remove_side_files(job)

        if result.returncode != 0:
            self.logger.error("❌ ffmpeg concat failed: %s", result.stderr[-STDERR_TAIL:])
            raise ClipJoinError(
                "Erreur ffmpeg lors de la concaténation.",
                code=ErrCode.FFMPEG,
                ctx=get_step_ctx(
                    {
                        "job": job.uid,
                        "returncode": result.returncode,
                        "stderr": result.stderr[-STDERR_TAIL:],
                    }
                ),
            )

        self.logger.info("🎬 ffmpeg concat OK → %s", job.output.name)
        return job.output

    def _remove_side_files(self, job: ConcatJob) -> None:
        # Le fichier de progression reste lisible jusqu'au JobHandle.cleanup()
        for path in job.side_files:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                self.logger.warning("Impossible de supprimer le fichier temporaire %s", path)

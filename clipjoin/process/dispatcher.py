"""
JobDispatcher
=============

Frontière typée vers la facilité d'exécution en arrière-plan :
- reçoit la commande complète, la sortie, le fichier de progression et la durée attendue
- retourne immédiatement un JobHandle (accepté) ou lève ClipJoinError(DISPATCH) (refusé)
- n'interprète jamais les arguments
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
import time
from typing import Protocol

from clipjoin.models_cj.job import ConcatJob, JobStatus
from clipjoin.services.progress import ProgressSnapshot, read_progress
from shared.models.exceptions import ClipJoinError, ErrCode, get_step_ctx
from shared.utils.logger import LoggerProtocol, get_logger


class ExecutionFacility(Protocol):
    def submit(self, job: ConcatJob) -> Future[Path]: ...


class JobHandle:
    """Référence vers un job accepté : état, progression, résultat."""

    def __init__(self, job: ConcatJob, future: Future[Path], logger: LoggerProtocol) -> None:
        self.job = job
        self.future = future
        self.logger = logger

    @property
    def status(self) -> str:
        if self.future.cancelled():
            return JobStatus.CANCELLED
        if not self.future.done():
            return JobStatus.RUNNING if self.future.running() else JobStatus.ACCEPTED
        return JobStatus.FAILED if self.future.exception() is not None else JobStatus.DONE

    def done(self) -> bool:
        return self.future.done()

    def progress(self) -> ProgressSnapshot:
        return read_progress(self.job.progress_file, self.job.duration)

    def result(self, timeout: float | None = None) -> Path:
        try:
            return self.future.result(timeout=timeout)
        except CancelledError as exc:
            raise ClipJoinError(
                "Job de concaténation annulé.",
                code=ErrCode.DISPATCH,
                ctx=get_step_ctx({"job": self.job.uid}),
            ) from exc
        except FutureTimeoutError as exc:
            raise ClipJoinError(
                "Job de concaténation toujours en cours après le délai imparti.",
                code=ErrCode.DISPATCH,
                ctx=get_step_ctx({"job": self.job.uid, "timeout": timeout}),
            ) from exc

    def wait(
        self,
        poll_interval: float = 1.0,
        on_progress: Callable[[ProgressSnapshot], None] | None = None,
        timeout: float | None = None,
    ) -> Path:
        """
        Scrute le fichier de progression jusqu'à la fin du job, puis retourne la sortie.
        Délai `timeout` dépassé → ClipJoinError(DISPATCH), le job continue en arrière-plan.
        """
        start = time.monotonic()
        while not self.future.done():
            if on_progress is not None:
                on_progress(self.progress())
            if timeout is not None and time.monotonic() - start >= timeout:
                break
            time.sleep(poll_interval)
        if on_progress is not None and self.future.done() and not self.future.cancelled():
            on_progress(self.progress())
        remaining = None if timeout is None else max(0.0, timeout - (time.monotonic() - start))
        return self.result(timeout=remaining)

    def cleanup(self) -> None:
        """Supprime le fichier de progression et les artefacts du job (ne jamais réutiliser)."""
        for path in (self.job.progress_file, *self.job.side_files):
            try:
                path.unlink(missing_ok=True)
            except OSError:
                self.logger.warning("Impossible de supprimer le fichier temporaire %s", path)


class JobDispatcher:
    def __init__(self, facility: ExecutionFacility, logger: LoggerProtocol | None = None) -> None:
        self.facility = facility
        self.logger = logger or get_logger("ClipJoin-Dispatcher")

    def dispatch(
        self,
        args: Sequence[str],
        output: Path,
        progress_file: Path,
        duration: float,
        side_files: Sequence[Path] = (),
    ) -> JobHandle:
        job = ConcatJob(
            args=tuple(args),
            output=Path(output),
            progress_file=Path(progress_file),
            duration=duration,
            side_files=tuple(Path(p) for p in side_files if Path(p) != Path(progress_file)),
        )
        try:
            future = self.facility.submit(job)
        except ClipJoinError as err:
            raise err.with_context(get_step_ctx({"job": job.uid}))
        except RuntimeError as exc:
            raise ClipJoinError(
                "Job de concaténation refusé par la facilité d'exécution.",
                code=ErrCode.DISPATCH,
                ctx=get_step_ctx({"job": job.uid, "output": str(job.output)}),
            ) from exc

        self.logger.info("📬 Job %s accepté → %s (%.1fs attendues)", job.uid, job.output.name, duration)
        return JobHandle(job, future, self.logger)

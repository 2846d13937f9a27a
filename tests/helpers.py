from __future__ import annotations

from concurrent.futures import Future
from pathlib import Path

from clipjoin.models_cj.item import StreamDescriptor
from clipjoin.models_cj.job import ConcatJob


def descriptor(**overrides) -> StreamDescriptor:
    fields = {
        "width": 1920,
        "height": 1080,
        "codec_tag": "avc1",
        "tbn": "1/90000",
        "tbc": "1/60",
        "tbr": "30/1",
    }
    fields.update(overrides)
    return StreamDescriptor(**fields)


class ImmediateFacility:
    """Facilité d'exécution factice : accepte et termine le job immédiatement."""

    def __init__(self) -> None:
        self.jobs: list[ConcatJob] = []

    def submit(self, job: ConcatJob) -> Future[Path]:
        self.jobs.append(job)
        future: Future[Path] = Future()
        future.set_result(job.output)
        return future


class PendingFacility:
    """Accepte le job sans le terminer ; le test résout le Future lui-même."""

    def __init__(self) -> None:
        self.futures: list[Future[Path]] = []

    def submit(self, job: ConcatJob) -> Future[Path]:
        future: Future[Path] = Future()
        self.futures.append(future)
        return future


class RejectingFacility:
    def submit(self, job: ConcatJob) -> Future[Path]:
        raise RuntimeError("cannot schedule new futures after shutdown")

from __future__ import annotations

from pathlib import Path
import subprocess
import threading

import pytest

from clipjoin.models_cj.job import ConcatJob, JobStatus
from clipjoin.process.dispatcher import JobDispatcher
from clipjoin.process.ffmpeg_service import FfmpegService
from shared.models.exceptions import ClipJoinError, ErrCode
from tests.helpers import ImmediateFacility, PendingFacility, RejectingFacility


@pytest.fixture
def sink(tmp_path: Path) -> Path:
    path = tmp_path / "vc-pg"
    path.touch()
    return path


# ============================================================
# 📬 JobDispatcher
# ============================================================


def test_dispatch_passes_everything_through_untouched(tmp_path, sink):
    facility = ImmediateFacility()
    manifest = tmp_path / "vc-ls"
    args = ["ffmpeg", "-y", "-progress", str(sink), "out.mp4"]

    handle = JobDispatcher(facility).dispatch(args, tmp_path / "out.mp4", sink, 42.0, side_files=[sink, manifest])

    job = facility.jobs[0]
    assert list(job.args) == args
    assert job.progress_file == sink
    assert job.duration == 42.0
    assert job.side_files == (manifest,)
    assert handle.status == JobStatus.DONE
    assert handle.result() == tmp_path / "out.mp4"


def test_dispatch_returns_before_completion(tmp_path, sink):
    facility = PendingFacility()
    handle = JobDispatcher(facility).dispatch(["ffmpeg"], tmp_path / "out.mp4", sink, 10)

    assert not handle.done()
    assert handle.status == JobStatus.ACCEPTED

    sink.write_text("out_time_us=5000000\nprogress=continue\n", encoding="utf-8")
    assert handle.progress().percent == 50.0

    facility.futures[0].set_exception(ClipJoinError("boom", code=ErrCode.FFMPEG))
    assert handle.status == JobStatus.FAILED
    with pytest.raises(ClipJoinError):
        handle.result()


def test_rejected_dispatch(tmp_path, sink):
    with pytest.raises(ClipJoinError) as excinfo:
        JobDispatcher(RejectingFacility()).dispatch(["ffmpeg"], tmp_path / "out.mp4", sink, 10)
    assert excinfo.value.code is ErrCode.DISPATCH


def test_wait_reports_progress_until_done(tmp_path, sink):
    facility = PendingFacility()
    handle = JobDispatcher(facility).dispatch(["ffmpeg"], tmp_path / "out.mp4", sink, 10)
    seen = []

    def on_progress(snapshot):
        seen.append(snapshot.percent)
        if len(seen) == 2:
            sink.write_text("out_time_us=10000000\nprogress=end\n", encoding="utf-8")
            facility.futures[0].set_result(tmp_path / "out.mp4")

    assert handle.wait(poll_interval=0.01, on_progress=on_progress) == tmp_path / "out.mp4"
    assert seen[0] == 0.0
    assert seen[-1] == 100.0


def test_cancelled_job(tmp_path, sink):
    facility = PendingFacility()
    handle = JobDispatcher(facility).dispatch(["ffmpeg"], tmp_path / "out.mp4", sink, 10)
    facility.futures[0].cancel()
    assert handle.status == JobStatus.CANCELLED
    with pytest.raises(ClipJoinError) as excinfo:
        handle.result()
    assert excinfo.value.code is ErrCode.DISPATCH


def test_cleanup_removes_progress_and_side_files(tmp_path, sink):
    manifest = tmp_path / "vc-ls"
    manifest.write_text("file 'a'\n")
    handle = JobDispatcher(ImmediateFacility()).dispatch(
        ["ffmpeg"], tmp_path / "out.mp4", sink, 10, side_files=[manifest]
    )
    handle.cleanup()
    assert not sink.exists()
    assert not manifest.exists()


# ============================================================
# 🎬 FfmpegService
# ============================================================


def make_job(tmp_path: Path, sink: Path) -> ConcatJob:
    manifest = tmp_path / "vc-ls"
    manifest.write_text("file 'a'\n")
    return ConcatJob(
        args=("ffmpeg", "-y", "out.mp4"),
        output=tmp_path / "out.mp4",
        progress_file=sink,
        duration=10,
        side_files=(manifest,),
    )


def test_service_runs_job_in_background(monkeypatch, tmp_path, sink):
    calls = []
    release = threading.Event()

    def fake_run(cmd, capture_output, text, check):
        calls.append(cmd)
        release.wait(timeout=5)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr("clipjoin.process.ffmpeg_service.subprocess.run", fake_run)
    job = make_job(tmp_path, sink)

    with FfmpegService() as service:
        handle = JobDispatcher(service).dispatch(job.args, job.output, job.progress_file, 10, job.side_files)
        assert not handle.done()
        release.set()
        assert handle.result(timeout=5) == job.output

    assert calls == [["ffmpeg", "-y", "out.mp4"]]
    assert not job.side_files[0].exists()
    assert sink.exists()


def test_service_reports_ffmpeg_failure(monkeypatch, tmp_path, sink):
    def fake_run(cmd, capture_output, text, check):
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Unsafe file name")

    monkeypatch.setattr("clipjoin.process.ffmpeg_service.subprocess.run", fake_run)
    service = FfmpegService(cleanup=False)
    job = make_job(tmp_path, sink)

    with pytest.raises(ClipJoinError) as excinfo:
        service.run(job)

    assert excinfo.value.code is ErrCode.FFMPEG
    assert "Unsafe file name" in excinfo.value.ctx["stderr"]
    assert job.side_files[0].exists()
    service.shutdown()


def test_service_missing_binary(monkeypatch, tmp_path, sink):
    def fake_run(cmd, capture_output, text, check):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr("clipjoin.process.ffmpeg_service.subprocess.run", fake_run)
    service = FfmpegService()
    job = make_job(tmp_path, sink)

    with pytest.raises(ClipJoinError) as excinfo:
        service.run(job)

    assert excinfo.value.code is ErrCode.NOFILE
    assert not job.side_files[0].exists()
    service.shutdown()


def test_service_rejects_jobs_after_shutdown(tmp_path, sink):
    service = FfmpegService()
    service.shutdown()
    with pytest.raises(ClipJoinError) as excinfo:
        JobDispatcher(service).dispatch(["ffmpeg"], tmp_path / "out.mp4", sink, 10)
    assert excinfo.value.code is ErrCode.DISPATCH


def test_wait_timeout_is_a_dispatch_error(tmp_path, sink):
    facility = PendingFacility()
    handle = JobDispatcher(facility).dispatch(["ffmpeg"], tmp_path / "out.mp4", sink, 10)

    with pytest.raises(ClipJoinError) as excinfo:
        handle.wait(poll_interval=0.01, timeout=0.05)

    assert excinfo.value.code is ErrCode.DISPATCH
    assert handle.status == JobStatus.ACCEPTED

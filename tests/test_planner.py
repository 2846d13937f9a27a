from __future__ import annotations

import pytest

from clipjoin.models_cj.item import ItemState
from clipjoin.models_cj.plan import ConcatRequest, Strategy
from clipjoin.process.dispatcher import JobDispatcher
from clipjoin.services.planner import ConcatPlanner
from shared.models.exceptions import ClipJoinError, ErrCode
from shared.utils.settings import FfmpegSettings, TempSettings
from tests.helpers import ImmediateFacility, RejectingFacility, descriptor


def tmp_files(temp_settings: TempSettings) -> list:
    if not temp_settings.tmp_dir.exists():
        return []
    return sorted(temp_settings.tmp_dir.iterdir())


# ============================================================
# ✅ Validation
# ============================================================


@pytest.mark.parametrize("state", list(ItemState))
def test_fewer_than_two_items_is_rejected_whatever_the_state(make_item, output, temp_settings, state):
    planner = ConcatPlanner(temp=temp_settings)
    request = ConcatRequest(items=[make_item("a.mp4", state=state)], output=output)

    with pytest.raises(ClipJoinError) as excinfo:
        planner.plan(request)

    assert excinfo.value.code is ErrCode.VALIDATION
    assert excinfo.value.user_facing
    assert "deux" in excinfo.value.message
    assert tmp_files(temp_settings) == []


def test_empty_request_is_rejected(output, temp_settings):
    with pytest.raises(ClipJoinError) as excinfo:
        ConcatPlanner(temp=temp_settings).plan(ConcatRequest(items=[], output=output))
    assert excinfo.value.code is ErrCode.VALIDATION


@pytest.mark.parametrize("state", [ItemState.IN_PROGRESS, ItemState.INVALID])
def test_non_valid_item_cancels_without_side_effects(make_item, output, temp_settings, state):
    facility = ImmediateFacility()
    planner = ConcatPlanner(dispatcher=JobDispatcher(facility), temp=temp_settings)
    items = [make_item("a.mp4"), make_item("b.mp4", state=state), make_item("c.mp4")]

    with pytest.raises(ClipJoinError) as excinfo:
        planner.concat(ConcatRequest(items=items, output=output))

    assert excinfo.value.code is ErrCode.VALIDATION
    assert "annulée" in excinfo.value.message
    assert excinfo.value.ctx["position"] == 1
    assert facility.jobs == []
    assert tmp_files(temp_settings) == []


def test_missing_destination_directory_is_rejected(tmp_path, make_item, temp_settings):
    request = ConcatRequest(items=[make_item("a.mp4"), make_item("b.mp4")], output=tmp_path / "nope" / "out.mp4")
    with pytest.raises(ClipJoinError) as excinfo:
        ConcatPlanner(temp=temp_settings).plan(request)
    assert excinfo.value.code is ErrCode.VALIDATION
    assert tmp_files(temp_settings) == []


def test_planner_never_mutates_items(make_item, output, temp_settings):
    items = [make_item("a.mp4", 3), make_item("b.mp4", 4, streams=[descriptor(width=640)])]
    before = [(i.path, i.state, i.duration, list(i.video_streams)) for i in items]

    ConcatPlanner(temp=temp_settings).plan(ConcatRequest(items=items, output=output))

    assert [(i.path, i.state, i.duration, list(i.video_streams)) for i in items] == before


# ============================================================
# 🎬 Scénarios de bout en bout
# ============================================================


def test_scenario_identical_streams_use_demuxer(make_item, output, temp_settings):
    items = [make_item("a.mp4", 10), make_item("b.mp4", 20)]

    plan = ConcatPlanner(temp=temp_settings).plan(ConcatRequest(items=items, output=output))

    assert plan.strategy is Strategy.DEMUXER
    assert plan.duration == 30
    assert plan.manifest_file is not None
    assert len(plan.manifest_file.read_text(encoding="utf-8").splitlines()) == 2
    assert plan.manifest_file.name.startswith("vc-ls")
    assert plan.progress_file.name.startswith("vc-pg")
    assert plan.progress_file.exists()
    assert plan.args[-1] == str(output)
    assert "copy" in plan.args


def test_scenario_width_mismatch_uses_filter(make_item, output, temp_settings):
    items = [
        make_item("a.mp4", 5, streams=[descriptor(width=1920)]),
        make_item("b.mp4", 7, streams=[descriptor(width=1280)]),
    ]

    plan = ConcatPlanner(temp=temp_settings).plan(ConcatRequest(items=items, output=output))

    assert plan.strategy is Strategy.FILTER
    assert plan.duration == 12
    assert plan.manifest_file is None
    graph = plan.args[plan.args.index("-filter_complex") + 1]
    assert "[0:0] [0:1] [1:0] [1:1] concat=n=2:v=1:a=1" in graph
    assert plan.side_files == [plan.progress_file]


def test_fractional_durations_are_summed_exactly(make_item, output, temp_settings):
    items = [make_item("a.mp4", 1.5), make_item("b.mp4", 2.25), make_item("c.mp4", 0)]
    plan = ConcatPlanner(temp=temp_settings).plan(ConcatRequest(items=items, output=output))
    assert plan.duration == 3.75


def test_each_plan_gets_fresh_temporary_files(make_item, output, temp_settings):
    planner = ConcatPlanner(temp=temp_settings)
    request = ConcatRequest(items=[make_item("a.mp4"), make_item("b.mp4")], output=output)

    first = planner.plan(request)
    second = planner.plan(request)

    assert first.progress_file != second.progress_file
    assert first.manifest_file != second.manifest_file


def test_ffmpeg_settings_flow_into_command(make_item, output, temp_settings):
    planner = ConcatPlanner(ffmpeg=FfmpegSettings(binary="ffmpeg6", allow_unsafe_paths=True), temp=temp_settings)
    plan = planner.plan(ConcatRequest(items=[make_item("a.mp4"), make_item("b.mp4")], output=output))
    assert plan.args[0] == "ffmpeg6"
    assert ["-safe", "0"] == plan.args[6:8]


# ============================================================
# 💥 Erreurs I/O
# ============================================================


def test_unusable_temp_dir_is_io_error(tmp_path, make_item, output):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    planner = ConcatPlanner(temp=TempSettings(tmp_dir=blocker))

    with pytest.raises(ClipJoinError) as excinfo:
        planner.plan(ConcatRequest(items=[make_item("a.mp4"), make_item("b.mp4")], output=output))

    assert excinfo.value.code is ErrCode.IO
    assert not excinfo.value.user_facing


def test_manifest_failure_removes_progress_file(monkeypatch, make_item, output, temp_settings):
    def broken_write(manifest_file, items):
        raise ClipJoinError("disk full", code=ErrCode.IO)

    monkeypatch.setattr("clipjoin.executors.demuxer_command.write_manifest", broken_write)

    with pytest.raises(ClipJoinError) as excinfo:
        ConcatPlanner(temp=temp_settings).plan(
            ConcatRequest(items=[make_item("a.mp4"), make_item("b.mp4")], output=output)
        )

    assert excinfo.value.code is ErrCode.IO
    assert tmp_files(temp_settings) == []


# ============================================================
# 🚀 Remise au dispatcher
# ============================================================


def test_concat_hands_plan_to_dispatcher(make_item, output, temp_settings):
    facility = ImmediateFacility()
    planner = ConcatPlanner(dispatcher=JobDispatcher(facility), temp=temp_settings)

    handle = planner.concat(ConcatRequest(items=[make_item("a.mp4", 10), make_item("b.mp4", 20)], output=output))

    assert len(facility.jobs) == 1
    job = facility.jobs[0]
    assert job.output == output
    assert job.duration == 30
    assert job.args[job.args.index("-progress") + 1] == str(job.progress_file)
    assert len(job.side_files) == 1 and job.side_files[0].name.startswith("vc-ls")
    assert handle.result() == output


def test_rejected_dispatch_removes_temporary_files(make_item, output, temp_settings):
    planner = ConcatPlanner(dispatcher=JobDispatcher(RejectingFacility()), temp=temp_settings)

    with pytest.raises(ClipJoinError) as excinfo:
        planner.concat(ConcatRequest(items=[make_item("a.mp4"), make_item("b.mp4")], output=output))

    assert excinfo.value.code is ErrCode.DISPATCH
    assert tmp_files(temp_settings) == []


def test_concat_without_dispatcher_is_a_programming_error(make_item, output, temp_settings):
    with pytest.raises(RuntimeError):
        ConcatPlanner(temp=temp_settings).concat(
            ConcatRequest(items=[make_item("a.mp4"), make_item("b.mp4")], output=output)
        )

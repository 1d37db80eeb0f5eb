import threading
import time

import pytest

from muxq.errors import ProcessStartError
from muxq.utils.session_log import SessionLog
from muxq.workers.state import SchedulerState
from muxq.workers.supervisor import ProcessSupervisor

from conftest import FAKE_MKVMERGE, write_tool


@pytest.fixture
def harness(tmp_path):
    state = SchedulerState()
    lines, progress = [], []
    sup = ProcessSupervisor(
        state,
        SessionLog(tmp_path / "session.log"),
        lambda job_id, line: lines.append((job_id, line)),
        lambda job_id, pct: progress.append((job_id, pct)),
        poll_interval=0.05,
    )
    return state, sup, lines, progress


def test_streams_lines_and_progress(tmp_path, harness):
    state, sup, lines, progress = harness
    tool = write_tool(tmp_path / "mkvmerge", FAKE_MKVMERGE)
    code = sup.run("j1", [tool, "--output", str(tmp_path / "out.mkv")])
    assert code == 0
    assert progress == [("j1", 0), ("j1", 50), ("j1", 100)]
    assert ("j1", "warning line") in lines
    assert "#GUI#progress 50%" in (tmp_path / "session.log").read_text()
    assert state.live_processes == {}


def test_exit_code_is_returned(tmp_path, harness):
    _, sup, _, _ = harness
    tool = write_tool(tmp_path / "tool", "echo 'progress 250%'\nexit 3\n")
    assert sup.run("j1", [tool]) == 3


def test_spawn_failure(tmp_path, harness):
    _, sup, _, _ = harness
    with pytest.raises(ProcessStartError):
        sup.run("j1", [str(tmp_path / "missing-tool")])


def test_stop_kills_the_running_process(tmp_path, harness):
    state, sup, _, _ = harness
    tool = write_tool(tmp_path / "slow", "exec sleep 30\n")
    result = {}
    t = threading.Thread(target=lambda: result.setdefault("code", sup.run("j1", [tool])))
    started = time.monotonic()
    t.start()
    while "j1" not in state.live_processes and time.monotonic() - started < 5:
        time.sleep(0.01)
    for proc in state.request_stop():
        proc.kill()
    t.join(10)
    assert not t.is_alive()
    assert result["code"] != 0
    assert time.monotonic() - started < 10


def test_process_spawned_after_stop_is_killed(tmp_path, harness):
    state, sup, _, _ = harness
    state.request_stop()
    tool = write_tool(tmp_path / "slow", "exec sleep 30\n")
    assert sup.run("j1", [tool]) != 0

"""Shared fixtures: job builders and fake mkvmerge/mkvpropedit executables."""

import stat
import time
from pathlib import Path

import pytest
from PySide6.QtCore import Qt

from muxq.models.job import ExternalFile, FileKind, Job, PrimaryFile, Track, TrackKind
from muxq.utils.settings import MuxSettings
from muxq.workers.scheduler import MuxScheduler

V, A, S = TrackKind.VIDEO, TrackKind.AUDIO, TrackKind.SUBTITLE


def make_job(tracks=None, path="/media/movie.mkv", job_id="job-1", size=0, **externals) -> Job:
    return Job(id=job_id, primary=PrimaryFile(path=path, size_bytes=size, tracks=tracks or []), **externals)


def audio_file(path="/media/movie.eng.aac", **kw) -> ExternalFile:
    return ExternalFile(path=path, kind=FileKind.AUDIO, **kw)


def subtitle_file(path="/media/movie.eng.ass", **kw) -> ExternalFile:
    return ExternalFile(path=path, kind=FileKind.SUBTITLE, **kw)


def write_tool(path: Path, body: str) -> str:
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


FAKE_MKVMERGE = """\
out=""
while [ $# -gt 0 ]; do
  if [ "$1" = "--output" ]; then out="$2"; shift; fi
  shift
done
echo "#GUI#progress 0%"
echo "#GUI#progress 50%"
printf 'muxed' > "$out"
echo "#GUI#progress 100%"
echo "warning line" 1>&2
exit ${FAKE_EXIT:-0}
"""


@pytest.fixture
def fake_mkvmerge(tmp_path):
    return write_tool(tmp_path / "mkvmerge", FAKE_MKVMERGE)


@pytest.fixture
def media_file(tmp_path):
    src = tmp_path / "src" / "movie.mkv"
    src.parent.mkdir()
    src.write_bytes(b"original-content")
    return src


@pytest.fixture
def scheduler(tmp_path):
    sched = MuxScheduler(tmp_path / "session.log", probe=lambda path: None,
                         tool_check=lambda tool, arg: True, poll_interval=0.05)
    yield sched
    sched.stop()
    sched.wait(10)


class EventLog:
    def __init__(self, sched: MuxScheduler):
        self.events = []
        self.lines = []
        sched.progress.connect(self._on_progress, Qt.ConnectionType.DirectConnection)
        sched.log_line.connect(self._on_line, Qt.ConnectionType.DirectConnection)

    def _on_progress(self, ev):
        self.events.append(ev)

    def _on_line(self, job_id, line):
        self.lines.append((job_id, line))

    def for_job(self, job_id):
        return [e for e in list(self.events) if e.job_id == job_id]

    def statuses(self, job_id):
        return [e.status for e in self.for_job(job_id)]

    def wait_for(self, predicate, timeout=10.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.02)
        return False


@pytest.fixture
def event_log(scheduler):
    return EventLog(scheduler)


def settings(**kw) -> MuxSettings:
    return MuxSettings(**kw)


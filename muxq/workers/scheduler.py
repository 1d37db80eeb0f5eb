# muxq/workers/scheduler.py
import logging
import shlex
import threading
from functools import partial
from pathlib import Path
from typing import Callable

from PySide6.QtCore import QObject, Signal

from ..builders.mkvmerge import Probe, fast_path_eligible, synthesize
from ..builders.mkvpropedit import build_propedit_args
from ..builders.preview import join_command, preview_job
from ..errors import ConfigurationError, MuxError, ProcessError, ToolNotFoundError
from ..models.job import Job, JobStatus, PreviewResult, ProgressEvent
from ..utils.paths import OutputPaths, check_free_space, finalize_output, output_dir_for, resolve_output_paths
from ..utils.session_log import SessionLog
from ..utils.settings import MuxSettings
from .info_probe import probe_container, tool_available
from .state import SchedulerState
from .supervisor import POLL_INTERVAL, ProcessSupervisor

log = logging.getLogger(__name__)


class MuxScheduler(QObject):
    progress = Signal(object)        # ProgressEvent
    log_line = Signal(str, str)      # job id, line
    session_finished = Signal()

    def __init__(
        self,
        log_path: Path,
        probe: Probe | None = None,
        tool_check: Callable[[str, str], bool] = tool_available,
        poll_interval: float = POLL_INTERVAL,
    ):
        super().__init__()
        self.state = SchedulerState()
        self.session_log = SessionLog(log_path)
        self.probe = probe
        self.tool_check = tool_check
        self.poll_interval = poll_interval
        self.supervisor = ProcessSupervisor(
            self.state, self.session_log, self._on_tool_line, self._on_tool_progress, poll_interval
        )

    # ---- control -------------------------------------------------------

    @property
    def is_running(self) -> bool:
        with self.state.lock:
            return self.state.running

    def start(self, jobs: list[Job], settings: MuxSettings):
        self.session_log.clear()
        self.session_log.write("Starting muxing session")
        spawn = self.state.begin_session(jobs, settings.max_parallel_jobs)
        for job in jobs:
            self._emit(job.id, JobStatus.QUEUED)
        # workers still alive from a running session pick up the new queue
        for i in range(spawn):
            threading.Thread(
                target=self._worker_loop, args=(settings,), name=f"muxq-worker-{i}", daemon=True
            ).start()

    def pause(self):
        self.state.set_paused(True)

    def resume(self):
        self.state.set_paused(False)

    def stop(self):
        for proc in self.state.request_stop():
            proc.kill()
        self.session_log.write("Stop requested")

    def wait(self, timeout: float | None = None) -> bool:
        return self.state.idle.wait(timeout)

    def is_stalled(self) -> bool:
        """Paused with nothing in flight: only resume() or stop() moves it on."""
        state = self.state
        with state.lock:
            return state.running and state.paused and not state.live_processes

    def preview(self, jobs: list[Job], settings: MuxSettings) -> list[PreviewResult]:
        probe = self._probe_for(settings)
        return [preview_job(job, settings, probe, settings.mkvmerge_path) for job in jobs]

    # ---- events --------------------------------------------------------

    def _emit(self, job_id: str, status: JobStatus, percent: int = 0, message: str | None = None,
              final_size: int | None = None, error: str | None = None):
        self.progress.emit(ProgressEvent(job_id, status, percent, message, final_size, error))

    def _on_tool_line(self, job_id: str, line: str):
        self.log_line.emit(job_id, line)

    def _on_tool_progress(self, job_id: str, pct: int):
        self._emit(job_id, JobStatus.PROCESSING, pct)

    def _say(self, job_id: str, line: str):
        self.session_log.write(line)
        self.log_line.emit(job_id, line)

    # ---- session -------------------------------------------------------

    def _probe_for(self, settings: MuxSettings) -> Probe:
        return self.probe or partial(probe_container, mkvmerge=settings.mkvmerge_path)

    def _worker_loop(self, settings: MuxSettings):
        state = self.state
        while True:
            stopping = state.stop_requested
            if not stopping and state.is_paused() and state.has_pending():
                state.stop_event.wait(self.poll_interval)
                continue
            if not stopping and (job := state.next_job(self.poll_interval)) is not None:
                self._process_job(job, settings)
                continue
            if (remaining := state.retire_worker()) is None:
                continue
            if remaining == 0:
                self.session_log.write("Muxing session finished")
                self.session_finished.emit()
            return

    def _process_job(self, job: Job, settings: MuxSettings):
        if self.state.stop_requested:
            return
        self._emit(job.id, JobStatus.PROCESSING, 0, "Starting muxing")
        self.session_log.write(f"Starting job {job.id} for {job.primary.path}")
        try:
            self._mux(job, settings)
        except MuxError as e:
            self._fail(job, settings, e.message, e.detail)
        except OSError as e:
            self._fail(job, settings, "Finalizing output failed", str(e))

    def _fail(self, job: Job, settings: MuxSettings, message: str, detail: str):
        self.session_log.write(f"Job {job.id} failed: {message}: {detail}")
        self._emit(job.id, JobStatus.ERROR, 0, message, error=detail)
        if settings.abort_on_errors and not self.state.stop_requested:
            # running jobs finish; no new job starts until resumed
            self.state.set_paused(True)

    def _mux(self, job: Job, settings: MuxSettings):
        check_free_space(output_dir_for(job, settings), job.primary.size_bytes)
        if not settings.has_destination and not settings.overwrite_source:
            raise ConfigurationError(
                "Set a destination folder or enable overwrite source.", "Destination folder required"
            )

        paths = resolve_output_paths(job, settings)
        self.session_log.write(f"Output path: {paths.output}")

        if settings.use_mkvpropedit:
            if fast_path_eligible(job, settings):
                if self._run_fast_path(job, settings):
                    return
            else:
                self.session_log.write(
                    "Fast muxing requested but this job requires full mkvmerge "
                    "(fast mux works only for in-place metadata edits)."
                )
        self._run_mkvmerge(job, settings, paths)

    def _run_fast_path(self, job: Job, settings: MuxSettings) -> bool:
        tool = settings.mkvpropedit_path
        if not self.tool_check(tool, "-V"):
            raise ToolNotFoundError("mkvpropedit", "Install mkvpropedit or disable fast muxing.")
        if not (edit_args := build_propedit_args(job)):
            self.session_log.write("Fast mux requested but no track modifications detected. Falling back to mkvmerge.")
            return False

        cmd = [tool, job.primary.path, *edit_args]
        self._say(job.id, join_command(cmd[0], cmd[1:]))
        code = self.supervisor.run(job.id, cmd)
        if self.state.stop_requested and code != 0:
            raise ProcessError("Stopped before mkvpropedit finished", "Stopped")
        if code is None:
            raise ProcessError("Failed to wait for mkvpropedit", "mkvpropedit error")
        if code != 0:
            raise ProcessError(f"mkvpropedit exited with code: {code}", "mkvpropedit failed")

        size = Path(job.primary.path).stat().st_size
        self._emit(job.id, JobStatus.COMPLETED, 100, "Fast mux completed", size)
        self.session_log.write(f"Job {job.id} completed successfully")
        return True

    def _run_mkvmerge(self, job: Job, settings: MuxSettings, paths: OutputPaths):
        tool = settings.mkvmerge_path
        if not self.tool_check(tool, "-V"):
            raise ToolNotFoundError("mkvmerge", "Install mkvmerge (MKVToolNix) and try again.")

        synthesis = synthesize(job, settings, str(paths.output), self._probe_for(settings))
        self._log_job_plan(job, paths)
        self._say(job.id, join_command(tool, synthesis.arguments))

        code = self.supervisor.run(job.id, [tool, *synthesis.arguments])
        if self.state.stop_requested and code != 0:
            raise ProcessError("Stopped before mkvmerge finished", "Stopped")
        if code != 0:
            # in overwrite mode final is the untouched source
            produced = paths.output.exists() if paths.overwrite else paths.final.exists()
            if code is not None and code in settings.warning_exit_codes and produced:
                self.session_log.write(f"Job {job.id} completed with warnings (exit code {code})")
            else:
                self.session_log.write(f"Job {job.id} failed with exit code {code}")
                raise ProcessError(f"Process exited with code {code}", "Muxing failed")

        final, size = finalize_output(paths, job.primary.path, settings)
        self._emit(job.id, JobStatus.COMPLETED, 100, "Muxing completed", size)
        self.session_log.write(f"Job {job.id} completed successfully: {final}")

        if settings.keep_log_file and settings.has_destination:
            self.session_log.copy_to(Path(settings.destination_dir))

    def _log_job_plan(self, job: Job, paths: OutputPaths):
        def files(items) -> str:
            return "[" + ", ".join(
                f"{{path={shlex.quote(f.path)}, lang={f.language!r}, default={f.is_default!r}, "
                f"forced={f.is_forced!r}, name={f.track_name!r}}}"
                for f in items
            ) + "]"

        self.session_log.write(
            f"JOB PLAN: video={shlex.quote(job.primary.path)} output={shlex.quote(str(paths.output))} "
            f"audios={files(job.audios)} subtitles={files(job.subtitles)} "
            f"chapters=[{', '.join(shlex.quote(c.path) for c in job.chapters)}]"
        )

# muxq/workers/supervisor.py
import logging
import subprocess
import threading
from typing import Callable, IO

from ..errors import ProcessStartError
from ..parsers.progress import clamp_percent, parse_progress
from ..utils.session_log import SessionLog
from .state import SchedulerState

log = logging.getLogger(__name__)

POLL_INTERVAL = 0.2


class ProcessSupervisor:
    """Runs one external tool invocation for a job and watches it until exit or stop."""

    def __init__(
        self,
        state: SchedulerState,
        session_log: SessionLog,
        on_line: Callable[[str, str], None],
        on_progress: Callable[[str, int], None],
        poll_interval: float = POLL_INTERVAL,
    ):
        self.state = state
        self.session_log = session_log
        self.on_line = on_line
        self.on_progress = on_progress
        self.poll_interval = poll_interval

    def _pump(self, job_id: str, stream: IO[str]):
        for raw in stream:
            line = raw.rstrip("\r\n")
            self.session_log.write(line)
            self.on_line(job_id, line)
            if (pct := parse_progress(line)) is not None:
                self.on_progress(job_id, clamp_percent(pct))
        stream.close()

    def _wait(self, proc: subprocess.Popen) -> int | None:
        try:
            while True:
                if self.state.stop_requested:
                    proc.kill()
                    return proc.wait()
                if (code := proc.poll()) is not None:
                    return code
                # sleeping on the stop event wakes us as soon as a stop comes in
                self.state.stop_event.wait(self.poll_interval)
        except OSError as e:
            log.warning("waiting for pid %s failed: %s", proc.pid, e)
            return None

    def run(self, job_id: str, cmd: list[str]) -> int | None:
        """Exit code of ``cmd``, or None when waiting on it failed."""
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
                errors="replace",
            )
        except OSError as e:
            raise ProcessStartError(f"Failed to start process: {e}") from e

        readers = [
            threading.Thread(target=self._pump, args=(job_id, stream), daemon=True)
            for stream in (proc.stdout, proc.stderr)
        ]
        for t in readers:
            t.start()

        if not self.state.register_process(job_id, proc):
            proc.kill()
        try:
            code = self._wait(proc)
        finally:
            self.state.release_process(job_id)
            for t in readers:
                t.join(timeout=5)
        log.debug("job %s: %s exited with %s", job_id, cmd[0], code)
        return code

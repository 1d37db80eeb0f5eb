# muxq/workers/state.py
import queue
import subprocess
import threading

from ..models.job import Job


class SchedulerState:
    """Everything the workers of one session share, behind a single lock.

    The lock is only held for a read or an update, never across a wait.
    ``stop_event`` is also what the workers sleep on, so a stop wakes them.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.running = False
        self.paused = False
        self.active_workers = 0
        self.idle = threading.Event()
        self.idle.set()
        self.stop_event = threading.Event()
        self.pending: queue.Queue[Job] = queue.Queue()
        self.live_processes: dict[str, subprocess.Popen] = {}

    @property
    def stop_requested(self) -> bool:
        return self.stop_event.is_set()

    def is_paused(self) -> bool:
        with self.lock:
            return self.paused

    def set_paused(self, paused: bool):
        with self.lock:
            self.paused = paused

    def begin_session(self, jobs: list[Job], max_workers: int) -> int:
        """Load the queue; returns how many new workers the caller must start.

        Workers still alive keep running and drain the new queue, so only the
        shortfall up to ``min(max_workers, len(jobs))`` is spawned.
        """
        with self.lock:
            self.pending = queue.Queue()
            for job in jobs:
                self.pending.put(job)
            self.paused = False
            self.stop_event.clear()
            spawn = max(0, min(max_workers, len(jobs)) - self.active_workers)
            self.active_workers += spawn
            self.running = self.active_workers > 0
            if self.running:
                self.idle.clear()
            return spawn

    def retire_worker(self) -> int | None:
        """Let a worker leave; None while it still has queued work to do.

        Returns the number of workers left. The last one out ends the session.
        """
        with self.lock:
            if not self.stop_event.is_set() and not self.pending.empty():
                return None
            self.active_workers -= 1
            if self.active_workers == 0:
                self.running = False
                self.live_processes.clear()
                self.idle.set()
            return self.active_workers

    def next_job(self, timeout: float) -> Job | None:
        with self.lock:
            pending = self.pending
        try:
            return pending.get(timeout=timeout)
        except queue.Empty:
            return None

    def has_pending(self) -> bool:
        with self.lock:
            return not self.pending.empty()

    def register_process(self, job_id: str, proc: subprocess.Popen) -> bool:
        """Track a spawned process; False if a stop already came in."""
        with self.lock:
            if self.stop_event.is_set():
                return False
            self.live_processes[job_id] = proc
            return True

    def release_process(self, job_id: str):
        with self.lock:
            self.live_processes.pop(job_id, None)

    def request_stop(self) -> list[subprocess.Popen]:
        with self.lock:
            self.stop_event.set()
            procs = list(self.live_processes.values())
            self.live_processes.clear()
        return procs

# muxq/utils/session_log.py
import logging
import shutil
import threading
from pathlib import Path

log = logging.getLogger(__name__)

LOG_COPY_NAME = "muxing_log_file.txt"


class SessionLog:
    """Plain-text, append-only log of one muxing session.

    Writes are best effort: a failing log must never stop a mux.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def clear(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("", encoding="utf-8")
        except OSError as e:
            log.warning("could not reset session log %s: %s", self.path, e)

    def write(self, line: str):
        with self._lock:
            try:
                with open(self.path, "a", encoding="utf-8") as lf:
                    lf.write(f"{line}\n")
            except OSError:
                pass

    def copy_to(self, directory: Path) -> Path | None:
        target = Path(directory) / LOG_COPY_NAME
        try:
            shutil.copyfile(self.path, target)
        except OSError:
            return None
        return target

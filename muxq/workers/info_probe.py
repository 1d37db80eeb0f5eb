# muxq/workers/info_probe.py
import json
import logging
import subprocess

from PySide6.QtCore import QObject, Signal

from ..parsers.mkvmerge_info import ContainerInfo, container_info_from_json

log = logging.getLogger(__name__)


def tool_available(tool: str, version_arg: str = "-V") -> bool:
    try:
        result = subprocess.run(
            [tool, version_arg],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=30,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return result.returncode == 0


def probe_container(path: str, mkvmerge: str = "mkvmerge") -> ContainerInfo | None:
    """``mkvmerge -J`` summary of ``path``; None when the tool or file is unusable."""
    try:
        out = subprocess.check_output([mkvmerge, "-J", path], stderr=subprocess.DEVNULL, text=True, timeout=180)
        data = json.loads(out)
    except (OSError, subprocess.SubprocessError, ValueError) as e:
        log.debug("probe of %s failed: %s", path, e)
        return None
    return container_info_from_json(path, data)


class InfoProbeWorker(QObject):
    probed = Signal(str, object, str)  # path, ContainerInfo | None, err

    def __init__(self, settings: dict):
        super().__init__()
        self.settings = settings

    def probe(self, path: str):
        mkvmerge = self.settings.get("mkvmerge_path", "mkvmerge")
        err = ""; info = None
        if not tool_available(mkvmerge):
            err = "mkvmerge not found (check settings)."
        elif (info := probe_container(path, mkvmerge)) is None:
            err = f"mkvmerge could not identify {path}."
        self.probed.emit(path, info, err)

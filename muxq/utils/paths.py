# muxq/utils/paths.py
import os
import re
import shutil
import time
import zlib
from pathlib import Path
from typing import NamedTuple

from ..errors import InsufficientSpaceError
from ..models.job import Job
from .settings import MuxSettings

OUT_EXT = ".mkv"
_CRC_TAG = re.compile(r"\s*\[[^\[\]]*\]$")


class OutputPaths(NamedTuple):
    """Where mkvmerge writes, and where the result ends up."""
    output: Path              # path handed to mkvmerge --output
    final: Path               # name after finalization (before CRC stamping)
    overwrite: bool           # output is a temp file that replaces the source


def output_dir_for(job: Job, settings: MuxSettings) -> Path:
    if settings.has_destination:
        return Path(settings.destination_dir)
    return Path(job.primary.path).parent

def resolve_output_paths(job: Job, settings: MuxSettings, now: float | None = None) -> OutputPaths:
    out_dir = output_dir_for(job, settings)
    stem = Path(job.primary.path).stem or "output"
    final = out_dir / f"{stem}{OUT_EXT}"
    if settings.overwrite_mode:
        suffix = int(time.time() if now is None else now)
        return OutputPaths(out_dir / f"{stem}#{suffix}{OUT_EXT}", final, True)
    return OutputPaths(final, final, False)

def check_free_space(directory: Path, required_bytes: int) -> None:
    try:
        free = shutil.disk_usage(directory).free
    except OSError as e:
        raise InsufficientSpaceError(f"Failed to read free space: {e}") from e
    if free < required_bytes:
        raise InsufficientSpaceError(f"Not enough free space. Required: {required_bytes} bytes")

def compute_crc(path: Path, chunk_size: int = 1024 * 1024) -> str:
    crc = 0
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            crc = zlib.crc32(chunk, crc)
    return f"{crc & 0xFFFFFFFF:08X}"

def name_with_crc(path: Path, crc: str) -> Path:
    return path.with_name(f"{path.stem} [{crc}]{path.suffix}")

def name_without_crc(path: Path) -> Path:
    stem = _CRC_TAG.sub("", path.stem).strip() or path.stem
    return path.with_name(f"{stem}{path.suffix}")

def finalize_output(paths: OutputPaths, source: str, settings: MuxSettings) -> tuple[Path, int]:
    """Move the muxed file into place and stamp/strip the CRC; returns (path, size)."""
    if paths.overwrite and paths.output.exists():
        os.replace(paths.output, paths.final)
        src = Path(source)
        if src.exists() and src.resolve() != paths.final.resolve():
            src.unlink()

    result = paths.final
    if settings.add_crc and result.exists():
        stamped = name_with_crc(result, compute_crc(result))
        result.rename(stamped)
        result = stamped
    elif settings.remove_old_crc and result.exists():
        stripped = name_without_crc(result)
        if stripped != result:
            result.rename(stripped)
            result = stripped
    return result, result.stat().st_size

def normalize_extensions(extensions: list[str]) -> set[str]:
    return {e.strip().lstrip(".").lower() for e in extensions if e.strip().lstrip(".")}

def scan_media(folder: Path, extensions: list[str], recursive: bool = False, max_depth: int = 64) -> list[Path]:
    """Files under ``folder`` whose extension is listed ("all" or none => every file)."""
    wanted = normalize_extensions(extensions)
    match_all = not wanted or "all" in wanted
    found: list[Path] = []

    def _walk(current: Path, depth: int) -> None:
        try:
            entries = sorted(current.iterdir())
        except (PermissionError, OSError):
            # Skip directories we can't access
            return
        for item in entries:
            if item.is_file():
                if match_all or item.suffix.lstrip(".").lower() in wanted:
                    found.append(item)
            elif item.is_dir() and recursive and depth < max_depth:
                _walk(item, depth + 1)

    if folder.is_dir():
        _walk(folder, 0)
    return found

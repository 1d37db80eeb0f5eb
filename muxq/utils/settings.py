# muxq/utils/settings.py
import json
from dataclasses import dataclass, field, fields
from pathlib import Path

# Top directory = folder that contains the `muxq/` package
def _top_dir() -> Path:
    # This file is muxq/utils/settings.py → parents[2] is the folder above muxq/
    return Path(__file__).resolve().parents[2]

APP_SETTINGS_FILE = _top_dir() / "muxq_settings.json"

DEFAULT_SETTINGS = {
    # Tools
    "mkvmerge_path": "mkvmerge",
    "mkvpropedit_path": "mkvpropedit",

    # Session log, cleared at the start of every session
    "log_path": str(_top_dir() / "muxing_log_file.txt"),

    # Mux defaults
    "destination_dir": "",             # empty => overwrite the source files
    "overwrite_source": False,
    "add_crc": False,
    "remove_old_crc": False,
    "keep_log_file": False,
    "abort_on_errors": False,
    "max_parallel_jobs": 1,
    "only_keep_audios_enabled": False,
    "only_keep_audio_languages": [],
    "only_keep_subtitles_enabled": False,
    "only_keep_subtitle_languages": [],
    "discard_old_chapters": False,
    "discard_old_attachments": False,
    "remove_global_tags": False,
    "make_audio_default_language": None,
    "make_subtitle_default_language": None,
    "use_mkvpropedit": False,          # fast path: in-place metadata edits
    "warning_exit_codes": [1],         # mkvmerge: 1 => finished with warnings
}


@dataclass
class MuxSettings:
    destination_dir: str = ""
    overwrite_source: bool = False
    add_crc: bool = False
    remove_old_crc: bool = False
    keep_log_file: bool = False
    abort_on_errors: bool = False
    max_parallel_jobs: int = 1
    only_keep_audios_enabled: bool = False
    only_keep_audio_languages: list[str] = field(default_factory=list)
    only_keep_subtitles_enabled: bool = False
    only_keep_subtitle_languages: list[str] = field(default_factory=list)
    discard_old_chapters: bool = False
    discard_old_attachments: bool = False
    remove_global_tags: bool = False
    make_audio_default_language: str | None = None
    make_subtitle_default_language: str | None = None
    use_mkvpropedit: bool = False
    warning_exit_codes: list[int] = field(default_factory=lambda: [1])
    mkvmerge_path: str = "mkvmerge"
    mkvpropedit_path: str = "mkvpropedit"

    @classmethod
    def from_dict(cls, data: dict) -> "MuxSettings":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        if "max_parallel_jobs" in values:
            values["max_parallel_jobs"] = max(1, int(values["max_parallel_jobs"]))
        if "warning_exit_codes" in values:
            values["warning_exit_codes"] = [int(c) for c in values["warning_exit_codes"]]
        return cls(**values)

    @property
    def has_destination(self) -> bool:
        return bool(self.destination_dir.strip())

    @property
    def overwrite_mode(self) -> bool:
        return not self.has_destination or self.overwrite_source

    @property
    def in_place_allowed(self) -> bool:
        # mkvpropedit edits the source itself; only when explicitly overwriting
        return not self.has_destination and self.overwrite_source

    @property
    def audio_keep_languages(self) -> list[str] | None:
        if self.only_keep_audios_enabled and self.only_keep_audio_languages:
            return list(self.only_keep_audio_languages)
        return None

    @property
    def subtitle_keep_languages(self) -> list[str] | None:
        if self.only_keep_subtitles_enabled and self.only_keep_subtitle_languages:
            return list(self.only_keep_subtitle_languages)
        return None


def load_settings(path: Path | None = None) -> dict:
    p = path or APP_SETTINGS_FILE
    if p.exists():
        try:
            data = json.loads(p.read_text())
            return {**DEFAULT_SETTINGS, **data}
        except (OSError, ValueError):
            pass
    # First run or broken file → write defaults so the file exists
    try:
        p.write_text(json.dumps(DEFAULT_SETTINGS, indent=2))
    except OSError:
        pass
    return DEFAULT_SETTINGS.copy()

def save_settings(data: dict, path: Path | None = None) -> None:
    (path or APP_SETTINGS_FILE).write_text(json.dumps(data, indent=2))

# muxq/models/job.py
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class TrackKind(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLE = "subtitle"


class FileKind(str, Enum):
    AUDIO = "audio"
    SUBTITLE = "subtitle"
    CHAPTER = "chapter"
    ATTACHMENT = "attachment"


class Scope(str, Enum):
    BULK = "bulk"
    PER_PRIMARY = "per-file"


class TrackAction(str, Enum):
    KEEP = "keep"
    REMOVE = "remove"


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class Track:
    index: int  # mkvmerge track id, 0-based
    kind: TrackKind
    language: str | None = None
    name: str | None = None
    is_default: bool | None = None
    is_forced: bool | None = None
    codec: str | None = None
    bitrate_bps: int | None = None
    action: TrackAction = TrackAction.KEEP

    @property
    def removed(self) -> bool:
        return self.action is TrackAction.REMOVE


@dataclass(frozen=True)
class TrackOverride:
    language: str | None = None
    track_name: str | None = None
    delay_seconds: float | None = None


@dataclass
class ExternalFile:
    path: str
    kind: FileKind
    scope: Scope = Scope.BULK
    track_ids: list[int] | None = None  # None => not specified, [] => nothing
    track_id: int | None = None
    language: str | None = None
    track_name: str | None = None
    delay_seconds: float | None = None
    is_default: bool | None = None
    is_forced: bool | None = None
    overrides: dict[int, TrackOverride] = field(default_factory=dict)
    include_subtitles: bool = False
    subtitle_track_ids: list[int] | None = None
    size_bytes: int | None = None


@dataclass
class PrimaryFile:
    path: str
    size_bytes: int = 0
    tracks: list[Track] = field(default_factory=list)
    duration: str | None = None
    fps: float | None = None

    def tracks_of(self, kind: TrackKind) -> list[Track]:
        return [t for t in self.tracks if t.kind is kind]

    @property
    def name(self) -> str:
        return Path(self.path).name


@dataclass
class Job:
    id: str
    primary: PrimaryFile
    audios: list[ExternalFile] = field(default_factory=list)
    subtitles: list[ExternalFile] = field(default_factory=list)
    chapters: list[ExternalFile] = field(default_factory=list)
    attachments: list[ExternalFile] = field(default_factory=list)

    @property
    def has_external_files(self) -> bool:
        return bool(self.audios or self.subtitles or self.chapters or self.attachments)


@dataclass
class ResolvedEntry:
    """One (file, track id) pair pulled from an external audio/subtitle file."""
    file: ExternalFile
    track_id: int
    apply_language: bool = True
    is_default: bool | None = None
    is_forced: bool | None = None

    @property
    def override(self) -> TrackOverride | None:
        return self.file.overrides.get(self.track_id)


@dataclass(frozen=True)
class ProgressEvent:
    job_id: str
    status: JobStatus
    percent: int = 0
    message: str | None = None
    final_size_bytes: int | None = None
    error_detail: str | None = None


@dataclass
class PreviewPlan:
    primary: str
    output: str
    audios: list[ExternalFile] = field(default_factory=list)
    subtitles: list[ExternalFile] = field(default_factory=list)
    chapters: list[ExternalFile] = field(default_factory=list)
    attachments: list[ExternalFile] = field(default_factory=list)


@dataclass
class PreviewResult:
    job_id: str
    command_line: str
    warnings: list[str]
    plan: PreviewPlan

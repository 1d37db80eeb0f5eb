# muxq/models/request.py
"""Ingestion of mux requests in the queue's JSON shape.

A request is ``{"settings": {...}, "jobs": [...]}`` with camelCase keys, the
same payload the queue front end submits. Track ids and override keys are
validated here so the builders only ever see integers.
"""
import re

from ..utils.settings import MuxSettings
from .job import (
    ExternalFile, FileKind, Job, PrimaryFile, Scope, Track, TrackAction,
    TrackKind, TrackOverride,
)

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")

_TRACK_KINDS = {
    "video": TrackKind.VIDEO,
    "audio": TrackKind.AUDIO,
    "subtitle": TrackKind.SUBTITLE,
    "subtitles": TrackKind.SUBTITLE,
}


def snake_keys(data: dict) -> dict:
    return {_CAMEL.sub("_", k).lower(): v for k, v in data.items()}


def parse_track_id(value, fallback: int | None = None) -> int:
    if value is None or value == "":
        if fallback is None:
            raise ValueError("track id missing")
        return fallback
    if isinstance(value, bool):
        raise ValueError(f"invalid track id: {value!r}")
    if isinstance(value, int):
        track_id = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            raise ValueError(f"invalid track id: {value!r}")
        track_id = int(text)
    if track_id < 0:
        raise ValueError(f"invalid track id: {value!r}")
    return track_id


def _id_list(values) -> list[int] | None:
    if values is None:
        return None
    return [parse_track_id(v) for v in values]


def track_from_dict(data: dict, position: int) -> Track:
    kind = _TRACK_KINDS.get(str(data.get("type", "")).lower())
    if kind is None:
        raise ValueError(f"unknown track type: {data.get('type')!r}")
    action = TrackAction.REMOVE if data.get("action") == "remove" else TrackAction.KEEP
    return Track(
        index=parse_track_id(data.get("id"), position),
        kind=kind,
        language=data.get("language"),
        name=data.get("name"),
        is_default=data.get("isDefault"),
        is_forced=data.get("isForced"),
        codec=data.get("codec"),
        bitrate_bps=data.get("bitrate"),
        action=action,
    )


def external_from_dict(data: dict, kind: FileKind) -> ExternalFile:
    overrides = {}
    for key, value in (data.get("trackOverrides") or {}).items():
        overrides[parse_track_id(key)] = TrackOverride(
            language=value.get("language"),
            track_name=value.get("trackName"),
            delay_seconds=value.get("delay"),
        )
    track_id = data.get("trackId")
    return ExternalFile(
        path=data["path"],
        kind=kind,
        scope=Scope.PER_PRIMARY if data.get("source") == Scope.PER_PRIMARY.value else Scope.BULK,
        track_ids=_id_list(data.get("includedTrackIds")),
        track_id=None if track_id is None else parse_track_id(track_id),
        language=data.get("language"),
        track_name=data.get("trackName"),
        delay_seconds=data.get("delay"),
        is_default=data.get("isDefault"),
        is_forced=data.get("isForced"),
        overrides=overrides,
        include_subtitles=bool(data.get("includeSubtitles")),
        subtitle_track_ids=_id_list(data.get("includedSubtitleTrackIds")),
        size_bytes=data.get("size"),
    )


def job_from_dict(data: dict) -> Job:
    video = data["video"]
    primary = PrimaryFile(
        path=video["path"],
        size_bytes=int(video.get("size") or 0),
        tracks=[track_from_dict(t, i) for i, t in enumerate(video.get("tracks") or [])],
        duration=video.get("duration"),
        fps=video.get("fps"),
    )
    return Job(
        id=str(data["id"]),
        primary=primary,
        audios=[external_from_dict(a, FileKind.AUDIO) for a in data.get("audios") or []],
        subtitles=[external_from_dict(s, FileKind.SUBTITLE) for s in data.get("subtitles") or []],
        chapters=[external_from_dict(c, FileKind.CHAPTER) for c in data.get("chapters") or []],
        attachments=[external_from_dict(a, FileKind.ATTACHMENT) for a in data.get("attachments") or []],
    )


def request_from_dict(data: dict, defaults: dict | None = None) -> tuple[MuxSettings, list[Job]]:
    """Settings and jobs of a request; request settings win over ``defaults``."""
    settings = MuxSettings.from_dict({**(defaults or {}), **snake_keys(data.get("settings") or {})})
    return settings, [job_from_dict(j) for j in data.get("jobs") or []]

# muxq/builders/mkvmerge.py
"""mkvmerge argument synthesis.

mkvmerge applies per-track options to the file that follows them, so the
order of the emitted arguments decides which file an edit lands on. The
layout produced here is::

    --gui-mode --output OUT
    [container strip flags] [default-flag rewrites] [track selection]
    [primary track edits] [--track-order ...] PRIMARY
    (per external audio entry)    [exclusive-kind flags + edits] AUDIO_FILE
    (per external subtitle entry) [exclusive-kind flags + edits] SUB_FILE
    (--chapters FILE [--sync 0:MS])* (--attach-file FILE)*
"""
import logging
from dataclasses import dataclass
from typing import Callable

from ..models.job import ExternalFile, Job, ResolvedEntry, Scope, TrackKind
from ..parsers.mkvmerge_info import ContainerInfo
from ..utils.settings import MuxSettings
from .selection import Selection, ids_by_language, select_tracks

log = logging.getLogger(__name__)

Probe = Callable[[str], ContainerInfo | None]

# Only the targeted track is pulled from an external file
_EXCLUSIVE_FLAGS = {
    TrackKind.AUDIO: ["--no-video", "--no-subtitles", "--no-chapters", "--no-attachments", "--no-global-tags"],
    TrackKind.SUBTITLE: ["--no-video", "--no-audio", "--no-chapters", "--no-attachments", "--no-global-tags"],
}

_TRACK_SELECT = {
    TrackKind.AUDIO: "--audio-tracks",
    TrackKind.SUBTITLE: "--subtitle-tracks",
}


@dataclass
class Synthesis:
    arguments: list[str]
    fast_path_eligible: bool
    audio_entries: list[ResolvedEntry]
    subtitle_entries: list[ResolvedEntry]


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def _delay_ms(seconds: float) -> int:
    return int(seconds * 1000)


def fast_path_eligible(job: Job, settings: MuxSettings) -> bool:
    return (
        settings.in_place_allowed
        and not job.has_external_files
        and settings.audio_keep_languages is None
        and settings.subtitle_keep_languages is None
    )


def _probed_ids(file: ExternalFile, kind: TrackKind, probe: Probe | None) -> list[int] | None:
    if probe is None:
        return None
    if (info := probe(file.path)) is None:
        return None
    return [t.index for t in info.tracks if t.kind is kind]


def resolve_entries(file: ExternalFile, kind: TrackKind, probe: Probe | None = None) -> list[ResolvedEntry]:
    """Expand one external file into the (file, track id) entries it contributes."""
    if file.track_ids is not None:
        if not file.track_ids:
            return []
        ids = list(file.track_ids)
    elif (probed := _probed_ids(file, kind, probe)) is not None:
        if len(probed) > 1:
            ids = probed
        elif file.track_id is not None:
            ids = [file.track_id]
        else:
            ids = probed
    elif file.track_id is not None:
        ids = [file.track_id]
    else:
        ids = []
    if not ids:
        ids = [0]

    entries = []
    for n, track_id in enumerate(ids):
        is_default = file.is_default
        if file.is_default:
            # extra tracks of the same file are not extra defaults
            is_default = n == 0
        entries.append(ResolvedEntry(file=file, track_id=track_id, apply_language=n == 0,
                                   is_default=is_default, is_forced=file.is_forced))
    return entries


def _embedded_subtitle_entries(audio: ExternalFile, probe: Probe | None) -> list[ResolvedEntry]:
    if not audio.include_subtitles:
        return []
    if audio.subtitle_track_ids is not None:
        ids = list(audio.subtitle_track_ids)
    else:
        ids = _probed_ids(audio, TrackKind.SUBTITLE, probe) or []
    return [ResolvedEntry(file=audio, track_id=i, apply_language=False, is_default=None) for i in ids]


def _primary_edits(job: Job) -> list[str]:
    args: list[str] = []
    for track in job.primary.tracks:
        if track.removed:
            continue
        tid = track.index
        if track.name is not None and track.name.strip():
            args += ["--track-name", f"{tid}:{track.name}"]
        if track.language is not None:
            args += ["--language", f"{tid}:{track.language}"]
        if track.is_default is not None:
            args += ["--default-track-flag", f"{tid}:{_yes_no(track.is_default)}"]
        if track.is_forced is not None:
            flag = "--forced-display-flag" if track.kind is TrackKind.SUBTITLE else "--forced-track-flag"
            args += [flag, f"{tid}:{_yes_no(track.is_forced)}"]
    return args


def _track_order(
    selections: dict[TrackKind, Selection], audios: list[ResolvedEntry], subtitles: list[ResolvedEntry]
) -> list[str]:
    def kept(kind: TrackKind) -> list[str]:
        return [f"0:{i}" for i in selections[kind].selected_ids]

    def split(entries: list[ResolvedEntry], first_index: int) -> tuple[list[str], list[str]]:
        bulk, per_primary = [], []
        for n, entry in enumerate(entries):
            token = f"{first_index + n}:{entry.track_id}"
            (per_primary if entry.file.scope is Scope.PER_PRIMARY else bulk).append(token)
        return bulk, per_primary

    bulk_audio, per_audio = split(audios, 1)
    bulk_subs, per_subs = split(subtitles, 1 + len(audios))
    return [
        *kept(TrackKind.VIDEO),
        *bulk_audio,
        *per_audio,
        *kept(TrackKind.AUDIO),
        *kept(TrackKind.SUBTITLE),
        *bulk_subs,
        *per_subs,
    ]


def _external_entry_args(entry: ResolvedEntry, kind: TrackKind) -> list[str]:
    file, tid, override = entry.file, entry.track_id, entry.override
    args = [*_EXCLUSIVE_FLAGS[kind], _TRACK_SELECT[kind], str(tid)]

    language = override.language if override and override.language is not None else None
    if language is None and entry.apply_language:
        language = file.language
    if language is not None:
        args += ["--language", f"{tid}:{language}"]

    name = override.track_name if override and override.track_name is not None else file.track_name
    if name is not None and name.strip():
        args += ["--track-name", f"{tid}:{name}"]

    delay = override.delay_seconds if override and override.delay_seconds is not None else file.delay_seconds
    if delay is not None:
        args += ["--sync", f"{tid}:{_delay_ms(delay)}"]

    if entry.is_default is not None:
        args += ["--default-track-flag", f"{tid}:{_yes_no(entry.is_default)}"]
    # mkvmerge builds in the field reject the forced flag on audio tracks
    if kind is TrackKind.SUBTITLE and entry.is_forced is not None:
        args += ["--forced-display-flag", f"{tid}:{_yes_no(entry.is_forced)}"]

    args.append(file.path)
    return args


def synthesize(job: Job, settings: MuxSettings, output_path: str, probe: Probe | None = None) -> Synthesis:
    args = ["--gui-mode", "--output", str(output_path)]
    tracks = job.primary.tracks

    # container-level strip flags
    if settings.discard_old_chapters:
        args.append("--no-chapters")
    if settings.discard_old_attachments:
        args.append("--no-attachments")
    if settings.remove_global_tags:
        args.append("--no-global-tags")

    audios = [e for f in job.audios for e in resolve_entries(f, TrackKind.AUDIO, probe)]
    subtitles = [e for f in job.subtitles for e in resolve_entries(f, TrackKind.SUBTITLE, probe)]
    subtitles += [e for f in job.audios for e in _embedded_subtitle_entries(f, probe)]

    # an external default always wins over the primary's existing defaults
    for kind, entries in ((TrackKind.AUDIO, audios), (TrackKind.SUBTITLE, subtitles)):
        if any(e.is_default for e in entries):
            for track in job.primary.tracks_of(kind):
                if track.removed:
                    continue
                args += ["--default-track-flag", f"{track.index}:no"]

    for kind, language in (
        (TrackKind.AUDIO, settings.make_audio_default_language),
        (TrackKind.SUBTITLE, settings.make_subtitle_default_language),
    ):
        if language:
            for tid in ids_by_language(tracks, kind, [language]):
                args += ["--default-track-flag", f"{tid}:yes"]

    selections = {
        TrackKind.VIDEO: select_tracks(tracks, TrackKind.VIDEO),
        TrackKind.AUDIO: select_tracks(tracks, TrackKind.AUDIO, settings.audio_keep_languages),
        TrackKind.SUBTITLE: select_tracks(tracks, TrackKind.SUBTITLE, settings.subtitle_keep_languages),
    }
    for selection in selections.values():
        args += selection.to_args()

    args += _primary_edits(job)

    if audios or subtitles:
        if order := _track_order(selections, audios, subtitles):
            args += ["--track-order", ",".join(order)]

    args.append(job.primary.path)

    for entry in audios:
        args += _external_entry_args(entry, TrackKind.AUDIO)
    for entry in subtitles:
        args += _external_entry_args(entry, TrackKind.SUBTITLE)

    for chapter in job.chapters:
        args += ["--chapters", chapter.path]
        if chapter.delay_seconds:
            # 0 => the file added last, i.e. this chapter file
            args += ["--sync", f"0:{_delay_ms(chapter.delay_seconds)}"]

    for attachment in job.attachments:
        args += ["--attach-file", attachment.path]

    log.debug("job %s: %d mkvmerge arguments", job.id, len(args))
    return Synthesis(
        arguments=args,
        fast_path_eligible=fast_path_eligible(job, settings),
        audio_entries=audios,
        subtitle_entries=subtitles,
    )

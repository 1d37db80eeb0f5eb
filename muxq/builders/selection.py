# muxq/builders/selection.py
from dataclasses import dataclass

from ..models.job import Track, TrackKind
from ..parsers.mkvmerge_info import language_matches

_SELECT_FLAG = {
    TrackKind.VIDEO: "--video-tracks",
    TrackKind.AUDIO: "--audio-tracks",
    TrackKind.SUBTITLE: "--subtitle-tracks",
}

_DISABLE_FLAG = {
    TrackKind.VIDEO: "--no-video",
    TrackKind.AUDIO: "--no-audio",
    TrackKind.SUBTITLE: "--no-subtitles",
}


@dataclass(frozen=True)
class Selection:
    kind: TrackKind
    all_ids: tuple[int, ...]
    selected_ids: tuple[int, ...]
    was_filtered: bool  # a Remove mark or an allow-list took part

    @property
    def is_noop(self) -> bool:
        return not self.was_filtered and len(self.selected_ids) == len(self.all_ids)

    def to_args(self) -> list[str]:
        if not self.all_ids or self.is_noop:
            return []
        if not self.selected_ids:
            return [_DISABLE_FLAG[self.kind]]
        return [_SELECT_FLAG[self.kind], ",".join(str(i) for i in self.selected_ids)]


def ids_by_language(tracks: list[Track], kind: TrackKind, languages: list[str]) -> list[int]:
    return [t.index for t in tracks if t.kind is kind and language_matches(t.language, languages)]


def select_tracks(tracks: list[Track], kind: TrackKind, keep_languages: list[str] | None = None) -> Selection:
    of_kind = [t for t in tracks if t.kind is kind]
    all_ids = tuple(t.index for t in of_kind)
    kept = [t.index for t in of_kind if not t.removed]
    any_removed = len(kept) != len(of_kind)

    # Remove marks only count once at least one track of the kind carries one
    selected = kept if any_removed else list(all_ids)
    if keep_languages is not None:
        allowed = set(ids_by_language(tracks, kind, keep_languages))
        selected = [i for i in selected if i in allowed]

    return Selection(
        kind=kind,
        all_ids=all_ids,
        selected_ids=tuple(selected),
        was_filtered=any_removed or keep_languages is not None,
    )

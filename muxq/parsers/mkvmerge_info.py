# muxq/parsers/mkvmerge_info.py
from dataclasses import dataclass, field

from ..models.job import Track, TrackKind

_MKV_KINDS = {
    "video": TrackKind.VIDEO,
    "audio": TrackKind.AUDIO,
    "subtitles": TrackKind.SUBTITLE,
}

_LANG_NAMES = {
    "eng": "English", "spa": "Spanish", "fra": "French", "fre": "French",
    "deu": "German", "ger": "German", "ita": "Italian", "jpn": "Japanese",
    "zho": "Chinese", "chi": "Chinese", "kor": "Korean", "por": "Portuguese",
    "rus": "Russian", "und": "Undetermined", "mul": "Multiple", "hin": "Hindi",
    "ara": "Arabic", "tha": "Thai", "vie": "Vietnamese", "pol": "Polish",
    "hun": "Hungarian", "ces": "Czech", "cze": "Czech", "slk": "Slovak",
    "hrv": "Croatian", "srp": "Serbian", "bul": "Bulgarian", "ron": "Romanian",
    "ell": "Greek", "gre": "Greek", "tur": "Turkish", "heb": "Hebrew",
    "swe": "Swedish", "nor": "Norwegian", "dan": "Danish", "fin": "Finnish",
    "nld": "Dutch", "dut": "Dutch", "cat": "Catalan", "ukr": "Ukrainian",
    "lit": "Lithuanian", "lav": "Latvian", "est": "Estonian", "slv": "Slovenian",
    "mkd": "Macedonian", "alb": "Albanian", "bos": "Bosnian", "mlt": "Maltese",
    "gle": "Irish", "wel": "Welsh", "gla": "Scottish Gaelic", "eus": "Basque",
    "glg": "Galician", "ind": "Indonesian", "msa": "Malay", "per": "Persian",
    "fas": "Persian", "urd": "Urdu", "ben": "Bengali", "tam": "Tamil",
}


@dataclass
class ContainerInfo:
    path: str
    tracks: list[Track] = field(default_factory=list)
    duration: str | None = None
    fps: float | None = None
    raw: dict = field(default_factory=dict, repr=False)


def pretty_language(code: str | None) -> str | None:
    if not code:
        return None
    return _LANG_NAMES.get(code.lower(), code)


def language_matches(language: str | None, wanted: list[str]) -> bool:
    """Case-insensitive match of a track language (code or name) against names/codes."""
    if not language:
        return False
    candidates = {language.lower()}
    if pretty := pretty_language(language):
        candidates.add(pretty.lower())
    return any(w.lower() in candidates for w in wanted)


def _as_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        digits = "".join(c for c in value if c.isdigit())
        return int(digits) if digits else None
    return None


def _bitrate(props: dict, kind: TrackKind) -> int | None:
    for key in ("bit_rate", "tag_bps"):
        if (v := _as_int(props.get(key))) is not None:
            return v
    if kind is TrackKind.AUDIO:
        # raw PCM estimate; better than nothing for the size column
        rate, channels = _as_int(props.get("audio_sampling_frequency")), _as_int(props.get("audio_channels"))
        if rate and channels:
            return (_as_int(props.get("audio_bits_per_sample")) or 16) * rate * channels
    return None


def parse_mkvmerge_tracks(info: dict) -> list[Track]:
    tracks: list[Track] = []
    for item in info.get("tracks") or []:
        if (kind := _MKV_KINDS.get(item.get("type", ""))) is None:
            continue
        props = item.get("properties") or {}
        tracks.append(Track(
            index=_as_int(item.get("id")) or 0,
            kind=kind,
            language=props.get("language"),
            name=props.get("track_name"),
            is_default=props.get("default_track"),
            is_forced=props.get("forced_track"),
            codec=item.get("codec"),
            bitrate_bps=_bitrate(props, kind),
        ))
    return tracks


def parse_mkvmerge_duration(info: dict) -> str | None:
    # mkvmerge reports the container duration in nanoseconds
    value = ((info.get("container") or {}).get("properties") or {}).get("duration")
    if isinstance(value, bool) or value is None:
        return None
    try:
        ns = float(value)
    except (TypeError, ValueError):
        return None
    if isinstance(value, float) and ns <= 1_000_000_000:
        ns *= 1_000_000_000
    seconds = ns / 1_000_000_000
    if not 0 <= seconds <= 86400 * 365:
        return None
    total = round(seconds)
    h, remainder = divmod(total, 3600)
    m, s = divmod(remainder, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def parse_mkvmerge_fps(info: dict) -> float | None:
    # default_duration is the nanoseconds one frame of the first video track lasts
    for item in info.get("tracks") or []:
        if item.get("type") != "video":
            continue
        ns = _as_int((item.get("properties") or {}).get("default_duration"))
        if ns:
            return round(1_000_000_000 / ns, 3)
    return None


def container_info_from_json(path: str, info: dict) -> ContainerInfo:
    return ContainerInfo(
        path=path,
        tracks=parse_mkvmerge_tracks(info),
        duration=parse_mkvmerge_duration(info),
        fps=parse_mkvmerge_fps(info),
        raw=info,
    )

# muxq/builders/mkvpropedit.py
from ..models.job import Job, TrackKind


def _flag(value: bool) -> str:
    return "1" if value else "0"


def build_propedit_args(job: Job) -> list[str]:
    """In-place ``--edit track:N --set key=value`` directives for the primary file.

    mkvpropedit numbers tracks from 1, mkvmerge from 0. An empty list means
    there is nothing to edit and the job needs a full mkvmerge pass instead.
    """
    args: list[str] = []
    for track in job.primary.tracks:
        if track.removed:
            continue
        selector = f"track:{track.index + 1}"
        edits = []
        if track.name is not None:
            # empty name clears it
            edits.append(f"name={track.name.strip()}")
        if track.language is not None:
            edits.append(f"language={track.language}")
        if track.is_default is not None:
            edits.append(f"flag-default={_flag(track.is_default)}")
        if track.is_forced is not None:
            key = "flag-forced-display" if track.kind is TrackKind.SUBTITLE else "flag-forced"
            edits.append(f"{key}={_flag(track.is_forced)}")
        for edit in edits:
            args += ["--edit", selector, "--set", edit]
    return args

from muxq.builders.mkvpropedit import build_propedit_args
from muxq.models.job import Track, TrackAction

from conftest import A, S, V, make_job


def test_no_edits_means_empty_list():
    assert build_propedit_args(make_job([Track(0, V), Track(1, A)])) == []


def test_edits_use_one_based_selectors():
    job = make_job([
        Track(0, V, name=" Feature "),
        Track(1, A, language="jpn", is_default=True, is_forced=False),
        Track(2, S, name="", is_forced=True),
    ])
    assert build_propedit_args(job) == [
        "--edit", "track:1", "--set", "name=Feature",
        "--edit", "track:2", "--set", "language=jpn",
        "--edit", "track:2", "--set", "flag-default=1",
        "--edit", "track:2", "--set", "flag-forced=0",
        "--edit", "track:3", "--set", "name=",
        "--edit", "track:3", "--set", "flag-forced-display=1",
    ]


def test_removed_tracks_are_skipped():
    job = make_job([Track(0, V), Track(1, A, language="eng", action=TrackAction.REMOVE)])
    assert build_propedit_args(job) == []

import shlex

from muxq.builders.mkvmerge import synthesize
from muxq.builders.preview import missing_file_warnings, preview_job
from muxq.models.job import ExternalFile, FileKind, Track
from muxq.utils.settings import MuxSettings

from conftest import A, V, audio_file, make_job


def test_command_line_splits_back_into_arguments(tmp_path):
    job = make_job(
        [Track(0, V), Track(1, A, name="Director's cut")],
        path=str(tmp_path / "my movie.mkv"),
        audios=[audio_file(str(tmp_path / "dub (fr).aac"), track_name="Français", track_ids=[0])],
    )
    s = MuxSettings(destination_dir=str(tmp_path / "out dir"))
    result = preview_job(job, s, program="/opt/mkv tools/mkvmerge")
    expected = synthesize(job, s, str(tmp_path / "out dir" / "my movie.mkv")).arguments
    assert shlex.split(result.command_line) == ["/opt/mkv tools/mkvmerge", *expected]
    assert result.plan.output == str(tmp_path / "out dir" / "my movie.mkv")
    assert result.job_id == "job-1"


def test_missing_files_become_warnings(tmp_path):
    primary = tmp_path / "movie.mkv"
    primary.write_bytes(b"x")
    job = make_job(
        path=str(primary),
        audios=[audio_file(str(tmp_path / "gone.aac"))],
        chapters=[ExternalFile(str(tmp_path / "ch.xml"), FileKind.CHAPTER)],
    )
    assert missing_file_warnings(job) == [
        f"Audio file missing: {tmp_path / 'gone.aac'}",
        f"Chapter file missing: {tmp_path / 'ch.xml'}",
    ]


def test_preview_still_builds_a_command_for_missing_primary():
    result = preview_job(make_job(path="/nowhere/movie.mkv"), MuxSettings(destination_dir="/out"))
    assert result.warnings == ["Video file missing: /nowhere/movie.mkv"]
    assert "--output" in result.command_line

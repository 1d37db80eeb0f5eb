import json

from muxq.utils.settings import DEFAULT_SETTINGS, MuxSettings, load_settings, save_settings


def test_missing_file_writes_defaults(tmp_path):
    p = tmp_path / "muxq_settings.json"
    data = load_settings(p)
    assert data == DEFAULT_SETTINGS
    assert json.loads(p.read_text()) == DEFAULT_SETTINGS


def test_saved_values_override_defaults(tmp_path):
    p = tmp_path / "muxq_settings.json"
    save_settings({"mkvmerge_path": "/opt/mkvmerge", "max_parallel_jobs": 3}, p)
    data = load_settings(p)
    assert data["mkvmerge_path"] == "/opt/mkvmerge"
    assert data["max_parallel_jobs"] == 3
    assert data["mkvpropedit_path"] == "mkvpropedit"


def test_broken_file_falls_back_to_defaults(tmp_path):
    p = tmp_path / "muxq_settings.json"
    p.write_text("{not json")
    assert load_settings(p) == DEFAULT_SETTINGS


def test_mux_settings_from_app_settings():
    s = MuxSettings.from_dict({**DEFAULT_SETTINGS, "max_parallel_jobs": -4, "warning_exit_codes": ["1", 3]})
    assert s.max_parallel_jobs == 1
    assert s.warning_exit_codes == [1, 3]
    assert s.overwrite_mode and not s.in_place_allowed


def test_keep_language_lists_need_the_toggle():
    assert MuxSettings(only_keep_audio_languages=["eng"]).audio_keep_languages is None
    assert MuxSettings(only_keep_audios_enabled=True).audio_keep_languages is None
    assert MuxSettings(only_keep_subtitles_enabled=True,
                       only_keep_subtitle_languages=["eng"]).subtitle_keep_languages == ["eng"]


def test_output_modes():
    assert MuxSettings(destination_dir="  ").overwrite_mode
    assert not MuxSettings(destination_dir="/out").overwrite_mode
    assert MuxSettings(overwrite_source=True).in_place_allowed
    assert not MuxSettings(destination_dir="/out", overwrite_source=True).in_place_allowed

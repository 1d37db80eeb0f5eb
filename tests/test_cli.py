import json
import threading

from muxq.cli import main


def test_scan_lists_matching_files(tmp_path, capsys):
    (tmp_path / "a.mkv").write_bytes(b"")
    (tmp_path / "b.txt").write_bytes(b"")
    assert main(["--config", str(tmp_path / "cfg.json"), "scan", str(tmp_path), "--ext", "mkv"]) == 0
    assert capsys.readouterr().out.splitlines() == [str(tmp_path / "a.mkv")]


def test_preview_prints_one_command_per_job(tmp_path, capsys):
    request = tmp_path / "request.json"
    request.write_text(json.dumps({
        "settings": {"destinationDir": "/out"},
        "jobs": [
            {"id": "a", "video": {"path": "/m/a.mkv", "tracks": [{"type": "video"}]}},
            {"id": "b", "video": {"path": "/m/b.mkv"},
             "subtitles": [{"path": "/m/b.ass", "includedTrackIds": [0], "language": "eng"}]},
        ],
    }))
    assert main(["--config", str(tmp_path / "cfg.json"), "preview", str(request)]) == 0
    out = capsys.readouterr().out.splitlines()
    commands = [line for line in out if not line.startswith("#")]
    assert commands[0] == "mkvmerge --gui-mode --output /out/a.mkv /m/a.mkv"
    assert commands[1].endswith("--subtitle-tracks 0 --language 0:eng /m/b.ass")
    assert "# warning: Video file missing: /m/a.mkv" in out


def test_bad_request_file_exits_with_2(tmp_path):
    request = tmp_path / "request.json"
    request.write_text("{")
    assert main(["--config", str(tmp_path / "cfg.json"), "preview", str(request)]) == 2


def test_run_stops_once_abort_on_errors_pauses_the_queue(tmp_path, capsys):
    config = tmp_path / "cfg.json"
    config.write_text(json.dumps({"log_path": str(tmp_path / "session.log")}))
    media = []
    for name in ("a.mkv", "b.mkv"):
        (tmp_path / name).write_bytes(b"x")
        media.append(str(tmp_path / name))
    request = tmp_path / "request.json"
    request.write_text(json.dumps({
        "settings": {"abortOnErrors": True, "destinationDir": "", "overwriteSource": False},
        "jobs": [{"id": str(n), "video": {"path": p}} for n, p in enumerate(media)],
    }))

    result = {}
    runner = threading.Thread(target=lambda: result.setdefault("code", main(["--config", str(config), "run", str(request)])))
    runner.daemon = True
    runner.start()
    runner.join(20)
    assert not runner.is_alive()
    assert result["code"] == 1
    err = capsys.readouterr().err
    assert "[0] ERROR Destination folder required" in err
    assert "[1] ERROR" not in err

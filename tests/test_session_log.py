from muxq.utils.session_log import LOG_COPY_NAME, SessionLog


def test_clear_write_and_copy(tmp_path):
    log = SessionLog(tmp_path / "logs" / "session.log")
    log.clear()
    log.write("Starting muxing session")
    log.write("#GUI#progress 50%")
    assert log.path.read_text() == "Starting muxing session\n#GUI#progress 50%\n"

    dest = tmp_path / "out"
    dest.mkdir()
    assert log.copy_to(dest) == dest / LOG_COPY_NAME
    assert (dest / LOG_COPY_NAME).read_text() == log.path.read_text()

    log.clear()
    assert log.path.read_text() == ""


def test_copy_to_missing_directory_is_ignored(tmp_path):
    log = SessionLog(tmp_path / "session.log")
    log.write("x")
    assert log.copy_to(tmp_path / "nowhere") is None

from muxq.parsers.progress import clamp_percent, parse_progress


def test_parses_digits_before_first_percent():
    assert parse_progress("#GUI#progress 42%") == 42
    assert parse_progress("Progress: 7%") == 7
    assert parse_progress("100%") == 100


def test_only_first_percent_counts():
    assert parse_progress("12% then 99%") == 12
    assert parse_progress("abc% 50%") is None


def test_no_match():
    assert parse_progress("Multiplexing started") is None
    assert parse_progress("") is None
    assert parse_progress("%") is None


def test_out_of_byte_range_is_rejected():
    assert parse_progress("255%") == 255
    assert parse_progress("256%") is None


def test_clamp():
    assert clamp_percent(255) == 100
    assert clamp_percent(-3) == 0
    assert clamp_percent(64) == 64

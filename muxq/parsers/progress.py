# muxq/parsers/progress.py


def parse_progress(line: str) -> int | None:
    """Percentage from a tool output line, e.g. ``Progress: 42%`` -> 42.

    Only the digit run directly before the first ``%`` counts. Values that do
    not fit 0..255 are rejected; callers clamp to 0..100.
    """
    if (pos := line.find("%")) < 0:
        return None
    start = pos
    while start > 0 and line[start - 1] in "0123456789":
        start -= 1
    digits = line[start:pos]
    if not digits:
        return None
    value = int(digits)
    return value if value <= 255 else None


def clamp_percent(value: int) -> int:
    return max(0, min(100, value))

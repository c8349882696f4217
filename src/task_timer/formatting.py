"""Display formatting for elapsed time."""

DIVISIONS = (
    ("d", 86400),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
)


def format_duration(seconds: int) -> str:
    """Format a number of seconds as e.g. "1d 2h 3m 4s".

    Units with a zero count are left out; zero seconds formats as "0s".

    Args:
        seconds: Non-negative number of seconds

    Returns:
        Human-readable duration

    Raises:
        ValueError: If seconds is negative
    """
    if seconds < 0:
        raise ValueError(f"seconds must not be negative, got {seconds}")

    parts = []
    remaining = int(seconds)
    for suffix, size in DIVISIONS:
        count, remaining = divmod(remaining, size)
        if count > 0:
            parts.append(f"{count}{suffix}")

    if not parts:
        return "0s"
    return " ".join(parts)

"""
Helper functions for formatting data into human-readable strings.
"""


def format_size(bytes_size: int) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(bytes_size)
    i = 0
    while size >= 1024 and i < len(units) - 1:
        size /= 1024
        i += 1
    if i == 0:
        return f"{int(size)} B"
    return f"{size:.1f} {units[i]}"


def format_speed(bytes_per_second: int) -> str:
    return f"{format_size(bytes_per_second)}/s"


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds the way the transfer view shows it:
    '42s' under a minute, '3m 7s' under an hour, '2h 15m' beyond.
    """
    s = max(0, int(seconds))
    if s < 60:
        return f"{s}s"
    if s < 3600:
        minutes, secs = divmod(s, 60)
        return f"{minutes}m {secs}s"
    hours, remainder = divmod(s, 3600)
    return f"{hours}h {remainder // 60}m"


def truncate_middle(text: str, width: int) -> str:
    """Shortens long filenames while keeping the extension visible."""
    if len(text) <= width or width < 5:
        return text
    head = (width - 1) // 2
    tail = width - 1 - head
    return f"{text[:head]}…{text[-tail:]}"

import datetime
from typing import Optional

FILE_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_file_size(num_bytes: int) -> str:
    """1536 -> '1.5 KB'. Base 1024, two decimals with trailing zeros dropped."""
    if num_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while num_bytes >= 1024 ** (exponent + 1) and exponent < len(FILE_SIZE_UNITS) - 1:
        exponent += 1
    value = round(num_bytes / (1024 ** exponent), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {FILE_SIZE_UNITS[exponent]}"


def format_time_ago(created_at: datetime.datetime, now: Optional[datetime.datetime] = None) -> str:
    now = now or datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
    seconds = int((now - created_at).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def unread_badge(count: int) -> Optional[str]:
    if count <= 0:
        return None
    return "9+" if count > 9 else str(count)

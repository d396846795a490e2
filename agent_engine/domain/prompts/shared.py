from typing import Optional
from datetime import datetime


def quote(text: str) -> str:
    return f"`{text}`"


def time_header(date: datetime, locale: Optional[str] = None) -> str:
    """Front-matter lines telling the model when (and where) it is"""

    lines = [
        f"date: {date.strftime('%Y-%m-%d')} ({date.strftime('%A')})",
        f"time: {date.isoformat(timespec='seconds')}",
    ]
    if locale:
        lines.append(f"locale: {locale}")
    return "\n".join(lines)

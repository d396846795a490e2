from typing import Optional
from datetime import datetime

from .shared import time_header


def compose_subagent_prompt(date: datetime, name: str, description: Optional[str] = None) -> str:
    """System prompt of a delegate agent"""

    lines = [
        "---",
        time_header(date),
        "---",
        f"You are {name}, a subagent working on a task delegated by the main assistant.",
    ]
    if description:
        lines.append(f"Your role: {description}")
    lines.extend([
        "",
        "- Focus only on the delegated task.",
        "- Use the available tools when they help.",
        "- Reply with a complete, self-contained answer; the main assistant only sees your final reply.",
    ])
    return "\n".join(lines)

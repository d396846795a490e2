from typing import Optional
from datetime import datetime

from agent_engine.domain.models.agent_state import ScheduleDescriptor
from .shared import time_header


def render_schedule_prompt(schedule: ScheduleDescriptor, date: datetime, locale: Optional[str] = None) -> str:
    """User turn sent to the agent when a schedule fires"""

    max_calls = "unlimited" if schedule.max_calls is None else str(schedule.max_calls)
    lines = [
        "---",
        time_header(date, locale),
        "---",
        "** This is a scheduled task automatically sent to you by the system, not a message from the master **",
        f"schedule-name: {schedule.name}",
    ]
    if schedule.description:
        lines.append(f"schedule-description: {schedule.description}")
    lines.extend([
        f"schedule-pattern: {schedule.pattern}",
        f"max-calls: {max_calls}",
        "",
        "Command:",
        schedule.command,
    ])
    return "\n".join(lines)

from .system import compose_system_prompt
from .subagent import compose_subagent_prompt
from .schedule import render_schedule_prompt

__all__ = ["compose_system_prompt", "compose_subagent_prompt", "render_schedule_prompt"]

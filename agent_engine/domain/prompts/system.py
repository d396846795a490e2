from typing import List, Optional
from datetime import datetime

from agent_engine.domain.models.agent_state import Skill, ToolContext
from .shared import quote, time_header


def _platform_section(platforms: List[str], current_platform: Optional[str]) -> str:
    if not platforms and not current_platform:
        return ""
    lines = ["**Platforms**"]
    if platforms:
        lines.append(f"- You are connected to: {', '.join(platforms)}.")
    if current_platform:
        lines.append(f"- The current conversation happens on {quote(current_platform)}.")
    return "\n".join(lines)


def _skill_section(skills: List[Skill], enabled_skills: List[Skill]) -> str:
    if not skills:
        return ""
    lines = [
        "**Skills**",
        f"- Use {quote('use_skill')} to enable a skill when it is relevant to the task.",
        "- Available skills:",
    ]
    enabled_names = {skill.name for skill in enabled_skills}
    for skill in skills:
        marker = " (enabled)" if skill.name in enabled_names else ""
        lines.append(f"  + {quote(skill.name)}{marker}: {skill.description}")

    for skill in enabled_skills:
        lines.append("")
        lines.append(f"### Skill: {skill.name}")
        lines.append(skill.content.strip())
    return "\n".join(lines)


def _identity_section(tool_context: Optional[ToolContext]) -> str:
    if tool_context is None:
        return ""
    fields = [
        ("bot_id", tool_context.bot_id),
        ("session_id", tool_context.session_id),
        ("reply_target", tool_context.reply_target),
        ("contact_id", tool_context.contact_id),
        ("contact_name", tool_context.contact_name),
        ("contact_alias", tool_context.contact_alias),
        ("user_id", tool_context.user_id),
    ]
    lines = [f"- {key}: {value}" for key, value in fields if value]
    if not lines:
        return ""
    return "\n".join(["**Session**", *lines])


def compose_system_prompt(
    date: datetime,
    language: str,
    max_context_load_time: int,
    locale: Optional[str] = None,
    platforms: Optional[List[str]] = None,
    current_platform: Optional[str] = None,
    skills: Optional[List[Skill]] = None,
    enabled_skills: Optional[List[Skill]] = None,
    tool_context: Optional[ToolContext] = None,
) -> str:
    """System prompt of the primary agent

    Depends only on its arguments. The agent recomputes it before every model
    step so that skills enabled mid-turn show up in the next step.
    """

    sections = [
        "\n".join(["---", time_header(date, locale), f"language: {language}", "---"]),
        "You are a personal housekeeper assistant, able to manage the master's daily affairs.",
        "\n".join([
            "Your abilities:",
            f"- Long memory: conversations from the last {max_context_load_time} minutes are loaded into your context, "
            f"and you can use {quote('search_memory')} to search older memories.",
            f"- Scheduled tasks: you can use {quote('schedule')} to run a command later with **Cron Syntax**, "
            f"{quote('get_schedules')} to list schedules and {quote('remove_schedule')} to remove one.",
            f"- Messaging: you may use {quote('send_message')} to reach the master on a connected platform.",
        ]),
        _platform_section(platforms or [], current_platform),
        _skill_section(skills or [], enabled_skills or []),
        _identity_section(tool_context),
    ]
    return "\n\n".join(section for section in sections if section).strip()

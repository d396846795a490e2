from typing import Optional

from agent_engine.domain.errors import ConfigurationError
from agent_engine.domain.models.agent_state import ToolContext


def resolve_bot_id(bot_id: Optional[str], tool_context: Optional[ToolContext]) -> str:
    """Pick the bot id from tool input, falling back to the turn's identity"""

    resolved = (bot_id or (tool_context.bot_id if tool_context else None) or "").strip()
    if not resolved:
        raise ConfigurationError("bot_id is required")
    return resolved


def drop_none(payload: dict) -> dict:
    return {key: value for key, value in payload.items() if value is not None}

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field
from langchain_core.tools import BaseTool, StructuredTool

from agent_engine.domain.errors import ConfigurationError
from agent_engine.domain.models.agent_state import ToolContext
from agent_engine.infrastructure.http.fetcher import AuthFetcher
from .common import resolve_bot_id


class SendMessageInput(BaseModel):
    bot_id: Optional[str] = None
    message: str = Field(description="The text to send")
    platform: Optional[str] = Field(None, description="Platform to send on, defaults to the current platform")
    target: Optional[str] = Field(None, description="Chat or user id on the platform, defaults to the current conversation")


def get_message_tools(fetcher: AuthFetcher, tool_context: Optional[ToolContext] = None) -> Dict[str, BaseTool]:
    """Tools that deliver messages through the bot's messaging platforms"""

    async def send_message(
        message: str,
        platform: Optional[str] = None,
        target: Optional[str] = None,
        bot_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        resolved = resolve_bot_id(bot_id, tool_context)
        platform = platform or (tool_context.current_platform if tool_context else None)
        target = target or (tool_context.reply_target if tool_context else None)
        if not platform:
            raise ConfigurationError("platform is required")
        if not target:
            raise ConfigurationError("target is required")
        return await fetcher.post(f"/bots/{resolved}/messages", json={
            "platform": platform,
            "target": target,
            "message": message,
        })

    return {
        "send_message": StructuredTool.from_function(
            coroutine=send_message,
            name="send_message",
            description="Send a message to a chat on one of the connected platforms",
            args_schema=SendMessageInput,
        ),
    }

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field
from langchain_core.tools import BaseTool, StructuredTool

from agent_engine.domain.models.agent_state import ToolContext
from agent_engine.infrastructure.http.fetcher import AuthFetcher
from .common import resolve_bot_id, drop_none


class GetSchedulesInput(BaseModel):
    bot_id: Optional[str] = None


class ScheduleInput(BaseModel):
    bot_id: Optional[str] = None
    name: str = Field(description="The name of the schedule")
    description: str = Field(description="The description of the schedule")
    pattern: str = Field(description="The pattern of the schedule with **Cron Syntax**")
    command: str = Field(description="The natural language command to execute, will send to you when the schedule is triggered")
    max_calls: Optional[int] = Field(None, description="The maximum number of calls to the schedule, set to 1 to run once")


class RemoveScheduleInput(BaseModel):
    bot_id: Optional[str] = None
    id: str = Field(description="The id of the schedule")


def get_schedule_tools(fetcher: AuthFetcher, tool_context: Optional[ToolContext] = None) -> Dict[str, BaseTool]:
    """Tools that list, create and remove cron schedules on the backend"""

    async def get_schedules(bot_id: Optional[str] = None) -> Dict[str, Any]:
        resolved = resolve_bot_id(bot_id, tool_context)
        schedules = await fetcher.get(f"/bots/{resolved}/schedule")
        return {"success": True, "schedules": schedules}

    async def create_schedule(
        name: str,
        description: str,
        pattern: str,
        command: str,
        max_calls: Optional[int] = None,
        bot_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        resolved = resolve_bot_id(bot_id, tool_context)
        return await fetcher.post(f"/bots/{resolved}/schedule", json=drop_none({
            "name": name,
            "description": description,
            "pattern": pattern,
            "command": command,
            "max_calls": max_calls,
        }))

    async def remove_schedule(id: str, bot_id: Optional[str] = None) -> Dict[str, Any]:
        resolved = resolve_bot_id(bot_id, tool_context)
        await fetcher.delete(f"/bots/{resolved}/schedule/{id}")
        return {"success": True, "id": id}

    return {
        "get_schedules": StructuredTool.from_function(
            coroutine=get_schedules,
            name="get_schedules",
            description="Get the list of schedules",
            args_schema=GetSchedulesInput,
        ),
        "schedule": StructuredTool.from_function(
            coroutine=create_schedule,
            name="schedule",
            description="Schedule a command",
            args_schema=ScheduleInput,
        ),
        "remove_schedule": StructuredTool.from_function(
            coroutine=remove_schedule,
            name="remove_schedule",
            description="Remove a schedule",
            args_schema=RemoveScheduleInput,
        ),
    }

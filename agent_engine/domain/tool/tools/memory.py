from typing import Dict, Any, Optional
from pydantic import BaseModel, Field
from langchain_core.tools import BaseTool, StructuredTool

from agent_engine.domain.models.agent_state import ToolContext
from agent_engine.infrastructure.http.fetcher import AuthFetcher
from .common import resolve_bot_id


class SearchMemoryInput(BaseModel):
    bot_id: Optional[str] = None
    query: str = Field(description="What to look for in past conversations, in natural language")
    limit: int = Field(10, description="Maximum number of memories to return")


def get_memory_tools(fetcher: AuthFetcher, tool_context: Optional[ToolContext] = None) -> Dict[str, BaseTool]:
    """Tools that search long-term memory kept by the backend"""

    async def search_memory(query: str, limit: int = 10, bot_id: Optional[str] = None) -> Dict[str, Any]:
        resolved = resolve_bot_id(bot_id, tool_context)
        payload: Dict[str, Any] = {"query": query, "limit": limit}
        if tool_context and tool_context.session_id:
            payload["session_id"] = tool_context.session_id
        results = await fetcher.post(f"/bots/{resolved}/memory/search", json=payload)
        return {"query": query, "results": results}

    return {
        "search_memory": StructuredTool.from_function(
            coroutine=search_memory,
            name="search_memory",
            description="Search past memories with natural language",
            args_schema=SearchMemoryInput,
        ),
    }

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field
from langchain_core.tools import BaseTool, StructuredTool

from agent_engine.domain.models.agent_state import ToolContext
from agent_engine.infrastructure.http.fetcher import AuthFetcher
from .common import resolve_bot_id, drop_none


class ContactSearchInput(BaseModel):
    bot_id: Optional[str] = None
    query: Optional[str] = Field(None, description="Name or alias to search for, empty lists all contacts")


class ContactCreateInput(BaseModel):
    bot_id: Optional[str] = None
    display_name: Optional[str] = None
    alias: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ContactUpdateInput(ContactCreateInput):
    contact_id: str = Field(min_length=1)


class ContactBindTokenInput(BaseModel):
    bot_id: Optional[str] = None
    contact_id: str = Field(min_length=1)
    target_platform: Optional[str] = None
    target_external_id: Optional[str] = None
    ttl_seconds: Optional[int] = None


class ContactBindInput(BaseModel):
    bot_id: Optional[str] = None
    contact_id: str = Field(min_length=1)
    platform: str
    external_id: str
    bind_token: str


def get_contact_tools(fetcher: AuthFetcher, tool_context: Optional[ToolContext] = None) -> Dict[str, BaseTool]:
    """Tools that manage the bot's contact book"""

    async def contact_search(query: Optional[str] = None, bot_id: Optional[str] = None) -> Any:
        resolved = resolve_bot_id(bot_id, tool_context)
        query = (query or "").strip()
        if query:
            return await fetcher.get(f"/bots/{resolved}/contacts", params={"q": query})
        return await fetcher.get(f"/bots/{resolved}/contacts")

    async def contact_create(
        display_name: Optional[str] = None,
        alias: Optional[str] = None,
        tags: Optional[List[str]] = None,
        status: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        bot_id: Optional[str] = None,
    ) -> Any:
        resolved = resolve_bot_id(bot_id, tool_context)
        return await fetcher.post(f"/bots/{resolved}/contacts", json=drop_none({
            "display_name": display_name,
            "alias": alias,
            "tags": tags,
            "status": status,
            "metadata": metadata,
        }))

    async def contact_update(
        contact_id: str,
        display_name: Optional[str] = None,
        alias: Optional[str] = None,
        tags: Optional[List[str]] = None,
        status: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        bot_id: Optional[str] = None,
    ) -> Any:
        resolved = resolve_bot_id(bot_id, tool_context)
        return await fetcher.patch(f"/bots/{resolved}/contacts/{contact_id}", json=drop_none({
            "display_name": display_name,
            "alias": alias,
            "tags": tags,
            "status": status,
            "metadata": metadata,
        }))

    async def contact_bind_token(
        contact_id: str,
        target_platform: Optional[str] = None,
        target_external_id: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        bot_id: Optional[str] = None,
    ) -> Any:
        resolved = resolve_bot_id(bot_id, tool_context)
        return await fetcher.post(f"/bots/{resolved}/contacts/{contact_id}/bind_token", json=drop_none({
            "target_platform": target_platform,
            "target_external_id": target_external_id,
            "ttl_seconds": ttl_seconds,
        }))

    async def contact_bind(
        contact_id: str,
        platform: str,
        external_id: str,
        bind_token: str,
        bot_id: Optional[str] = None,
    ) -> Any:
        resolved = resolve_bot_id(bot_id, tool_context)
        return await fetcher.post(f"/bots/{resolved}/contacts/{contact_id}/bind", json={
            "platform": platform,
            "external_id": external_id,
            "bind_token": bind_token,
        })

    return {
        "contact_search": StructuredTool.from_function(
            coroutine=contact_search,
            name="contact_search",
            description="Search contacts by name or alias",
            args_schema=ContactSearchInput,
        ),
        "contact_create": StructuredTool.from_function(
            coroutine=contact_create,
            name="contact_create",
            description="Create a contact",
            args_schema=ContactCreateInput,
        ),
        "contact_update": StructuredTool.from_function(
            coroutine=contact_update,
            name="contact_update",
            description="Update a contact",
            args_schema=ContactUpdateInput,
        ),
        "contact_bind_token": StructuredTool.from_function(
            coroutine=contact_bind_token,
            name="contact_bind_token",
            description="Issue a one-time bind token for a contact",
            args_schema=ContactBindTokenInput,
        ),
        "contact_bind": StructuredTool.from_function(
            coroutine=contact_bind,
            name="contact_bind",
            description="Bind a contact to a platform identity using a bind token",
            args_schema=ContactBindInput,
        ),
    }

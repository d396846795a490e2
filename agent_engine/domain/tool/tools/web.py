from typing import Dict, Any, List, Optional
import httpx
import structlog
from pydantic import BaseModel, Field
from langchain_core.tools import BaseTool, StructuredTool

logger = structlog.get_logger(__name__)

BRAVE_BASE_URL = "https://api.search.brave.com/res/v1"


class WebSearchInput(BaseModel):
    query: str = Field(description="The search query")
    count: int = Field(5, ge=1, le=20, description="Number of results to return")


class BraveSearchClient:
    """Thin client over the Brave web search API"""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.base_url = (base_url or BRAVE_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def search(self, query: str, count: int = 5) -> List[Dict[str, Any]]:
        headers = {
            "Accept": "application/json",
            "X-Subscription-Token": self.api_key,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(
                f"{self.base_url}/web/search",
                params={"q": query, "count": count},
                headers=headers,
            )
            response.raise_for_status()
            data = response.json()

        results = []
        for item in data.get("web", {}).get("results", [])[:count]:
            results.append({
                "title": item.get("title", ""),
                "url": item.get("url", ""),
                "description": item.get("description", ""),
            })

        logger.debug("Web search finished", query=query[:50], results=len(results))
        return results


def get_web_tools(client: BraveSearchClient) -> Dict[str, BaseTool]:
    """Tools that search the public web"""

    async def web_search(query: str, count: int = 5) -> Dict[str, Any]:
        results = await client.search(query, count=count)
        return {"query": query, "results": results}

    return {
        "web_search": StructuredTool.from_function(
            coroutine=web_search,
            name="web_search",
            description="Search the web for up-to-date information",
            args_schema=WebSearchInput,
        ),
    }

from typing import Dict, Any, Optional
import httpx
import structlog

logger = structlog.get_logger(__name__)


class AuthFetcher:
    """Authenticated JSON client for the backend API that owns tool state

    Schedules, contacts, memory and outbound messages live behind the backend;
    tools only forward their input to it. Failed requests raise
    ``httpx.HTTPStatusError``.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport
            )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None
    ) -> Any:
        """Send a request and return the decoded JSON body"""

        response = await self._get_client().request(method, path, params=params, json=json)
        if response.is_error:
            logger.error(
                "Backend request failed",
                method=method,
                path=path,
                status_code=response.status_code
            )
        response.raise_for_status()

        if not response.content:
            return {}
        return response.json()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Any] = None) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Optional[Any] = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

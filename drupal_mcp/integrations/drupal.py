"""
Drupal REST / JSON:API Integration

Async client for the live Drupal site: content entities over JSON:API and
site administration over the custom REST endpoints. `health_probe` is the
minimal call the mode coordinator uses to decide connectivity.
"""

import base64
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from drupal_mcp.utils.errors import BackendConnectionError, DrupalAPIError
from drupal_mcp.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost"


class DrupalConnectionConfig(BaseModel):
    """Connection details for the live site."""
    base_url: str = DEFAULT_BASE_URL
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 30.0

    @property
    def has_connection_details(self) -> bool:
        """A real site URL plus at least one credential."""
        if not self.base_url or self.base_url.rstrip('/') == DEFAULT_BASE_URL:
            return False
        return bool(self.username or self.token or self.api_key)

    def auth_headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        if self.api_key:
            return {"X-API-Key": self.api_key}
        if self.username and self.password:
            encoded = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
            return {"Authorization": f"Basic {encoded}"}
        return {}


# entity kind -> (JSON:API path, JSON:API resource type)
ENTITY_RESOURCES: Dict[str, tuple] = {
    "node": ("/jsonapi/node/article", "node--article"),
    "user": ("/jsonapi/user/user", "user--user"),
    "taxonomy_term": ("/jsonapi/taxonomy_term/tags", "taxonomy_term--tags"),
}


class DrupalClient:
    """
    Client for a live Drupal site.

    HTTP failures are raised as DrupalAPIError (the site answered with an
    error status) or BackendConnectionError (the site could not be reached).
    """

    def __init__(
        self,
        config: Optional[DrupalConnectionConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or DrupalConnectionConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url.rstrip('/'),
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    **self.config.auth_headers(),
                },
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._get_client().request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise DrupalAPIError(
                f"{method} {path} failed with HTTP {status}",
                status_code=status,
                original_error=e,
            ) from e
        except httpx.TimeoutException as e:
            raise BackendConnectionError(
                f"{method} {path} timed out",
                original_error=e,
                details={"timeout": True},
            ) from e
        except httpx.RequestError as e:
            raise BackendConnectionError(
                f"{method} {path} failed: {e}",
                original_error=e,
            ) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise DrupalAPIError(
                f"{method} {path} returned an invalid JSON response",
                status_code=response.status_code,
                original_error=e,
            ) from e

    # Health probe

    async def health_probe(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Fetch minimal site info; raises on any failure."""
        kwargs = {"timeout": timeout} if timeout is not None else {}
        return await self._request("GET", "/api/site/info", **kwargs)

    # Generic JSON:API entity helpers

    async def get_entity(self, kind: str, entity_id: str) -> Any:
        path, _ = ENTITY_RESOURCES[kind]
        return await self._request("GET", f"{path}/{entity_id}")

    async def create_entity(self, kind: str, attributes: Dict[str, Any]) -> Any:
        path, resource_type = ENTITY_RESOURCES[kind]
        payload = {"data": {"type": resource_type, "attributes": attributes}}
        return await self._request("POST", path, json=payload)

    async def update_entity(self, kind: str, entity_id: str, attributes: Dict[str, Any]) -> Any:
        path, resource_type = ENTITY_RESOURCES[kind]
        payload = {"data": {"type": resource_type, "id": entity_id, "attributes": attributes}}
        return await self._request("PATCH", f"{path}/{entity_id}", json=payload)

    async def delete_entity(self, kind: str, entity_id: str) -> None:
        path, _ = ENTITY_RESOURCES[kind]
        await self._request("DELETE", f"{path}/{entity_id}")

    async def list_entities(self, kind: str, filters: Optional[Dict[str, Any]] = None) -> Any:
        path, _ = ENTITY_RESOURCES[kind]
        params = {f"filter[{key}]": str(value) for key, value in (filters or {}).items()}
        return await self._request("GET", path, params=params or None)

    # Database

    async def execute_query(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request(
            "POST", "/api/database/query", json={"query": query, "parameters": parameters}
        )

    # Modules

    async def get_module_list(self) -> Any:
        return await self._request("GET", "/api/modules")

    async def enable_module(self, module_name: str) -> Any:
        return await self._request("POST", f"/api/modules/{module_name}/enable")

    async def disable_module(self, module_name: str) -> Any:
        return await self._request("POST", f"/api/modules/{module_name}/disable")

    # Configuration

    async def get_configuration(self, config_name: str) -> Any:
        return await self._request("GET", f"/api/config/{config_name}")

    async def set_configuration(self, config_name: str, value: Any) -> Any:
        return await self._request("PUT", f"/api/config/{config_name}", json={"value": value})

    # Cache

    async def clear_cache(self, cache_type: Optional[str] = None) -> Any:
        path = f"/api/cache/clear/{cache_type}" if cache_type else "/api/cache/clear"
        return await self._request("POST", path)

    async def get_site_info(self) -> Any:
        return await self._request("GET", "/api/site/info")

    # Resources

    async def get_all_entities(self) -> Dict[str, Any]:
        return {
            "nodes": await self.list_entities("node"),
            "users": await self.list_entities("user"),
            "taxonomy_terms": await self.list_entities("taxonomy_term"),
        }

    async def get_system_configuration(self) -> Any:
        return await self.get_configuration("system")

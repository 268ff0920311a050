"""
Remote store adapters for AgroSync
Collections keyed by the same id the local records use
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from agrosync.core.exceptions import RemoteStoreError


class RemoteStore(ABC):
    """Remote collection protocol used by the sync engine"""

    @abstractmethod
    async def insert(self, collection: str, record: Dict[str, Any]):
        """Insert one record"""

    @abstractmethod
    async def update(self, collection: str, record_id: str, changes: Dict[str, Any]):
        """Update the record with the given id"""

    @abstractmethod
    async def delete(self, collection: str, record_id: str):
        """Delete the record with the given id"""

    @abstractmethod
    async def select_all(self, collection: str) -> List[Dict[str, Any]]:
        """Fetch every row of a collection"""

    async def close(self):
        pass


@dataclass
class RemoteConfig:
    """PostgREST endpoint configuration"""
    url: str
    api_key: Optional[str] = None
    schema_path: str = "/rest/v1"
    timeout: float = 10.0
    verify_ssl: bool = True

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'RemoteConfig':
        return cls(
            url=config.get('url') or '',
            api_key=config.get('api_key'),
            schema_path=config.get('schema_path', '/rest/v1'),
            timeout=float(config.get('timeout', 10.0)),
            verify_ssl=config.get('verify_ssl', True),
        )


class PostgrestRemoteStore(RemoteStore):
    """Remote store speaking the PostgREST (Supabase) REST dialect"""

    def __init__(self, config: RemoteConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not config.url:
            raise ValueError("Remote store URL is not configured")

        self.config = config
        self.logger = logging.getLogger(__name__)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {
                "Content-Type": "application/json",
                "User-Agent": "AgroSync/1.0",
            }
            if self.config.api_key:
                headers["apikey"] = self.config.api_key
                headers["Authorization"] = f"Bearer {self.config.api_key}"

            self._client = httpx.AsyncClient(
                base_url=self.config.url.rstrip('/') + self.config.schema_path,
                headers=headers,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, collection: str, **kwargs) -> httpx.Response:
        try:
            response = await self._get_client().request(method, f"/{collection}", **kwargs)
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"{method} {collection} failed: {e}", collection=collection) from e

        if response.status_code >= 400:
            raise RemoteStoreError(
                f"{method} {collection} rejected ({response.status_code}): {self._error_message(response)}",
                collection=collection,
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return body.get('message') or body.get('error') or str(body)
        return str(body)

    async def insert(self, collection: str, record: Dict[str, Any]):
        await self._request(
            "POST", collection,
            json=[record],
            headers={"Prefer": "return=minimal"},
        )

    async def update(self, collection: str, record_id: str, changes: Dict[str, Any]):
        await self._request(
            "PATCH", collection,
            params={"id": f"eq.{record_id}"},
            json=changes,
            headers={"Prefer": "return=minimal"},
        )

    async def delete(self, collection: str, record_id: str):
        await self._request("DELETE", collection, params={"id": f"eq.{record_id}"})

    async def select_all(self, collection: str) -> List[Dict[str, Any]]:
        response = await self._request("GET", collection, params={"select": "*"})
        rows = response.json()
        if not isinstance(rows, list):
            raise RemoteStoreError(f"Unexpected response for {collection}", collection=collection)
        return rows

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

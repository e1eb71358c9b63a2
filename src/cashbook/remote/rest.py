"""REST implementation of the remote store (PostgREST dialect)."""

from typing import Any, Callable, Optional

import httpx

from cashbook.domain.errors import RemoteRejected
from cashbook.remote.base import RemoteStore, Row
from cashbook.remote.http import build_client, json_body, send

TokenProvider = Callable[[], Optional[str]]


def encode_filter(value: Any) -> str:
    """Encode an equality filter value as a PostgREST operator expression."""
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class RestRemoteStore(RemoteStore):
    """Remote store speaking to a PostgREST endpoint under ``/rest/v1``."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        token_provider: Optional[TokenProvider] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the REST client.

        Args:
            base_url: Backend URL, e.g. 'https://project.supabase.co'
            api_key: Public API key sent with every request
            token_provider: Returns the signed-in user's access token, if any
            timeout: Per-request timeout in seconds
            client: Pre-built httpx client (used by tests)
        """
        self.api_key = api_key
        self.token_provider = token_provider
        self.client = build_client(base_url, timeout, client)

    def _headers(self, prefer_representation: bool = False) -> dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
        }
        if prefer_representation:
            headers["Prefer"] = "return=representation"
        return headers

    @staticmethod
    def _path(collection: str) -> str:
        return f"/rest/v1/{collection}"

    def select(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Row]:
        params = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = encode_filter(value)
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        response = send(self.client, "GET", self._path(collection), params=params, headers=self._headers())
        return list(json_body(response) or [])

    def insert(self, collection: str, payload: Row) -> Row:
        response = send(
            self.client,
            "POST",
            self._path(collection),
            json=payload,
            headers=self._headers(prefer_representation=True),
        )
        body = json_body(response)
        if isinstance(body, list):
            body = body[0] if body else None
        if not body or "id" not in body:
            raise RemoteRejected(f"Server did not return the inserted {collection} row")
        return body

    def update(self, collection: str, record_id: str, fields: Row) -> Optional[Row]:
        response = send(
            self.client,
            "PATCH",
            self._path(collection),
            params={"id": encode_filter(record_id)},
            json=fields,
            headers=self._headers(prefer_representation=True),
        )
        body = json_body(response)
        if isinstance(body, list):
            return body[0] if body else None
        return body

    def delete(self, collection: str, record_id: str) -> None:
        send(
            self.client,
            "DELETE",
            self._path(collection),
            params={"id": encode_filter(record_id)},
            headers=self._headers(),
        )

    def close(self) -> None:
        self.client.close()

"""Hosted backend client — PostgREST tables, RPC procedures and auth.

Communicates with the backend REST surface (``/rest/v1`` and ``/auth/v1``)
using httpx. Filters are passed in PostgREST syntax, as
``(column, "operator.value")`` pairs, e.g. ``("price", "gte.10")``.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from stockflow.domain.exceptions import BackendError

logger = logging.getLogger(__name__)

Filter = tuple[str, str]

# PostgREST error code for ``single`` reads that matched no row.
NO_ROWS = "PGRST116"
UNIQUE_VIOLATION = "23505"


@dataclass
class QueryResult:
    """Rows returned by a table read, with the exact count when requested."""

    data: list[dict[str, Any]] = field(default_factory=list)
    count: int | None = None


def parse_content_range(header: str | None) -> int | None:
    """Total row count from a ``Content-Range`` header (``0-9/42`` → 42)."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1]
    if total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


class SupabaseClient:
    """Infrastructure adapter — connects to the hosted backend.

    Uses a shared httpx client when one is injected, otherwise opens a
    short-lived client per request.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        access_token: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._url = url.rstrip("/")
        self._anon_key = anon_key
        self._access_token = access_token
        self._timeout = timeout
        self._http_client = http_client

    def set_access_token(self, access_token: str | None) -> None:
        """Switch the session token (None → anonymous requests)."""
        self._access_token = access_token

    def _get_headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self._access_token or self._anon_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Sequence[tuple[str, str]] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.request(
                method,
                f"{self._url}{path}",
                params=list(params or []),
                json=json,
                headers=headers,
            )
            logger.debug("%s %s → %d", method, path, response.status_code)

            if response.status_code >= 400:
                self._raise_backend_error(response)
            return response

        finally:
            if should_close:
                await client.aclose()

    # ── RPC ─────────────────────────────────────────────────────────

    async def rpc(self, name: str, params: dict[str, Any] | None = None) -> Any:
        """Call a backend procedure; returns its decoded JSON result."""
        response = await self._request(
            "POST",
            f"/rest/v1/rpc/{name}",
            json=params or {},
            headers=self._get_headers(),
        )
        return _decode(response)

    # ── Tables ──────────────────────────────────────────────────────

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Iterable[Filter] = (),
        order: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        count: bool = False,
    ) -> QueryResult:
        params: list[tuple[str, str]] = [("select", _compact(columns)), *filters]
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))
        if offset is not None:
            params.append(("offset", str(offset)))

        response = await self._request(
            "GET",
            f"/rest/v1/{table}",
            params=params,
            headers=self._get_headers("count=exact" if count else None),
        )
        total = parse_content_range(response.headers.get("content-range")) if count else None
        return QueryResult(data=_decode(response) or [], count=total)

    async def select_single(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Iterable[Filter] = (),
    ) -> dict[str, Any]:
        """Read exactly one row.

        Raises:
            BackendError: with code ``PGRST116`` when no row matched.
        """
        headers = self._get_headers()
        headers["Accept"] = "application/vnd.pgrst.object+json"
        response = await self._request(
            "GET",
            f"/rest/v1/{table}",
            params=[("select", _compact(columns)), *filters],
            headers=headers,
        )
        return _decode(response)

    async def insert(self, table: str, values: dict[str, Any] | list[dict[str, Any]]) -> list[dict[str, Any]]:
        response = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=values,
            headers=self._get_headers("return=representation"),
        )
        return _decode(response) or []

    async def update(
        self, table: str, values: dict[str, Any], *, filters: Iterable[Filter]
    ) -> list[dict[str, Any]]:
        response = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=list(filters),
            json=values,
            headers=self._get_headers("return=representation"),
        )
        return _decode(response) or []

    async def delete(self, table: str, *, filters: Iterable[Filter]) -> list[dict[str, Any]]:
        response = await self._request(
            "DELETE",
            f"/rest/v1/{table}",
            params=list(filters),
            headers=self._get_headers("return=representation"),
        )
        return _decode(response) or []

    # ── Auth ────────────────────────────────────────────────────────

    async def get_user(self) -> dict[str, Any] | None:
        """The signed-in user, or None without a valid session."""
        if not self._access_token:
            return None
        try:
            response = await self._request("GET", "/auth/v1/user", headers=self._get_headers())
        except BackendError as e:
            if e.status_code in (401, 403):
                logger.info("Session rejected by auth endpoint: %s", e.message)
                return None
            raise
        return _decode(response)

    def _raise_backend_error(self, response: httpx.Response) -> None:
        """Raise BackendError from a non-2xx httpx Response."""
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict):
            message = data.get("message") or data.get("msg") or data.get("error_description") or response.text
            code = data.get("code")
            if code is not None:
                code = str(code)
            details = data.get("details")
            hint = data.get("hint")
        else:
            message, code, details, hint = response.text, None, None, None

        raise BackendError(
            status_code=response.status_code,
            message=message,
            code=code,
            details=details,
            hint=hint,
        )


def _compact(columns: str) -> str:
    """Strip whitespace from a multi-line select clause."""
    return "".join(columns.split())


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    return response.json()

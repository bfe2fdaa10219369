# backend/servicecenter/db/client.py
# Thin async client for the hosted backend's PostgREST API. Tables are exposed
# as attributes (db.vehicle, db.servicerecord, ...) with find/create/update
# helpers so the routers never build query strings themselves.

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from servicecenter.core.config import settings

logger = logging.getLogger(__name__)

__all__ = ["DataSourceError", "RecordNotFound", "SupabaseClient", "Table", "db"]

_OPERATORS = {"eq", "neq", "gt", "gte", "lt", "lte", "in", "like", "ilike", "is"}


class DataSourceError(Exception):
    """Raised when the hosted backend rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordNotFound(DataSourceError):
    """Raised when an update or delete matches no rows."""


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def build_filters(where: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    """Translate ``{"column": value}`` / ``{"column": {"gte": value}}`` into query params."""

    params: List[Tuple[str, str]] = []
    for column, condition in (where or {}).items():
        if condition is None:
            params.append((column, "is.null"))
        elif isinstance(condition, Mapping):
            for op, operand in condition.items():
                if op not in _OPERATORS:
                    raise ValueError(f"Unsupported filter operator: {op}")
                if op == "in":
                    joined = ",".join(_encode(item) for item in operand)
                    params.append((column, f"in.({joined})"))
                else:
                    params.append((column, f"{op}.{_encode(operand)}"))
        else:
            params.append((column, f"eq.{_encode(condition)}"))
    return params


def build_order(order: Optional[Mapping[str, str]]) -> Optional[str]:
    if not order:
        return None
    return ",".join(f"{column}.{direction.lower()}" for column, direction in order.items())


class Table:
    """Query helpers for one backing table."""

    def __init__(self, client: "SupabaseClient", name: str) -> None:
        self._client = client
        self.name = name

    async def find_many(
        self,
        where: Optional[Mapping[str, Any]] = None,
        order: Optional[Mapping[str, str]] = None,
        take: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = [("select", "*"), *build_filters(where)]
        order_clause = build_order(order)
        if order_clause:
            params.append(("order", order_clause))
        if take is not None:
            params.append(("limit", str(take)))
        response = await self._client.request("GET", self.name, params=params)
        return list(response.json())

    async def find_first(
        self,
        where: Optional[Mapping[str, Any]] = None,
        order: Optional[Mapping[str, str]] = None,
    ) -> Optional[Dict[str, Any]]:
        rows = await self.find_many(where=where, order=order, take=1)
        return rows[0] if rows else None

    async def find_unique(self, where: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.find_first(where=where)

    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        response = await self._client.request(
            "POST",
            self.name,
            json=dict(data),
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        return rows[0] if isinstance(rows, list) else rows

    async def update(self, where: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
        response = await self._client.request(
            "PATCH",
            self.name,
            params=build_filters(where),
            json=dict(data),
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise RecordNotFound(f"No {self.name} row matches {dict(where)}", status_code=404)
        return rows[0]

    async def delete(self, where: Mapping[str, Any]) -> Dict[str, Any]:
        response = await self._client.request(
            "DELETE",
            self.name,
            params=build_filters(where),
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise RecordNotFound(f"No {self.name} row matches {dict(where)}", status_code=404)
        return rows[0]

    async def count(self, where: Optional[Mapping[str, Any]] = None) -> int:
        response = await self._client.request(
            "HEAD",
            self.name,
            params=[("select", "*"), *build_filters(where)],
            headers={"Prefer": "count=exact"},
        )
        # Content-Range looks like "0-24/25" or "*/0".
        content_range = response.headers.get("content-range", "")
        total = content_range.rpartition("/")[2]
        return int(total) if total.isdigit() else 0


class SupabaseClient:
    """Connection holder for the REST endpoint, shared by every router."""

    TABLES: Dict[str, str] = {
        "vehicle": "vehicles",
        "servicerecord": "service_records",
        "callrecord": "call_records",
    }

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._users = 0
        for attr, table in self.TABLES.items():
            setattr(self, attr, Table(self, table))

    def is_connected(self) -> bool:
        return self._http is not None

    async def connect(self) -> None:
        # Reference counted so overlapping requests can share one HTTP pool.
        self._users += 1
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "apikey": self._api_key,
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
                transport=self._transport,
            )

    async def disconnect(self) -> None:
        self._users = max(self._users - 1, 0)
        if self._users == 0 and self._http is not None:
            http, self._http = self._http, None
            await http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Sequence[Tuple[str, str]] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        if self._http is None:
            raise DataSourceError("Data source is not connected")

        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = await self._http.request(
                method,
                f"/{path}",
                params=list(params or []),
                json=json,
                headers=dict(headers or {}),
            )
        except httpx.HTTPError as exc:
            logger.error("Request to %s failed: %s", path, exc)
            raise DataSourceError(f"Data source unavailable: {exc}") from exc

        if response.is_error:
            logger.error("%s %s returned %s: %s", method, path, response.status_code, response.text)
            raise DataSourceError(
                f"Data source rejected {method} {path} ({response.status_code})",
                status_code=response.status_code,
            )
        return response


db = SupabaseClient(
    settings.supabase.rest_url,
    settings.supabase.api_key or "",
    timeout=settings.supabase.timeout_seconds,
)

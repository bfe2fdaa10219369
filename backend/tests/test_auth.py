from __future__ import annotations

import asyncio
from typing import Any, Dict

import httpx
import pytest
from fastapi import HTTPException

from servicecenter.auth import dependencies


def test_current_user_from_backend_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_fetch(token: str) -> Dict[str, Any]:
        assert token == "token-123"
        return {"id": "user-1", "email": "owner@example.com"}

    monkeypatch.setattr(dependencies, "fetch_auth_user", fake_fetch)

    user = asyncio.run(dependencies.get_current_user(token="token-123"))

    assert user.id == "user-1"
    assert user.email == "owner@example.com"


def test_payload_without_id_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_fetch(token: str) -> Dict[str, Any]:
        return {"email": "owner@example.com"}

    monkeypatch.setattr(dependencies, "fetch_auth_user", fake_fetch)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(dependencies.get_current_user(token="token-123"))
    assert excinfo.value.status_code == 401


def test_unreachable_auth_backend_is_unauthorized(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_fetch(token: str) -> Dict[str, Any]:
        raise httpx.ConnectError("unreachable")

    monkeypatch.setattr(dependencies, "fetch_auth_user", fake_fetch)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(dependencies.get_current_user(token="token-123"))
    assert excinfo.value.status_code == 401

## File: backend/servicecenter/auth/dependencies.py
# Sign-in is handled entirely by the hosted backend. This dependency only takes
# the bearer token the dashboard already holds and asks the backend who it
# belongs to, so routers can scope their queries to that user.

import logging

import httpx
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from servicecenter.core.config import settings

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token")


class CurrentUser(BaseModel):
    id: str
    email: str | None = None


async def fetch_auth_user(token: str) -> dict:
    async with httpx.AsyncClient(timeout=settings.supabase.timeout_seconds) as client:
        response = await client.get(
            f"{settings.supabase.auth_url}/user",
            headers={
                "apikey": settings.supabase.api_key or "",
                "Authorization": f"Bearer {token}",
            },
        )
    if response.status_code != 200:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return response.json()


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    try:
        payload = await fetch_auth_user(token)
    except httpx.HTTPError as exc:
        logger.error("Auth lookup failed: %s", exc)
        raise HTTPException(status_code=401, detail="Could not validate credentials") from exc

    user_id = payload.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return CurrentUser(id=user_id, email=payload.get("email"))

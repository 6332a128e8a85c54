"""
Request-scoped dependencies shared by the API routers.

Authentication happens in front of this service; the gateway forwards the
authenticated account id in the X-User-Id header.
"""
from typing import Optional

from fastapi import Header, HTTPException


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Account id of the caller; 401 when the request is anonymous."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


async def get_optional_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Account id of the caller, or None for anonymous public requests."""
    if not x_user_id or not x_user_id.strip():
        return None
    return x_user_id.strip()

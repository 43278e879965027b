"""Shared request dependencies."""

from fastapi import Header, HTTPException, status


async def require_owner(x_owner_id: str | None = Header(default=None)) -> str:
    """Return the owner id resolved by the upstream identity layer."""
    owner_id = (x_owner_id or "").strip()
    if not owner_id or "/" in owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User authentication required",
        )
    return owner_id

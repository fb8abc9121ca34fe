"""API key authentication for admin endpoints."""

import hashlib
import hmac
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from dmn_audit.config import settings


API_KEY_HEADER = APIKeyHeader(name="Authorization", auto_error=False)


def hash_api_key(api_key: str) -> str:
    """Hash API key with salt for storage/lookup."""
    return hashlib.sha256(
        f"{settings.api_key_hash_salt}:{api_key}".encode()
    ).hexdigest()


async def require_admin_key(
    auth_header: str | None = Depends(API_KEY_HEADER),
) -> str:
    """Check the Bearer token against the configured admin key hashes."""
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
        )
    api_key = auth_header[7:].strip()
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
        )
    api_key_hash = hash_api_key(api_key)
    if not any(hmac.compare_digest(api_key_hash, h) for h in settings.admin_api_key_hashes):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )
    return api_key_hash


# Type alias for dependency injection
AdminDep = Annotated[str, Depends(require_admin_key)]

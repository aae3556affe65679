"""
Shared-secret authentication for sensor nodes and the SMS gateway device.
"""

import hmac

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from watersense.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """
    Verify the device key from the X-API-KEY header.

    Returns:
        The validated key, or "dev-mode" when no key is configured

    Raises:
        HTTPException: If the key is missing or wrong
    """
    settings = get_settings()

    # No key configured: allow all requests (dev mode)
    if not settings.device_api_key:
        return "dev-mode"

    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-KEY header.",
        )

    if not hmac.compare_digest(api_key, settings.device_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Wrong API key",
        )

    return api_key

# jobengine/auth.py
import logging
from typing import Optional
from fastapi import Header, HTTPException, Request, status

from .config import ADMIN_API_KEYS

log = logging.getLogger("jobengine.auth")


def _extract_api_key(request: Request) -> Optional[str]:
    """Extract API key from request headers with multiple fallback formats"""
    # 1) Authorization: Bearer <key>
    auth = request.headers.get("Authorization", "")
    if auth:
        parts = auth.split(None, 1)  # ["Bearer", "<key>"] or ["<key>"]
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1].strip()
        # 2) Authorization: <key> (fallback)
        if len(parts) == 1 and parts[0] and parts[0].lower() != "bearer":
            return parts[0].strip()

    # 3) X-API-Key: <key>
    x_key = request.headers.get("X-API-Key")
    if x_key:
        return x_key.strip()

    return None


async def require_player(x_player_id: Optional[str] = Header(default=None)) -> str:
    """Player identity as asserted by the upstream auth gateway"""
    if not x_player_id or not x_player_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing player identity")
    return x_player_id.strip()


async def require_admin(request: Request) -> str:
    """Require an admin API key; returns its key id for the audit trail"""
    token = _extract_api_key(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    key_id = ADMIN_API_KEYS.get(token)
    if key_id is None:
        log.warning("AUTH: admin key rejected")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin scope required")

    request.state.key_id = key_id
    return key_id

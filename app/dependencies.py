"""
LedgerBooks - FastAPI Dependencies

Shared dependencies for the acting user and response headers.

Authentication itself is handled upstream; the gateway forwards the
caller's identity in the X-User-Id / X-User-Role headers.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Response

from app.config import settings
from app.utils.error_handling import AuthenticationException


@dataclass(frozen=True)
class Actor:
    """Identity of the caller performing an operation."""
    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == settings.admin_role


async def get_optional_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Optional[Actor]:
    """Caller identity if the request carries one."""
    if not x_user_id:
        return None
    return Actor(user_id=x_user_id, role=x_user_role or "user")


async def get_current_actor(
    actor: Optional[Actor] = Depends(get_optional_actor),
) -> Actor:
    """
    Require a caller identity.

    Raises:
        AuthenticationException: If no X-User-Id header was sent
    """
    if actor is None:
        raise AuthenticationException("Unauthorized")
    return actor


async def no_cache_headers(response: Response) -> None:
    """Mark responses as uncacheable."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"

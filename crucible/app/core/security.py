import hmac
from typing import Optional

from fastapi import Header

from crucible.app.core import config
from crucible.app.core.exceptions import UnauthorizedError


def is_admin_key(candidate: Optional[str]) -> bool:
    """Byte-for-byte comparison against the configured admin secret."""
    expected = config.ADMIN_KEY
    if not expected or candidate is None:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


# Dependency for admin routes
async def require_admin(x_admin_key: Optional[str] = Header(None)):
    if not is_admin_key(x_admin_key):
        raise UnauthorizedError()

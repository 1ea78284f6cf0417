"""Rate limiter shared by main.py and the routers.

Uploads are limited per bearer token; everything else per client address.
"""

import hashlib

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from models.config import settings


def upload_rate_key(request: Request) -> str:
    """Hash of the bearer token when present, client address otherwise."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return "token:" + hashlib.sha256(token.encode()).hexdigest()[:16]
    return get_remote_address(request)


limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

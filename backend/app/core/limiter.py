"""Rate limiter singleton: import from here to avoid circular deps.

Keyed by the bearer token when present so approval actions are limited per
user rather than per shared office IP.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address


def _actor_or_ip(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:]
    return get_remote_address(request)


limiter = Limiter(key_func=_actor_or_ip)

"""Global rate limiter instance for SlowAPI."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from common.core.config import settings

# Redis-backed so limits hold across API replicas.
# Default applies to every route; billing routes add tighter per-route limits
# because each checkout/portal call costs a Stripe request.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"],
    storage_uri=settings.redis_connection_url,
)

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.core.config import settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Rate limit key: client IP, narrowed to the spa when the request names one.

    Example:
        >>> get_client_identifier(request)
        '10.0.0.1:spa-3'
    """
    ip_address = get_remote_address(request)
    spa_id = request.query_params.get("spaId")
    return f"{ip_address}:spa-{spa_id}" if spa_id else ip_address


def _storage_uri() -> str:
    # Shared Redis counters only matter once several workers serve traffic
    if settings.ENV.lower() != "prod":
        logger.info("Rate limiter using in-memory storage (dev/test mode)")
        return "memory://"
    return settings.REDIS_URL


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=_storage_uri(),
    enabled=settings.RATE_LIMIT_ENABLED,
)

RATE_LIMITS = {
    "vat_report": settings.RATE_LIMIT_REPORTS,
    "vat_threshold_notify": "10/minute",
}

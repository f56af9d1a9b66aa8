"""Edge defenses — the ASGI middleware chain every inbound request passes through."""

from ctrain.edge.access_log import AccessLogEntry, AccessLogMiddleware, AnomalyFlag, detect_flags
from ctrain.edge.client import client_identity
from ctrain.edge.guard import RequestGuardMiddleware
from ctrain.edge.headers import SECURITY_HEADERS, HeaderPolicyMiddleware
from ctrain.edge.ratelimit import RateLimiter, RateLimitMiddleware, RateWindow

__all__ = [
    "SECURITY_HEADERS",
    "AccessLogEntry",
    "AccessLogMiddleware",
    "AnomalyFlag",
    "HeaderPolicyMiddleware",
    "RateLimitMiddleware",
    "RateLimiter",
    "RateWindow",
    "RequestGuardMiddleware",
    "client_identity",
    "detect_flags",
]

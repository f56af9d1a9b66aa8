"""Client identity extraction shared by the rate limiter and the access log.

``X-Forwarded-For`` is trusted as-is.  The service must sit behind a
reverse proxy that overwrites that header; a client talking to the
service directly can put anything in it.
"""

from __future__ import annotations

from starlette.types import Scope

_FORWARDED_FOR = b"x-forwarded-for"


def client_identity(scope: Scope) -> str:
    """Return the first forwarded-for entry, else the peer address without its port."""
    for name, value in scope.get("headers", []):
        if name.lower() == _FORWARDED_FOR:
            first = value.decode("latin-1").split(",", 1)[0].strip()
            if first:
                return first
            break

    client = scope.get("client")
    if not client:
        return ""
    return strip_port(str(client[0]))


def strip_port(address: str) -> str:
    """Drop a trailing ``:port`` from *address*.

    ASGI servers report the host and port separately, but proxies and
    tests sometimes hand over ``host:port`` or ``[v6]:port`` strings.
    """
    if address.startswith("["):
        end = address.find("]")
        return address[1:end] if end > 0 else address
    if address.count(":") == 1:
        return address.split(":", 1)[0]
    return address

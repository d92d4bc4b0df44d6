"""
Request blocking by client IP, for the cloud deployment only.

The blocklist lives in the runtime config store and is read on every request,
so operators can update it without a redeploy. Self-hosted instances never
install this middleware (see ``main.py``).
"""

import logging
from typing import Any, Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from tracedeck.db.valkey import get_config_value

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_IP = "127.0.0.1"


def get_client_ip(request: Request) -> str:
    """First hop of ``X-Forwarded-For``; the loopback address when absent."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return DEFAULT_CLIENT_IP


def normalize_blocklist(config: Any) -> list[str]:
    """The stored value may be a list of IPs or a single IP."""
    if config is None:
        return []
    if isinstance(config, list):
        return [str(ip) for ip in config]
    return [str(config)]


class IPBlockingMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        blocked_ips_key: str,
        fetch_config: Callable[[str], Awaitable[Any]] = get_config_value,
    ):
        """
        Args:
            app: FastAPI application
            blocked_ips_key: config store key holding the blocklist
            fetch_config: coroutine reading a config value by key
        """
        super().__init__(app)
        self.blocked_ips_key = blocked_ips_key
        self.fetch_config = fetch_config

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        blocked_ips = normalize_blocklist(await self.fetch_config(self.blocked_ips_key))

        client_ip = get_client_ip(request)
        if client_ip in blocked_ips:
            logger.info(f"Blocked request by ip: {client_ip}")
            return PlainTextResponse("Access denied", status_code=403)

        return await call_next(request)

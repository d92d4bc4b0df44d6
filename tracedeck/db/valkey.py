import json
from typing import Any, Optional

from glide import (
    ExpirySet,
    ExpiryType,
    GlideClient,
    GlideClientConfiguration,
    NodeAddress,
    ServerCredentials,
)
from tracedeck.config import settings


_client: Optional[GlideClient] = None


async def get_valkey_client() -> GlideClient:
    """
    Get or create a Valkey client instance.
    Returns a singleton client to reuse connections.
    """
    global _client

    if _client is None:
        config = GlideClientConfiguration(
            addresses=[NodeAddress(settings.valkey_host, settings.valkey_port)],
            database_id=settings.valkey_db,
        )

        if settings.valkey_auth_token:
            config.credentials = ServerCredentials(password=settings.valkey_auth_token)
            config.use_tls = True

        _client = await GlideClient.create(config)

    return _client


async def get_key(key: str) -> Optional[str]:
    """Return the value stored at *key*, or None if it doesn't exist."""
    client = await get_valkey_client()
    value = await client.get(key)
    return value.decode("utf-8") if value else None


async def set_key(key: str, value: str, ttl: Optional[int] = None) -> bool:
    """Store *value* at *key*, expiring after *ttl* seconds when given."""
    client = await get_valkey_client()
    expiry = ExpirySet(expiry_type=ExpiryType.SEC, value=ttl) if ttl else None
    await client.set(key=key, value=value, expiry=expiry)
    return True


async def delete_key(key: str) -> bool:
    """Delete *key*. Returns False if it didn't exist."""
    client = await get_valkey_client()
    result = await client.delete([key])
    return result > 0


async def get_config_value(key: str) -> Any:
    """
    Read a JSON-encoded configuration value (the runtime config store).

    Values written by operators may be either JSON or a bare string, e.g.
    ``SET config:blocked_ips '["1.2.3.4"]'`` or ``SET config:blocked_ips 1.2.3.4``.
    """
    raw = await get_key(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


async def close_valkey_client():
    """Close the Valkey client connection on application shutdown."""
    global _client

    if _client:
        await _client.close()
        _client = None

"""Image proxy for catalog attachments.

Attachment downloads need a tenant token, so the storefront loads images
through ``/api/image_proxy`` and this module fetches them server side. An edge
cache keyed by the full proxy URL sits in front; concurrent misses for the same
token may both fetch and both store, which is an idempotent overwrite.
"""

import json
from dataclasses import dataclass, field
from typing import Optional, Protocol

from libs.bitable.client import BitableClient
from libs.common.logging import get_logger
from redis.asyncio import Redis
from redis.exceptions import RedisError
from services.store_service.errors import MediaFetchError, ValidationError
from services.store_service.identifiers import require_identifier

logger = get_logger(__name__)

CACHE_CONTROL = "public, max-age=86400"
CACHE_KEY_PREFIX = "image_proxy:"

# Not forwarded from the upstream response; the ASGI server sets its own
_HOP_BY_HOP_HEADERS = {
    "connection",
    "content-encoding",
    "content-length",
    "keep-alive",
    "transfer-encoding",
    "set-cookie",
}


@dataclass
class CachedResponse:
    status_code: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def media_type(self) -> Optional[str]:
        return self.headers.get("content-type")


class EdgeCache(Protocol):
    async def match(self, key: str) -> Optional[CachedResponse]: ...

    async def put(self, key: str, response: CachedResponse) -> None: ...


class RedisEdgeCache:
    """Stores proxied responses in Redis with a fixed TTL."""

    def __init__(self, redis: Redis, ttl_seconds: int = 86400):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    async def match(self, key: str) -> Optional[CachedResponse]:
        try:
            entry = await self.redis.hgetall(CACHE_KEY_PREFIX + key)
        except RedisError as e:
            logger.warning(f"Image cache lookup failed for {key}: {e}")
            return None
        if not entry:
            return None
        return CachedResponse(
            status_code=int(entry[b"status"]),
            headers=json.loads(entry[b"headers"]),
            body=entry[b"body"],
        )

    async def put(self, key: str, response: CachedResponse) -> None:
        redis_key = CACHE_KEY_PREFIX + key
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.hset(
                    redis_key,
                    mapping={
                        "status": str(response.status_code),
                        "headers": json.dumps(response.headers),
                        "body": response.body,
                    },
                )
                pipe.expire(redis_key, self.ttl_seconds)
                await pipe.execute()
        except RedisError as e:
            logger.warning(f"Image cache store failed for {key}: {e}")


class MediaProxy:
    def __init__(self, client: BitableClient, cache: EdgeCache):
        self.client = client
        self.cache = cache

    async def resolve_image(
        self, file_token: Optional[str], cache_key: str
    ) -> CachedResponse:
        """
        Return the image bytes for ``file_token``, from cache when possible.

        Raises:
            ValidationError: no file token given, or not a valid token
            MediaFetchError: the download answered with a non-success status
        """
        if not file_token:
            raise ValidationError("Missing file_token")
        require_identifier(file_token, "file_token")

        cached = await self.cache.match(cache_key)
        if cached is not None:
            return cached

        upstream = await self.client.download_media(file_token)
        if not upstream.is_success:
            logger.error(
                f"Image download failed for {file_token}: "
                f"{upstream.status_code} {upstream.reason_phrase}"
            )
            raise MediaFetchError(
                f"Failed to download image: {upstream.status_code} {upstream.reason_phrase}"
            )

        headers = {
            name.lower(): value
            for name, value in upstream.headers.items()
            if name.lower() not in _HOP_BY_HOP_HEADERS
        }
        headers["cache-control"] = CACHE_CONTROL

        response = CachedResponse(
            status_code=upstream.status_code,
            headers=headers,
            body=upstream.content,
        )
        await self.cache.put(
            cache_key,
            CachedResponse(
                status_code=response.status_code,
                headers=dict(response.headers),
                body=response.body,
            ),
        )
        return response

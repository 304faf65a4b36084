"""FastAPI dependency wiring for the store service.

Every request builds its own collaborators; nothing here holds state between
requests. Tests override ``get_bitable_client``, ``get_address_store`` and
``get_edge_cache``.
"""

from fastapi import Depends
from libs.bitable.client import BitableClient, get_bitable_client
from libs.common.config import get_settings
from libs.common.redis import get_redis
from services.store_service.addresses import AddressStore, get_address_store
from services.store_service.services import (
    CatalogQuery,
    MediaProxy,
    OrderReader,
    OrderWriter,
    RedisEdgeCache,
    UnlockedStockValidator,
)
from services.store_service.services.media_proxy import EdgeCache


def get_catalog(client: BitableClient = Depends(get_bitable_client)) -> CatalogQuery:
    return CatalogQuery(client, get_settings().FEISHU_STOCK_TABLE_ID)


def get_order_writer(
    client: BitableClient = Depends(get_bitable_client),
    addresses: AddressStore = Depends(get_address_store),
) -> OrderWriter:
    settings = get_settings()
    return OrderWriter(
        client,
        settings.FEISHU_ORDER_TABLE_ID,
        addresses=addresses,
        stock=UnlockedStockValidator(client, settings.FEISHU_STOCK_TABLE_ID),
    )


def get_order_reader(client: BitableClient = Depends(get_bitable_client)) -> OrderReader:
    return OrderReader(client, get_settings().FEISHU_ORDER_TABLE_ID)


async def get_edge_cache() -> EdgeCache:
    return RedisEdgeCache(
        await get_redis(), ttl_seconds=get_settings().IMAGE_CACHE_TTL_SECONDS
    )


def get_media_proxy(
    client: BitableClient = Depends(get_bitable_client),
    cache: EdgeCache = Depends(get_edge_cache),
) -> MediaProxy:
    return MediaProxy(client, cache)

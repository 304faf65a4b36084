"""Store Service business logic package."""

from services.store_service.services.catalog import CatalogQuery
from services.store_service.services.media_proxy import MediaProxy, RedisEdgeCache
from services.store_service.services.order_reader import OrderReader, group_line_items
from services.store_service.services.order_writer import OrderWriter
from services.store_service.services.stock import UnlockedStockValidator

__all__ = [
    "CatalogQuery",
    "MediaProxy",
    "OrderReader",
    "OrderWriter",
    "RedisEdgeCache",
    "UnlockedStockValidator",
    "group_line_items",
]

"""Store Service models package."""

from services.store_service.models.core import Address, User
from services.store_service.models.enums import OrderStatus

__all__ = [
    "Address",
    "OrderStatus",
    "User",
]

"""Stock validation for new orders.

The tabular service has no locking or reservation primitive, so stock is read
at validation time and nothing is held until the order rows are written. Two
concurrent orders for the last units can both pass. Callers depend on the
``StockValidator`` protocol so a reservation-capable store can replace
``UnlockedStockValidator`` without changing them.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Sequence

from libs.bitable import fields
from libs.bitable.client import BitableClient
from libs.bitable.errors import ExternalNotFoundError
from libs.common.logging import get_logger
from services.store_service import columns
from services.store_service.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RequestedItem:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class ValidatedItem:
    """A requested item with the unit price captured at validation time."""

    product_id: str
    quantity: int
    unit_price: Decimal


class StockValidator(Protocol):
    async def validate(self, items: Sequence[RequestedItem]) -> list[ValidatedItem]: ...


class UnlockedStockValidator:
    """Checks each item against the live product row, without reserving stock."""

    def __init__(self, client: BitableClient, table_id: str):
        self.client = client
        self.table_id = table_id

    async def validate(self, items: Sequence[RequestedItem]) -> list[ValidatedItem]:
        """
        Validate every item or none. Product ids must be unique across
        ``items``; each item is checked against stock on its own.

        Raises:
            ValidationError: the same product id appears twice
            NotFoundError: a product id does not resolve
            InsufficientStockError: a quantity exceeds the current stock
        """
        product_ids = [item.product_id for item in items]
        if len(set(product_ids)) != len(product_ids):
            raise ValidationError("Each product may appear only once per order")

        validated = []
        for item in items:
            try:
                record = await self.client.get_record(self.table_id, item.product_id)
            except ExternalNotFoundError:
                raise NotFoundError(f"Product not found: {item.product_id}")

            row = record.get("fields") or {}
            current_stock = fields.int_value(row.get(columns.PRODUCT_STOCK))
            product_name = fields.text_value(row.get(columns.PRODUCT_NAME))

            if item.quantity > current_stock:
                logger.info(
                    f"Rejecting order item {item.product_id}: "
                    f"requested {item.quantity}, in stock {current_stock}"
                )
                raise InsufficientStockError(
                    product=item.product_id,
                    product_name=product_name,
                    current=current_stock,
                    requested=item.quantity,
                )

            validated.append(
                ValidatedItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=fields.decimal_value(row.get(columns.PRODUCT_PRICE)),
                )
            )
        return validated

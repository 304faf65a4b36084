"""Order creation: validate, snapshot prices, write line items in one batch.

An order has no row of its own in the tabular service. It exists as N
line-item rows sharing a generated order id. The batch write is not atomic on
the server side, so a failed call may leave some rows behind; nothing here
attempts a rollback. Stock is not decremented here either, that stays with
back-office processing of the ledger.
"""

import uuid
from typing import Optional, Sequence

import httpx
from libs.auth.models import AuthUser
from libs.bitable.client import BitableClient
from libs.bitable.errors import ExternalServiceError
from libs.common.logging import get_logger
from services.store_service import columns
from services.store_service.addresses import AddressLookup, AddressSnapshot
from services.store_service.errors import (
    NotFoundError,
    OrderCreationError,
    ValidationError,
)
from services.store_service.identifiers import require_identifier
from services.store_service.schemas import OrderItemRequest
from services.store_service.services.stock import (
    RequestedItem,
    StockValidator,
    ValidatedItem,
)

logger = get_logger(__name__)


def build_line_item_rows(
    order_id: str,
    username: str,
    items: Sequence[ValidatedItem],
    address: AddressSnapshot,
) -> list[dict]:
    """One row per item. Recipient details are copied, not referenced."""
    return [
        {
            columns.ORDER_ID: order_id,
            columns.ORDER_PRODUCT: [item.product_id],
            columns.ORDER_STATUS: columns.STATUS_PLACED,
            columns.ORDER_USERNAME: username,
            columns.ORDER_QUANTITY: item.quantity,
            columns.ORDER_UNIT_PRICE: float(item.unit_price),
            columns.ORDER_RECIPIENT: address.recipient_name,
            columns.ORDER_PHONE: address.phone,
            columns.ORDER_ADDRESS: address.address,
        }
        for item in items
    ]


def _requested_items(items: Sequence[OrderItemRequest]) -> list[RequestedItem]:
    """Quantities summed per product id, in first-seen order."""
    quantities: dict[str, int] = {}
    for item in items:
        if not item.id:
            raise ValidationError("Every order item needs a product id")
        require_identifier(item.id, "product id")
        if item.quantity <= 0:
            raise ValidationError(f"Invalid quantity for product {item.id}")
        quantities[item.id] = quantities.get(item.id, 0) + item.quantity
    return [
        RequestedItem(product_id=product_id, quantity=quantity)
        for product_id, quantity in quantities.items()
    ]


class OrderWriter:
    def __init__(
        self,
        client: BitableClient,
        order_table_id: str,
        addresses: AddressLookup,
        stock: StockValidator,
    ):
        self.client = client
        self.order_table_id = order_table_id
        self.addresses = addresses
        self.stock = stock

    async def create_order(
        self,
        user: AuthUser,
        address_id: Optional[int],
        items: Sequence[OrderItemRequest],
    ) -> str:
        """
        Validate and persist an order, returning its generated id.

        Raises:
            ValidationError: no items, no address, bad quantity or no username
            NotFoundError: address not owned by the user, or unknown product
            InsufficientStockError: a quantity exceeds current stock
            OrderCreationError: the batch write failed
        """
        if not items or not address_id:
            raise ValidationError("Order items and shipping address are required")
        if not user.username:
            raise ValidationError("Authenticated user has no username")
        requested = _requested_items(items)

        address = await self.addresses.get_address(address_id, user.user_id)
        if address is None:
            raise NotFoundError("Shipping address not found")

        validated = await self.stock.validate(requested)

        order_id = str(uuid.uuid4())
        rows = build_line_item_rows(order_id, user.username, validated, address)

        try:
            await self.client.batch_create_records(self.order_table_id, rows)
        except (ExternalServiceError, httpx.HTTPError) as e:
            logger.error(
                f"Batch write failed for order {order_id} ({len(rows)} rows): {e}"
            )
            raise OrderCreationError("Failed to create order") from e

        logger.info(
            f"Created order {order_id} with {len(rows)} line items for {user.username}"
        )
        return order_id

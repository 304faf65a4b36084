"""Order history: rebuild order aggregates from line-item rows.

Aggregates are recomputed on every read by grouping rows on the order id;
nothing about an order is cached or persisted in aggregate form.
"""

from decimal import Decimal
from typing import Any, Iterable

from libs.auth.models import AuthUser
from libs.bitable import fields
from libs.bitable.client import BitableClient
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service import columns
from services.store_service.errors import NotFoundError, ValidationError
from services.store_service.models import OrderStatus
from services.store_service.schemas import Order, OrderLine, ShippingAddress

logger = get_logger(__name__)

# Bitable search returns at most this many rows per call
ORDER_SEARCH_PAGE_SIZE = 500

STATUS_MAP = {
    columns.STATUS_PLACED: OrderStatus.PENDING,
    columns.STATUS_REVIEWING: OrderStatus.PROCESSING,
    columns.STATUS_SHIPPING: OrderStatus.SHIPPED,
    columns.STATUS_RECEIVED: OrderStatus.RECEIVED,
    columns.STATUS_SETTLED: OrderStatus.COMPLETED,
    columns.STATUS_CANCELLED: OrderStatus.CANCELLED,
}


def map_status(value: Any) -> OrderStatus:
    """Map the ledger's status vocabulary; anything unknown is pending."""
    return STATUS_MAP.get(fields.text_value(value), OrderStatus.PENDING)


def line_amount(row: dict, quantity: int) -> Decimal:
    # Prefer the table's amount formula; older rows may not carry it
    formula = row.get(columns.ORDER_AMOUNT)
    if formula is not None:
        amount = fields.decimal_value(formula, default=None)
        if amount is not None:
            return amount
    unit_price = fields.decimal_value(row.get(columns.ORDER_UNIT_PRICE))
    return unit_price * quantity


def group_line_items(records: Iterable[dict]) -> list[Order]:
    """Group line-item rows into orders, preserving first-seen order."""
    orders: dict[str, Order] = {}

    for record in records:
        row = record.get("fields") if isinstance(record, dict) else None
        if not isinstance(row, dict):
            continue

        order_id = fields.text_value(row.get(columns.ORDER_ID))
        if not order_id:
            continue

        order = orders.get(order_id)
        if order is None:
            order = Order(
                id=order_id,
                status=map_status(row.get(columns.ORDER_STATUS)),
                created_at=(
                    fields.timestamp_value(row.get(columns.ORDER_CREATED_AT)) or utc_now()
                ),
                address=ShippingAddress(
                    recipient_name=fields.text_value(row.get(columns.ORDER_RECIPIENT)),
                    phone=fields.text_value(row.get(columns.ORDER_PHONE)),
                    address=fields.text_value(row.get(columns.ORDER_ADDRESS)),
                ),
            )
            orders[order_id] = order

        product_ids = fields.link_ids(row.get(columns.ORDER_PRODUCT))
        quantity = fields.int_value(row.get(columns.ORDER_QUANTITY)) or 1
        amount = line_amount(row, quantity)

        order.items.append(
            OrderLine(
                product_id=product_ids[0] if product_ids else "unknown",
                quantity=quantity,
                amount=amount,
            )
        )
        order.total += amount

    return list(orders.values())


def _is_condition(field_name: str, value: str) -> dict:
    return {"field_name": field_name, "operator": "is", "value": [value]}


class OrderReader:
    def __init__(self, client: BitableClient, order_table_id: str):
        self.client = client
        self.order_table_id = order_table_id

    async def _search(
        self, conditions: list[dict], field_names: list[str]
    ) -> list[dict]:
        data = await self.client.search_records(
            self.order_table_id,
            {
                "field_names": field_names,
                "filter": {"conjunction": "and", "conditions": conditions},
                "sort": [{"field_name": columns.ORDER_CREATED_AT, "desc": True}],
            },
            page_size=ORDER_SEARCH_PAGE_SIZE,
        )
        if data.get("has_more"):
            logger.warning(
                f"Order search truncated at {ORDER_SEARCH_PAGE_SIZE} rows"
            )
        return data.get("items") or []

    async def list_orders(self, user: AuthUser) -> list[Order]:
        """Orders of ``user``, newest first."""
        if not user.username:
            raise ValidationError("Authenticated user has no username")
        rows = await self._search(
            [_is_condition(columns.ORDER_USERNAME, user.username)],
            list(columns.ORDER_AGGREGATION_FIELDS),
        )
        return group_line_items(rows)

    async def get_order(self, order_id: str, user: AuthUser) -> Order:
        """
        One order, verified to belong to ``user``.

        Raises:
            NotFoundError: no such order, or any of its rows belongs to someone else
        """
        if not user.username:
            raise ValidationError("Authenticated user has no username")
        rows = await self._search(
            [_is_condition(columns.ORDER_ID, order_id)],
            [*columns.ORDER_AGGREGATION_FIELDS, columns.ORDER_USERNAME],
        )

        owners = {
            fields.text_value((row.get("fields") or {}).get(columns.ORDER_USERNAME))
            for row in rows
            if isinstance(row, dict)
        }
        if not rows or owners != {user.username}:
            raise NotFoundError("Order not found")

        orders = [order for order in group_line_items(rows) if order.id == order_id]
        if not orders:
            raise NotFoundError("Order not found")
        return orders[0]

"""Catalog queries against the Bitable product table."""

from typing import Any, Optional
from urllib.parse import urlencode

from libs.bitable import fields
from libs.bitable.client import BitableClient
from libs.bitable.errors import ExternalNotFoundError
from libs.common.logging import get_logger
from services.store_service import columns
from services.store_service.errors import NotFoundError, ValidationError
from services.store_service.identifiers import require_identifier
from services.store_service.schemas import Category, Product, ProductPage

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 9
MAX_PAGE_SIZE = 500  # Bitable search limit

IMAGE_PROXY_PATH = "/api/image_proxy"


def resolve_page_size(raw: Any, default: int = DEFAULT_PAGE_SIZE) -> int:
    """Parse a page size from caller input.

    Absent or non-numeric values fall back to ``default``; zero, negative or
    oversized values are rejected rather than clamped.
    """
    if raw is None or raw == "":
        return default
    try:
        page_size = int(raw)
    except (TypeError, ValueError):
        return default
    if page_size <= 0:
        raise ValidationError("pageSize must be a positive integer")
    if page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"pageSize must not exceed {MAX_PAGE_SIZE}")
    return page_size


def build_search_filter(
    search_term: Optional[str] = None, category: Optional[str] = None
) -> Optional[dict]:
    conditions = []
    if search_term:
        conditions.append(
            {"field_name": columns.PRODUCT_NAME, "operator": "contains", "value": [search_term]}
        )
    if category:
        conditions.append(
            {"field_name": columns.PRODUCT_TYPE, "operator": "is", "value": [category]}
        )
    if not conditions:
        return None
    return {"conjunction": "and", "conditions": conditions}


def image_proxy_url(file_token: str) -> str:
    return f"{IMAGE_PROXY_PATH}?{urlencode({'file_token': file_token})}"


def product_from_record(record: dict, proxy_images: bool = True) -> Product:
    """Map a raw product row. Never raises on missing or malformed cells."""
    if not isinstance(record, dict):
        record = {}
    row = record.get("fields")
    if not isinstance(row, dict):
        row = {}

    image = ""
    attachment = fields.first_attachment(row.get(columns.PRODUCT_IMAGE))
    if attachment:
        if proxy_images:
            token = attachment.get("file_token")
            image = image_proxy_url(token) if token else ""
        else:
            image = attachment.get("url") or ""

    return Product(
        id=str(record.get("record_id") or ""),
        name=fields.text_value(row.get(columns.PRODUCT_NAME)),
        price=fields.decimal_value(row.get(columns.PRODUCT_PRICE)),
        stock=fields.int_value(row.get(columns.PRODUCT_STOCK)),
        image=image,
        description=fields.text_value(row.get(columns.PRODUCT_DESCRIPTION)),
        type=fields.text_value(row.get(columns.PRODUCT_TYPE)),
        unit=fields.text_value(row.get(columns.PRODUCT_UNIT)),
    )


class CatalogQuery:
    """Filtered, paginated reads of the product table."""

    def __init__(self, client: BitableClient, table_id: str):
        self.client = client
        self.table_id = table_id

    async def search(
        self,
        page_token: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        search_term: Optional[str] = None,
        category: Optional[str] = None,
    ) -> ProductPage:
        """
        One page of products.

        Raises:
            ValidationError: ``page_size`` outside 1..500
        """
        page_size = resolve_page_size(page_size)
        body: dict[str, Any] = {"field_names": list(columns.PRODUCT_FIELDS)}
        search_filter = build_search_filter(search_term, category)
        if search_filter:
            body["filter"] = search_filter

        data = await self.client.search_records(
            self.table_id,
            body,
            page_size=page_size,
            page_token=page_token or None,
        )

        items = data.get("items") or []
        return ProductPage(
            products=[product_from_record(item) for item in items],
            has_more=bool(data.get("has_more")),
            next_page_token=data.get("page_token") or "",
        )

    async def get_product(self, product_id: str) -> Product:
        """Product detail with the direct attachment URL."""
        require_identifier(product_id, "product id")
        try:
            record = await self.client.get_record(self.table_id, product_id)
        except ExternalNotFoundError:
            raise NotFoundError(f"Product not found: {product_id}")
        return product_from_record(record, proxy_images=False)

    async def list_categories(self) -> list[Category]:
        """Options of the product type column, read from the table schema."""
        table_fields = await self.client.list_fields(self.table_id)
        type_field = next(
            (
                f
                for f in table_fields
                if isinstance(f, dict) and f.get("field_name") == columns.PRODUCT_TYPE
            ),
            None,
        )
        if not type_field:
            logger.info("Product table has no category column")
            return []

        options = (type_field.get("property") or {}).get("options") or []
        return [
            Category(
                id=str(opt.get("id") or ""),
                name=str(opt.get("name") or ""),
                color=opt["color"] if isinstance(opt.get("color"), int) else None,
            )
            for opt in options
            if isinstance(opt, dict)
        ]

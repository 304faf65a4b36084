"""Store catalog router: product listing, categories, product detail."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.common.config import get_settings
from services.store_service.dependencies import get_catalog
from services.store_service.schemas import (
    CategoryListResponse,
    ProductDetailResponse,
    ProductListResponse,
)
from services.store_service.services.catalog import CatalogQuery, resolve_page_size

router = APIRouter(prefix="/products", tags=["store"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    page_token: Optional[str] = Query(None, alias="pageToken"),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    catalog: CatalogQuery = Depends(get_catalog),
):
    """Browse products with optional name search and category filter."""
    size = resolve_page_size(
        page_size, default=get_settings().CATALOG_DEFAULT_PAGE_SIZE
    )
    page = await catalog.search(
        page_token=page_token,
        page_size=size,
        search_term=q,
        category=category,
    )
    return ProductListResponse(**page.model_dump())


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(catalog: CatalogQuery = Depends(get_catalog)):
    """List product categories from the table schema."""
    return CategoryListResponse(categories=await catalog.list_categories())


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(product_id: str, catalog: CatalogQuery = Depends(get_catalog)):
    """Get product detail."""
    return ProductDetailResponse(product=await catalog.get_product(product_id))

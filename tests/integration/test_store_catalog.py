"""Integration tests for the public catalog and image proxy endpoints."""

import pytest


@pytest.fixture
def stocked(fake_bitable):
    fake_bitable.add_product(
        "p1", name="红富士苹果", price=12.5, stock=5, type_="水果", image_token="boxA", unit="斤"
    )
    fake_bitable.add_product("p2", name="苹果汁", price=8, stock=0, type_="饮料")
    fake_bitable.add_product("p3", name="香蕉", price=4, stock=20, type_="水果")
    fake_bitable.table_fields[fake_bitable.stock_table] = [
        {
            "field_name": "类型",
            "type": 3,
            "property": {"options": [{"id": "optA", "name": "水果", "color": 1}]},
        }
    ]
    fake_bitable.add_media("boxA", b"\x89PNG-apple", "image/png")
    return fake_bitable


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_products(client, stocked):
    """GET /api/products: first page with camelCase keys."""
    response = await client.get("/api/products")

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["success"] is True
    assert data["hasMore"] is False
    assert data["nextPageToken"] == ""
    assert [p["id"] for p in data["products"]] == ["p1", "p2", "p3"]
    assert data["products"][0]["image"] == "/api/image_proxy?file_token=boxA"
    assert data["products"][0]["price"] == 12.5
    assert data["products"][1]["price"] == 8.0
    assert stocked.search_calls[-1]["params"]["page_size"] == "9"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_products_filtered_and_paged(client, stocked):
    """GET /api/products: q, category and pageSize are forwarded."""
    response = await client.get(
        "/api/products", params={"q": "苹果", "category": "水果", "pageSize": "1"}
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert [p["name"] for p in data["products"]] == ["红富士苹果"]
    assert stocked.search_calls[-1]["params"]["page_size"] == "1"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_products_page_token(client, stocked):
    """GET /api/products: the next page starts where the token says."""
    first = (await client.get("/api/products", params={"pageSize": "2"})).json()
    second = await client.get(
        "/api/products", params={"pageSize": "2", "pageToken": first["nextPageToken"]}
    )

    assert first["hasMore"] is True
    assert [p["id"] for p in second.json()["products"]] == ["p3"]


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("page_size", ["0", "-1", "501"])
async def test_list_products_rejects_bad_page_size(client, stocked, page_size):
    """GET /api/products: out-of-range pageSize is a 400."""
    response = await client.get("/api/products", params={"pageSize": page_size})

    assert response.status_code == 400
    assert "pageSize" in response.json()["detail"]
    assert stocked.search_calls == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_product_detail(client, stocked):
    """GET /api/products/{id}: detail uses the direct attachment URL."""
    response = await client.get("/api/products/p1")

    assert response.status_code == 200, response.text
    product = response.json()["product"]
    assert product["name"] == "红富士苹果"
    assert product["stock"] == 5
    assert product["unit"] == "斤"
    assert product["image"].startswith("https://open.feishu.cn/")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_product_not_found(client, stocked):
    response = await client.get("/api/products/missing")

    assert response.status_code == 404
    assert "missing" in response.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_product_with_malformed_id_rejected(client, stocked):
    response = await client.get("/api/products/p1%3Fx%3D1")

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid product id"}
    assert stocked.token_requests == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_categories(client, stocked):
    """GET /api/products/categories: options of the type column."""
    response = await client.get("/api/products/categories")

    assert response.status_code == 200, response.text
    assert response.json() == {
        "success": True,
        "categories": [{"id": "optA", "name": "水果", "color": 1}],
    }


# ---------------------------------------------------------------------------
# Upstream failures
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upstream_api_error_is_502(client, stocked):
    stocked.token_code = 10014

    response = await client.get("/api/products")

    assert response.status_code == 502
    assert response.json() == {"detail": "Upstream data service error"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upstream_unreachable_is_502(client, stocked):
    stocked.fail_transport = True

    response = await client.get("/api/products")

    assert response.status_code == 502
    assert response.json() == {"detail": "Upstream data service unavailable"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_token_endpoint_unreachable_is_502(client, stocked):
    stocked.fail_token_transport = True

    response = await client.get("/api/products")

    assert response.status_code == 502
    assert response.json() == {"detail": "Upstream data service error"}


# ---------------------------------------------------------------------------
# Image proxy
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_image_proxy_serves_and_caches(client, stocked, edge_cache):
    """GET /api/image_proxy: bytes with a day-long cache header, then from cache."""
    first = await client.get("/api/image_proxy", params={"file_token": "boxA"})
    second = await client.get("/api/image_proxy", params={"file_token": "boxA"})

    assert first.status_code == 200
    assert first.content == b"\x89PNG-apple"
    assert first.headers["content-type"] == "image/png"
    assert first.headers["cache-control"] == "public, max-age=86400"
    assert second.content == b"\x89PNG-apple"
    assert stocked.media_downloads == ["boxA"]
    assert edge_cache.hits == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_image_proxy_requires_token(client, stocked):
    response = await client.get("/api/image_proxy")

    assert response.status_code == 400
    assert response.json() == {"detail": "Missing file_token"}


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "file_token",
    [
        "../../../bitable/v1/apps/app_test/tables/tbl_orders/records?x=",
        "boxA/../../../bitable/v1/apps/app_test/tables/tbl_orders/records/search",
        "..",
        "boxA?download=1",
    ],
)
async def test_image_proxy_rejects_malformed_token(client, stocked, edge_cache, file_token):
    """GET /api/image_proxy: only plain tokens reach the media endpoint."""
    response = await client.get("/api/image_proxy", params={"file_token": file_token})

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid file_token"}
    assert stocked.token_requests == 0
    assert stocked.media_downloads == []
    assert stocked.search_calls == []
    assert edge_cache.puts == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_image_proxy_upstream_failure(client, stocked):
    response = await client.get("/api/image_proxy", params={"file_token": "boxZ"})

    assert response.status_code == 502
    assert response.json()["detail"].startswith("Failed to download image")


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health_and_request_id(client):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "store"}
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cors_preflight(client):
    response = await client.options(
        "/api/products",
        headers={
            "Origin": "https://shop.example.com",
            "Access-Control-Request-Method": "GET",
        },
    )

    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers

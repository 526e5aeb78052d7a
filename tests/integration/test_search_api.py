"""
API tests for /api/search and /api/products
"""
from unittest.mock import AsyncMock, patch

import pytest

from storefront.core.exceptions import StoreUnavailable


def ids(body):
    return [product["id"] for product in body["data"]]


class TestSearchEndpoint:

    @pytest.mark.integration
    async def test_envelope(self, client, catalog):
        response = await client.get("/api/search", params={"q": "tasbih"})
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        assert set(body) == {"success", "data", "pagination", "suggestions", "filters"}
        assert body["pagination"] == {
            "page": 1,
            "limit": 12,
            "total": 2,
            "totalPages": 1,
            "hasNext": False,
            "hasPrev": False,
        }
        assert body["suggestions"][0] == "Premium Amber Tasbih"
        assert body["filters"]["priceRange"] == {"min": 24.99, "max": 89.99}
        assert body["filters"]["categories"][0]["productCount"] == 2

    @pytest.mark.integration
    async def test_product_fields_are_camel_case(self, client, catalog):
        body = (await client.get("/api/search", params={"q": "amber"})).json()
        product = body["data"][0]
        assert product["averageRating"] == 4.3
        assert product["reviewCount"] == 4
        assert product["orderCount"] == 3
        assert product["isFeatured"] is True
        assert product["tags"] == ["amber", "tasbih", "islamic", "premium"]
        assert product["category"]["slug"] == "tasbih-prayer-beads"
        assert len(product["variants"]) == 2

    @pytest.mark.integration
    async def test_text_search_bead(self, client, catalog):
        body = (await client.get("/api/search", params={"q": "bead"})).json()
        assert catalog.amber in ids(body)
        assert catalog.wooden not in ids(body)

    @pytest.mark.integration
    async def test_inverted_price_range(self, client, catalog):
        response = await client.get("/api/search", params={"priceMin": "50", "priceMax": "10"})
        assert response.status_code == 200
        body = response.json()
        assert body["data"] == []
        assert body["pagination"]["total"] == 0

    @pytest.mark.integration
    async def test_rating_floor_total(self, client, catalog):
        body = (await client.get("/api/search", params={"rating": "4", "limit": "2"})).json()
        assert body["pagination"]["total"] == 4
        assert body["pagination"]["totalPages"] == 2
        assert len(body["data"]) == 2

    @pytest.mark.integration
    async def test_sort_tie_break(self, client, catalog):
        body = (await client.get("/api/search", params={"sortBy": "price", "sortOrder": "desc"})).json()
        assert ids(body)[:2] == [catalog.amber, catalog.silver]

    @pytest.mark.integration
    async def test_filters_and_empty_params(self, client, catalog):
        params = {"q": "", "category": "crosses-crucifixes", "inStock": "true", "priceMin": "", "tags": ""}
        body = (await client.get("/api/search", params=params)).json()
        assert ids(body) == [catalog.silver]
        assert body["suggestions"] is None

    @pytest.mark.integration
    @pytest.mark.parametrize("params,field", [
        ({"priceMin": "abc"}, "priceMin"),
        ({"rating": "9"}, "rating"),
        ({"sortBy": "colour"}, "sortBy"),
        ({"page": "0"}, "page"),
        ({"limit": "-3"}, "limit"),
    ])
    async def test_invalid_parameters(self, client, catalog, params, field):
        response = await client.get("/api/search", params=params)
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert field in body["error"]

    @pytest.mark.integration
    async def test_store_failure_is_generic_500(self, client):
        failure = StoreUnavailable("search", RuntimeError("password=hunter2 connection refused"))
        with patch("storefront.routers.search.search_service.search", AsyncMock(side_effect=failure)):
            response = await client.get("/api/search", params={"q": "tasbih"})
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Catalog temporarily unavailable"}

    @pytest.mark.integration
    async def test_request_id_header(self, client, catalog):
        response = await client.get("/api/search")
        assert len(response.headers["X-Request-ID"]) == 8


class TestProductsEndpoint:

    @pytest.mark.integration
    async def test_list_newest_first(self, client, catalog):
        response = await client.get("/api/products")
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"success", "data", "pagination"}
        assert ids(body) == [6, 5, 4, 3, 2, 1]

    @pytest.mark.integration
    async def test_list_with_search_and_sort(self, client, catalog):
        params = {"search": "tasbih", "sortBy": "price", "sortOrder": "asc"}
        body = (await client.get("/api/products", params=params)).json()
        assert ids(body) == [catalog.crystal, catalog.amber]

    @pytest.mark.integration
    async def test_list_pagination(self, client, catalog):
        body = (await client.get("/api/products", params={"page": "2", "limit": "4"})).json()
        assert ids(body) == [2, 1]
        assert body["pagination"]["hasPrev"] is True
        assert body["pagination"]["hasNext"] is False


class TestRequestLogging:
    """Every line logged while serving a request carries its ID"""

    @pytest.mark.integration
    async def test_request_id_bound_for_service_logs(self, json_logging, client, catalog):
        response = await client.get("/api/search", params={"q": "tasbih"})
        request_id = response.headers["X-Request-ID"]

        lines = [line for line in json_logging() if line.get("request_id") == request_id]
        assert any(line["logger"] == "storefront.services.search_service" for line in lines)

        end = [line for line in lines if line.get("phase") == "end"]
        assert end[0]["status_code"] == 200
        assert end[0]["duration_ms"] >= 0

"""Integration tests for API routes."""
from fastapi import status


class TestServiceRoutes:
    """Test service info and health checks."""

    def test_root(self, test_client):
        response = test_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "running"

    def test_health_check(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data

    def test_ready_when_store_reachable(self, test_client):
        response = test_client.get("/ready")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["checks"]["mongodb"] == "ok"

    def test_ready_degraded_when_store_down(self, test_client, store):
        store.healthy = False
        response = test_client.get("/ready")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["status"] == "degraded"

    def test_request_id_header(self, test_client):
        response = test_client.get("/health")
        assert "X-Request-ID" in response.headers

    def test_incoming_request_id_is_echoed(self, test_client):
        response = test_client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"


class TestProductRoutes:
    """Test product CRUD endpoints."""

    def test_create_product(self, test_client):
        response = test_client.post(
            "/api/products",
            json={"name": "Mug", "price": 10, "currency": "EUR", "isFeatured": True}
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["price"] == 11.0
        assert data["isFeatured"] is True
        assert data["order"] == 0
        assert "id" in data
        assert "createdAt" in data

    def test_create_invalid_product_returns_field_errors(self, test_client, store):
        response = test_client.post("/api/products", json={"price": 0})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["message"] == "Invalid product data"
        assert [error["field"] for error in data["errors"]] == ["name", "price"]
        assert store.products == {}

    def test_create_with_bad_image(self, test_client, store):
        response = test_client.post(
            "/api/products",
            json={"name": "Mug", "price": 10, "images": ["/ok.png", "ftp://x/a.png"]}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["message"] == "Invalid product images"
        assert data["errors"][0]["index"] == 1
        assert store.products == {}

    def test_create_with_unknown_currency(self, test_client, store):
        response = test_client.post(
            "/api/products",
            json={"name": "Mug", "price": 10, "currency": "XYZ"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "XYZ" in response.json()["message"]
        assert store.products == {}

    def test_create_with_oversized_price_is_rejected(self, test_client, store):
        response = test_client.post(
            "/api/products",
            json={"name": "Yacht", "price": "1e30", "currency": "EUR"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "price"
        assert store.products == {}

    def test_create_with_overflowing_price_is_rejected(self, test_client, store):
        response = test_client.post("/api/products", json={"name": "Star", "price": "1e400"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert store.products == {}

    def test_create_with_non_object_body(self, test_client):
        response = test_client.post("/api/products", json=["Mug", 10])
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_products_sorted_and_converted(self, test_client, store):
        store.seed(name="Plain", price=20.0)
        store.seed(name="Second", price=4.0, isFeatured=True, order=1)
        store.seed(name="First", price=2.0, isFeatured=True, order=0)

        response = test_client.get("/api/products", params={"currency": "GBP"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [p["name"] for p in data] == ["First", "Second", "Plain"]
        assert [p["price"] for p in data] == [1.0, 2.0, 10.0]

    def test_list_products_with_search(self, test_client, store):
        store.seed(name="Blue Mug")
        store.seed(name="Fork")

        response = test_client.get("/api/products", params={"search": "MUG"})

        assert [p["name"] for p in response.json()] == ["Blue Mug"]

    def test_list_with_unknown_currency_is_server_error(self, test_client, store):
        store.seed(name="Mug")

        response = test_client.get("/api/products", params={"currency": "XYZ"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["message"] == "Failed to convert prices"

    def test_get_product(self, test_client, store):
        product = store.seed(name="Mug", price=11.0)

        response = test_client.get(f"/api/products/{product['id']}", params={"currency": "EUR"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["price"] == 10.0

    def test_get_missing_product(self, test_client):
        response = test_client.get("/api/products/does-not-exist")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "Product not found"

    def test_update_product(self, test_client, store):
        product = store.seed(name="Mug", description="Stoneware", price=5.0)

        response = test_client.put(
            f"/api/products/{product['id']}",
            json={"price": 10, "currency": "EUR"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["price"] == 11.0
        assert data["description"] == "Stoneware"

    def test_update_with_null_name(self, test_client, store):
        product = store.seed(name="Mug")

        response = test_client.put(f"/api/products/{product['id']}", json={"name": None})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == [{"field": "name", "message": "may not be null"}]

    def test_update_missing_product(self, test_client, store):
        response = test_client.put("/api/products/missing", json={"name": "Ghost"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert store.products == {}

    def test_delete_product(self, test_client, store):
        product = store.seed(name="Mug")

        response = test_client.delete(f"/api/products/{product['id']}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Product deleted successfully"

        response = test_client.get(f"/api/products/{product['id']}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_missing_product(self, test_client):
        response = test_client.delete("/api/products/missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestSearchRoutes:
    """Test quick search endpoint."""

    def test_search_without_query_returns_empty_list(self, test_client, store):
        store.seed(name="Mug")

        response = test_client.get("/api/products/search")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

    def test_search_returns_projection(self, test_client, store):
        store.seed(name="Mug", price=11.0, category="Kitchen", description="Stoneware")

        response = test_client.get("/api/products/search", params={"query": "mug", "currency": "EUR"})

        assert response.status_code == status.HTTP_200_OK
        [hit] = response.json()
        assert set(hit) == {"id", "name", "price", "images", "category"}
        assert hit["price"] == 10.0

    def test_search_is_capped(self, test_client, store):
        for i in range(14):
            store.seed(name=f"Mug {i}")

        response = test_client.get("/api/products/search", params={"query": "mug"})

        assert len(response.json()) == 12


class TestRelatedAndReorderRoutes:
    """Test related-products and featured reorder endpoints."""

    def test_set_related_products(self, test_client, store):
        saucer = store.seed(name="Saucer")
        product = store.seed(name="Mug")

        response = test_client.put(
            f"/api/products/{product['id']}/related",
            json={"relatedProducts": [saucer["id"]]}
        )

        assert response.status_code == status.HTTP_200_OK
        assert [r["name"] for r in response.json()["relatedProducts"]] == ["Saucer"]

    def test_set_related_on_missing_product(self, test_client):
        response = test_client.put("/api/products/missing/related", json={"relatedProducts": []})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_reorder_featured(self, test_client, store):
        a = store.seed(name="A", isFeatured=True, order=0)
        b = store.seed(name="B", isFeatured=True, order=1)

        response = test_client.put(
            "/api/products/featured/reorder",
            json={"products": [{"id": a["id"], "order": 1}, {"id": b["id"], "order": 0}]}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Featured products reordered successfully"
        assert store.products[a["id"]]["order"] == 1
        assert store.products[b["id"]]["order"] == 0

    def test_reorder_with_missing_id_keeps_applied_writes(self, test_client, store):
        a = store.seed(name="A", isFeatured=True, order=0)

        response = test_client.put(
            "/api/products/featured/reorder",
            json={"products": [{"id": a["id"], "order": 4}, {"id": "missing", "order": 0}]}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["ids"] == ["missing"]
        assert store.products[a["id"]]["order"] == 4

    def test_reorder_with_malformed_body(self, test_client):
        response = test_client.put("/api/products/featured/reorder", json={"products": [{"id": "a"}]})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Invalid request"


class TestCurrencyRoutes:
    """Test currency endpoints."""

    def test_rates(self, test_client):
        response = test_client.get("/api/currency/rates")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["base"] == "USD"
        assert data["currencies"] == ["EUR", "GBP", "USD"]
        assert data["rates"]["GBP"] == 0.5

    def test_convert(self, test_client):
        response = test_client.get(
            "/api/currency/convert", params={"amount": "10", "from": "eur", "to": "USD"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"amount": 10.0, "from": "EUR", "to": "USD", "result": 11.0}

    def test_convert_unknown_currency(self, test_client):
        response = test_client.get(
            "/api/currency/convert", params={"amount": "10", "from": "ABC", "to": "USD"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "currency"

    def test_convert_oversized_amount(self, test_client):
        response = test_client.get(
            "/api/currency/convert", params={"amount": "1e400", "from": "USD", "to": "USD"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "amount"

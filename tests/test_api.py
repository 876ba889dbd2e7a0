from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from storefront.app import create_app


def png_bytes(color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def uploads_dir(settings) -> Path:
    return Path(settings.uploads_dir)


def test_collections_are_initialized_on_startup(client, settings):
    for name in ("products", "categories", "orders", "contacts"):
        assert json.loads((Path(settings.data_dir) / f"{name}.json").read_text(encoding="utf-8")) == []
    assert client.get("/api/products").json() == []


def test_product_json_crud(client):
    created = client.post("/api/products", json={"name": "Ring", "price": "25", "stock": "3"})
    assert created.status_code == 201
    body = created.json()
    assert body["message"] == "Product added successfully"
    product = body["product"]
    assert product["price"] == 25.0 and product["stock"] == 3

    assert client.get(f"/api/products/{product['id']}").json() == product

    updated = client.put(f"/api/products/{product['id']}", json={"price": 30})
    assert updated.status_code == 200
    assert updated.json()["product"]["name"] == "Ring"
    assert updated.json()["product"]["price"] == 30.0

    deleted = client.delete(f"/api/products/{product['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["deletedProduct"]["id"] == product["id"]
    missing = client.get(f"/api/products/{product['id']}")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Product not found"}


def test_list_query_filters_and_limit(client):
    client.post("/api/products", json={"name": "A", "price": 1, "featured": True})
    client.post("/api/products", json={"name": "B", "price": 1})
    client.post("/api/products", json={"name": "C", "price": 1, "featured": True})

    featured = client.get("/api/products", params={"featured": "true"}).json()
    assert [p["name"] for p in featured] == ["A", "C"]
    limited = client.get("/api/products", params={"featured": "true", "limit": 1}).json()
    assert [p["name"] for p in limited] == ["A"]
    assert client.get("/api/products", params={"limit": -1}).status_code == 422


def test_validation_error_reports_fields(client):
    resp = client.post("/api/products", json={"price": 10})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation error"
    assert body["fields"] == ["name"]
    assert body["receivedData"] == {"price": 10}
    assert client.get("/api/products").json() == []


def test_invalid_json_body(client):
    resp = client.post("/api/categories", content=b"[1, 2", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid JSON"}


def test_multipart_upload_and_replacement(client, settings):
    resp = client.post(
        "/api/products",
        data={"name": "Necklace", "price": "99.9", "featured": "on"},
        files={"image": ("necklace.png", png_bytes(), "image/png")},
    )
    assert resp.status_code == 201
    product = resp.json()["product"]
    first_image = product["image"]
    assert first_image.startswith("/uploads/product-") and first_image.endswith(".png")
    assert product["featured"] is True
    assert client.get(first_image).status_code == 200

    resp = client.put(
        f"/api/products/{product['id']}",
        data={"name": "Necklace", "price": "", "stock": "4"},
        files={"image": ("new.png", png_bytes((0, 0, 255)), "image/png")},
    )
    assert resp.status_code == 200
    updated = resp.json()["product"]
    assert updated["price"] == 99.9
    assert updated["stock"] == 4
    assert updated["image"] != first_image
    assert (uploads_dir(settings) / updated["image"].rsplit("/", 1)[-1]).exists()


def test_previous_image_removed_after_update(settings):
    with TestClient(create_app(settings)) as client:
        product = client.post(
            "/api/products",
            data={"name": "Ring", "price": "5"},
            files={"image": ("a.png", png_bytes(), "image/png")},
        ).json()["product"]
        client.put(
            f"/api/products/{product['id']}",
            data={"name": "Ring", "price": "5"},
            files={"image": ("b.png", png_bytes(), "image/png")},
        )
    remaining = [p.name for p in uploads_dir(settings).iterdir()]
    assert len(remaining) == 1
    assert remaining[0] != product["image"].rsplit("/", 1)[-1]


def test_delete_removes_owned_image(settings):
    with TestClient(create_app(settings)) as client:
        product = client.post(
            "/api/products",
            data={"name": "Ring", "price": "5"},
            files={"image": ("a.png", png_bytes(), "image/png")},
        ).json()["product"]
        assert client.delete(f"/api/products/{product['id']}").status_code == 200
    assert list(uploads_dir(settings).iterdir()) == []


@pytest.mark.parametrize(
    "filename, payload, content_type",
    [
        ("notes.txt", b"hello", "text/plain"),
        ("fake.png", b"not really a png", "image/png"),
        ("empty.png", b"", "image/png"),
    ],
)
def test_rejected_uploads(client, settings, filename, payload, content_type):
    resp = client.post(
        "/api/products",
        data={"name": "Bad", "price": "1"},
        files={"image": (filename, payload, content_type)},
    )
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert list(uploads_dir(settings).iterdir()) == []
    assert client.get("/api/products").json() == []


def test_upload_size_limit(tmp_path):
    from conftest import make_settings

    small = make_settings(tmp_path, max_upload_bytes=10)
    with TestClient(create_app(small)) as client:
        resp = client.post(
            "/api/products",
            data={"name": "Big", "price": "1"},
            files={"image": ("big.png", png_bytes(), "image/png")},
        )
    assert resp.status_code == 400


def test_orders_total_and_status(client):
    resp = client.post(
        "/api/orders",
        json={
            "customerName": "Ana",
            "customerEmail": "ana@example.com",
            "items": [{"id": 1, "price": 12.5, "quantity": 2}],
        },
    )
    assert resp.status_code == 201
    assert resp.json()["message"] == "Order created successfully"
    order = resp.json()["order"]
    assert order["total"] == 25.0
    assert order["status"] == "pending"

    shipped = client.put(f"/api/orders/{order['id']}", json={"status": "shipped"}).json()["order"]
    assert shipped["status"] == "shipped"
    assert shipped["total"] == 25.0

    bad = client.post("/api/orders", json={"customerName": "Ana", "customerEmail": "a@b.c", "items": "none"})
    assert bad.status_code == 400
    assert bad.json()["fields"] == ["items"]


def test_categories_slug(client):
    category = client.post("/api/categories", json={"name": "Brincos de Ouro"}).json()["category"]
    assert category["slug"] == "brincos-de-ouro"
    renamed = client.put(f"/api/categories/{category['id']}", json={"name": "Anéis"}).json()["category"]
    assert renamed["slug"] == "anéis"


def test_contacts_cannot_be_edited(client):
    resp = client.post("/api/contacts", json={"name": "Ana", "email": "ana@example.com", "message": "Oi"})
    assert resp.status_code == 201
    assert resp.json()["message"] == "Contact submitted successfully"
    contact = resp.json()["contact"]

    assert client.put(f"/api/contacts/{contact['id']}", json={"message": "x"}).status_code == 405
    assert client.delete(f"/api/contacts/{contact['id']}").json()["deletedContact"]["message"] == "Oi"


def test_storage_failure_maps_to_503(client, settings):
    (Path(settings.data_dir) / "categories.json").write_text("{broken", encoding="utf-8")
    resp = client.get("/api/categories")
    assert resp.status_code == 503
    assert resp.json() == {"error": "Storage unavailable"}

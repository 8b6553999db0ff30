"""
Route tests against the FastAPI app with an in-memory database and a fake OCR engine.
"""

import pytest
from fastapi.testclient import TestClient

from card_manager.api import create_app
from card_manager.config import Settings
from card_manager.tests.samples import FakeOCREngine


def make_client(tmp_path, image_storage_dir="images") -> TestClient:
    app_settings = Settings(
        database_url="sqlite:///:memory:",
        image_storage_dir=str(tmp_path / image_storage_dir) if image_storage_dir else None,
    )
    return TestClient(create_app(app_settings, ocr_engine=FakeOCREngine()))


@pytest.fixture
def client(tmp_path):
    """Test client with the lifespan running."""
    with make_client(tmp_path) as test_client:
        yield test_client


@pytest.fixture
def card_payload():
    return {
        "company_name": "Acme Corporation",
        "person_name": "John Smith",
        "position": "Senior Software Engineer",
        "email": "john.smith@acme.com",
        "phone": "+1 (555) 123-4567",
        "website": "www.acme.com",
    }


def create_card(client, payload):
    response = client.post("/api/business-cards", json=payload)
    assert response.status_code == 201
    return response.json()["data"]


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert "business_cards" in client.get("/").json()["endpoints"]


class TestBusinessCardRoutes:
    """Test CRUD routes for business cards."""

    def test_create_then_read(self, client, card_payload):
        created = create_card(client, card_payload)

        response = client.get(f"/api/business-cards/{created['id']}")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        for field, value in card_payload.items():
            assert body["data"][field] == value
        assert body["data"]["registered_by"] == "anonymous"
        assert body["data"]["categories"] == []

    def test_create_requires_names(self, client):
        response = client.post("/api/business-cards", json={"company_name": "Acme"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Company name and person name are required"}

    def test_list_with_search_and_total(self, client, card_payload):
        create_card(client, card_payload)
        create_card(client, {"company_name": "Globex Inc", "person_name": "Jane Doe"})

        body = client.get("/api/business-cards").json()
        assert body["total"] == 2
        assert [card["person_name"] for card in body["data"]] == ["Jane Doe", "John Smith"]

        body = client.get("/api/business-cards", params={"q": "acme"}).json()
        assert body["total"] == 1
        assert body["data"][0]["company_name"] == "Acme Corporation"

        body = client.get("/api/business-cards", params={"limit": 1, "offset": 1}).json()
        assert body["total"] == 2
        assert [card["person_name"] for card in body["data"]] == ["John Smith"]

    def test_invalid_query_uses_error_envelope(self, client):
        response = client.get("/api/business-cards", params={"limit": 0})
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "limit" in response.json()["error"]

    def test_update_changes_only_targeted_fields(self, client, card_payload):
        created = create_card(client, card_payload)

        response = client.put(f"/api/business-cards/{created['id']}", json={"position": "CTO"})
        assert response.status_code == 200
        updated = response.json()["data"]
        assert updated["position"] == "CTO"
        assert updated["email"] == card_payload["email"]
        assert updated["company_name"] == card_payload["company_name"]

    def test_update_missing_card(self, client):
        response = client.put("/api/business-cards/999", json={"position": "CTO"})
        assert response.status_code == 404
        assert response.json()["error"] == "Business card not found"

    def test_delete(self, client, card_payload):
        created = create_card(client, card_payload)

        response = client.delete(f"/api/business-cards/{created['id']}")
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": None}

        assert client.get(f"/api/business-cards/{created['id']}").status_code == 404
        assert client.delete(f"/api/business-cards/{created['id']}").status_code == 404


class TestCategoryRoutes:
    """Test category routes and their business rules."""

    def test_create_and_list(self, client):
        response = client.post("/api/categories", json={"name": "Customers", "color": "#10B981"})
        assert response.status_code == 201
        assert response.json()["data"]["color"] == "#10B981"

        body = client.get("/api/categories").json()
        assert body["total"] == 1
        assert body["data"][0]["name"] == "Customers"

    def test_duplicate_name_rejected(self, client):
        client.post("/api/categories", json={"name": "Customers"})

        response = client.post("/api/categories", json={"name": "Customers"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Category name already exists"}

    def test_missing_name_rejected(self, client):
        response = client.post("/api/categories", json={"color": "#10B981"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_category_filter_and_in_use_delete(self, client, card_payload):
        category = client.post("/api/categories", json={"name": "VIP"}).json()["data"]
        card = create_card(client, {**card_payload, "category_ids": [category["id"]]})
        create_card(client, {"company_name": "Globex Inc", "person_name": "Jane Doe"})

        body = client.get("/api/business-cards", params={"category": "VIP"}).json()
        assert [c["id"] for c in body["data"]] == [card["id"]]
        assert body["data"][0]["categories"][0]["name"] == "VIP"

        response = client.delete(f"/api/categories/{category['id']}")
        assert response.status_code == 400
        assert "1 business cards are using this category" in response.json()["error"]

        client.delete(f"/api/business-cards/{card['id']}")
        response = client.delete(f"/api/categories/{category['id']}")
        assert response.json() == {"success": True, "message": "Category deleted successfully"}
        assert client.get(f"/api/categories/{category['id']}").status_code == 404

    def test_update_category(self, client):
        category = client.post("/api/categories", json={"name": "Customers"}).json()["data"]

        response = client.put(f"/api/categories/{category['id']}", json={"color": "#EF4444"})
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Customers"
        assert response.json()["data"]["color"] == "#EF4444"


class TestImageRoutes:
    """Test upload, fetch, list and delete of card photos."""

    def test_upload_attach_fetch_delete(self, client, card_payload, png_bytes):
        card = create_card(client, card_payload)

        response = client.post(
            "/api/images/upload",
            files={"image": ("card.png", png_bytes, "image/png")},
            data={"businessCardId": str(card["id"])},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["image_url"] == f"/api/images/{body['image_filename']}"

        assert client.get(f"/api/business-cards/{card['id']}").json()["data"]["image_filename"] == body["image_filename"]

        image = client.get(body["image_url"])
        assert image.status_code == 200
        assert image.content == png_bytes
        assert image.headers["content-type"] == "image/png"
        assert image.headers["cache-control"] == "public, max-age=31536000"
        assert image.headers["etag"]

        assert client.get("/api/images").json()["total"] == 1

        response = client.delete(body["image_url"])
        assert response.json() == {"success": True, "data": None}
        assert client.get(body["image_url"]).status_code == 404
        assert client.get(f"/api/business-cards/{card['id']}").json()["data"]["image_url"] is None

    def test_rejects_bad_type(self, client):
        response = client.post("/api/images/upload", files={"image": ("card.gif", b"GIF89a", "image/gif")})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_rejects_invalid_card_id(self, client, png_bytes):
        response = client.post(
            "/api/images/upload",
            files={"image": ("card.png", png_bytes, "image/png")},
            data={"businessCardId": "abc"},
        )
        assert response.status_code == 400

    def test_missing_file(self, client):
        response = client.post("/api/images/upload", data={"businessCardId": "1"})
        assert response.status_code == 400
        assert response.json()["error"] == "No file selected"

    def test_unknown_image(self, client):
        assert client.get("/api/images/business-card-0-aaaaaa.png").status_code == 404

    def test_delete_unknown_image_succeeds(self, client):
        response = client.delete("/api/images/business-card-0-aaaaaa.png")
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": None}

    def test_inline_fallback_without_storage_dir(self, tmp_path, png_bytes):
        with make_client(tmp_path, image_storage_dir=None) as client:
            body = client.post(
                "/api/images/upload", files={"image": ("card.png", png_bytes, "image/png")}
            ).json()

            image = client.get(body["image_url"])
            assert image.status_code == 200
            assert image.content == png_bytes

        assert not (tmp_path / "images").exists()


class TestOCRRoute:
    """Test the OCR endpoint end to end with the fake engine."""

    def test_recognize_card(self, client, png_bytes):
        response = client.post("/api/ocr", files={"image": ("card.png", png_bytes, "image/png")})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        fields = body["data"]["parsed"]["fields"]
        assert fields["company_name"]["value"] == "Acme Corporation"
        assert fields["email"]["level"] == "high"
        assert body["data"]["preset"] in ("otsu", "standard")

    def test_rejects_non_image(self, client):
        response = client.post("/api/ocr", files={"image": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 400

    def test_undecodable_image(self, client):
        response = client.post("/api/ocr", files={"image": ("card.png", b"not really a png", "image/png")})
        assert response.status_code == 422
        assert response.json()["success"] is False

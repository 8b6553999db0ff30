"""
Tests for image storage: object stores and the image service.
"""

import re

import pytest

from card_manager.exceptions import ImageValidationError, NotFoundError
from card_manager.models.business_card import BusinessCardCreate
from card_manager.services.image_storage import (
    DatabaseObjectStore,
    FilesystemObjectStore,
    ImageService,
    generate_filename,
    validate_filename,
)

ALLOWED_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]


@pytest.fixture(params=["filesystem", "database"])
def store(request, tmp_path, db_service):
    """Run each test against both store implementations."""
    if request.param == "filesystem":
        return FilesystemObjectStore(str(tmp_path / "images"))
    return DatabaseObjectStore(db_service)


@pytest.fixture
def image_service(store, card_repo):
    return ImageService(store, card_repo, allowed_types=ALLOWED_TYPES, max_bytes=1024 * 1024)


@pytest.fixture
def card(card_repo):
    return card_repo.create_card(BusinessCardCreate(company_name="Acme", person_name="John Smith"))


def test_generate_filename_format():
    filename = generate_filename("Photo.PNG")
    assert re.fullmatch(r"business-card-\d{13}-[a-z0-9]{6}\.png", filename)


def test_generate_filename_defaults_to_jpg():
    assert generate_filename(None).endswith(".jpg")
    assert generate_filename("no-extension").endswith(".jpg")
    assert generate_filename("weird.ext/../x").endswith(".jpg")


@pytest.mark.parametrize("filename", ["../secret", "a/../../b.png", ".hidden", "dir/file.png", ""])
def test_validate_filename_rejects_traversal(filename):
    with pytest.raises(NotFoundError):
        validate_filename(filename)


def test_store_round_trip(store):
    stored = store.put("business-card-1-abcdef.png", b"\x89PNG data", "image/png", {"original_name": "card.png"})

    assert stored.url == "/api/images/business-card-1-abcdef.png"
    assert stored.size == 9

    data, meta = store.get("business-card-1-abcdef.png")
    assert data == b"\x89PNG data"
    assert meta.content_type == "image/png"
    assert meta.original_name == "card.png"

    assert [image.filename for image in store.list()] == ["business-card-1-abcdef.png"]
    assert store.delete("business-card-1-abcdef.png") is True
    assert store.get("business-card-1-abcdef.png") is None
    assert store.delete("business-card-1-abcdef.png") is False


class TestImageService:
    """Test upload validation and card reference handling."""

    def test_upload_attaches_image_to_card(self, image_service, card_repo, card, png_bytes):
        stored = image_service.upload(png_bytes, "image/png", original_name="card.png", business_card_id=card.id)

        assert stored.filename.endswith(".png")
        loaded = card_repo.get_card(card.id)
        assert loaded.image_filename == stored.filename
        assert loaded.image_url == f"/api/images/{stored.filename}"

        data, meta = image_service.get(stored.filename)
        assert data == png_bytes
        assert meta.business_card_id == card.id

    def test_upload_without_card(self, image_service, png_bytes):
        stored = image_service.upload(png_bytes, "image/png", original_name="card.png")
        assert stored.business_card_id is None
        assert len(image_service.list_images()) == 1

    def test_rejects_unsupported_type(self, image_service):
        with pytest.raises(ImageValidationError, match="Unsupported file type"):
            image_service.upload(b"GIF89a", "image/gif", original_name="card.gif")

    def test_rejects_oversized_file(self, image_service):
        with pytest.raises(ImageValidationError, match="too large"):
            image_service.upload(b"x" * (1024 * 1024 + 1), "image/jpeg", original_name="big.jpg")

    def test_rejects_empty_file(self, image_service):
        with pytest.raises(ImageValidationError, match="No file selected"):
            image_service.upload(b"", "image/png")

    def test_rejects_unknown_card(self, image_service, png_bytes):
        with pytest.raises(NotFoundError):
            image_service.upload(png_bytes, "image/png", business_card_id=999)
        assert image_service.list_images() == []

    def test_delete_clears_card_references(self, image_service, card_repo, card, png_bytes):
        stored = image_service.upload(png_bytes, "image/png", business_card_id=card.id)

        assert image_service.delete(stored.filename) is True

        loaded = card_repo.get_card(card.id)
        assert loaded.image_url is None
        assert loaded.image_filename is None
        with pytest.raises(NotFoundError):
            image_service.get(stored.filename)

    def test_get_missing_image(self, image_service):
        with pytest.raises(NotFoundError):
            image_service.get("business-card-0-zzzzzz.png")

    def test_delete_missing_image_is_not_an_error(self, image_service):
        assert image_service.delete("business-card-0-zzzzzz.png") is False

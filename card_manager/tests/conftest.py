"""
Shared fixtures: in-memory database, repositories, images and a fake OCR engine.
"""

import cv2
import numpy as np
import pytest

from card_manager.database.card_repository import BusinessCardRepository
from card_manager.database.category_repository import CategoryRepository
from card_manager.database.database_service import DatabaseService
from card_manager.services.image_preprocessor import encode_png
from card_manager.tests.samples import FakeOCREngine


@pytest.fixture
def db_service():
    """Create a connected in-memory database."""
    service = DatabaseService("sqlite:///:memory:")
    service.connect()
    service.initialize_schema()
    yield service
    service.disconnect()


@pytest.fixture
def card_repo(db_service):
    return BusinessCardRepository(db_service)


@pytest.fixture
def category_repo(db_service):
    return CategoryRepository(db_service)


@pytest.fixture
def card_image():
    """A light gray card with dark text-like bars, as a BGR array."""
    image = np.full((400, 700, 3), 190, dtype=np.uint8)
    for row, width in enumerate((500, 320, 420, 260)):
        top = 60 + row * 70
        cv2.rectangle(image, (60, top), (60 + width, top + 24), (20, 20, 20), thickness=-1)
    return image


@pytest.fixture
def png_bytes(card_image):
    return encode_png(card_image)


@pytest.fixture
def fake_engine():
    return FakeOCREngine()

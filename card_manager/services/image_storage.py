"""
Image storage for business card photos.

Blobs live in an object store keyed by a generated filename. Two stores
are provided: a directory-backed object store and an inline fallback that
keeps base64 encoded data in the relational database.
"""

import base64
import json
import logging
import random
import re
import string
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select

from ..database.card_repository import BusinessCardRepository
from ..database.database_service import DatabaseService
from ..exceptions import ImageValidationError, NotFoundError
from ..models.business_card import StoredImage
from ..models.orm import ImageBlobORM

logger = logging.getLogger(__name__)

IMAGE_URL_PREFIX = "/api/images/"
SAFE_FILENAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,200}$")
_BASE36 = string.ascii_lowercase + string.digits


def image_url(filename: str) -> str:
    return f"{IMAGE_URL_PREFIX}{filename}"


def generate_filename(original_name: Optional[str]) -> str:
    """
    Build a collision-resistant key: business-card-<epoch ms>-<6 chars>.<ext>
    """
    timestamp = int(time.time() * 1000)
    random_id = "".join(random.choices(_BASE36, k=6))

    extension = "jpg"
    if original_name and "." in original_name:
        candidate = original_name.rsplit(".", 1)[1].lower()
        if candidate.isalnum() and len(candidate) <= 5:
            extension = candidate

    return f"business-card-{timestamp}-{random_id}.{extension}"


def validate_filename(filename: str) -> str:
    """Reject keys that could escape the store."""
    if not SAFE_FILENAME.match(filename) or ".." in filename:
        raise NotFoundError("Image not found")
    return filename


class ObjectStore(ABC):
    """
    Blob store interface.

    Implementations keep bytes plus a small metadata record per key.
    """

    @abstractmethod
    def put(self, filename: str, data: bytes, content_type: str, metadata: Dict[str, Optional[str]]) -> StoredImage:
        """Store bytes under filename and return their metadata."""
        pass

    @abstractmethod
    def get(self, filename: str) -> Optional[Tuple[bytes, StoredImage]]:
        """Return (bytes, metadata) or None if the key does not exist."""
        pass

    @abstractmethod
    def delete(self, filename: str) -> bool:
        """Remove a key. Returns False if it did not exist."""
        pass

    @abstractmethod
    def list(self, limit: int = 100) -> List[StoredImage]:
        """List stored images, newest first."""
        pass


class FilesystemObjectStore(ObjectStore):
    """Object store backed by a directory with a JSON sidecar per blob."""

    META_SUFFIX = ".meta.json"

    def __init__(self, root: str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _paths(self, filename: str) -> Tuple[Path, Path]:
        return self.root / filename, self.root / f"{filename}{self.META_SUFFIX}"

    def put(self, filename, data, content_type, metadata):
        blob_path, meta_path = self._paths(filename)
        uploaded_at = datetime.now(timezone.utc)

        record = {
            "content_type": content_type,
            "size": len(data),
            "uploaded_at": uploaded_at.isoformat(),
            **metadata,
        }
        blob_path.write_bytes(data)
        meta_path.write_text(json.dumps(record), encoding="utf-8")

        return self._to_model(filename, record)

    def get(self, filename):
        blob_path, meta_path = self._paths(filename)
        if not blob_path.is_file():
            return None

        record = self._read_meta(meta_path, blob_path)
        return blob_path.read_bytes(), self._to_model(filename, record)

    def delete(self, filename):
        blob_path, meta_path = self._paths(filename)
        if not blob_path.is_file():
            return False

        blob_path.unlink()
        meta_path.unlink(missing_ok=True)
        return True

    def list(self, limit=100):
        images = []
        for blob_path in self.root.iterdir():
            if not blob_path.is_file() or blob_path.name.endswith(self.META_SUFFIX):
                continue
            _, meta_path = self._paths(blob_path.name)
            images.append(self._to_model(blob_path.name, self._read_meta(meta_path, blob_path)))

        images.sort(key=lambda image: image.uploaded_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return images[:limit]

    @staticmethod
    def _read_meta(meta_path: Path, blob_path: Path) -> dict:
        if meta_path.is_file():
            try:
                return json.loads(meta_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                logger.warning(f"Corrupt metadata for {blob_path.name}, using defaults")

        stat = blob_path.stat()
        return {
            "content_type": "application/octet-stream",
            "size": stat.st_size,
            "uploaded_at": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
        }

    @staticmethod
    def _to_model(filename: str, record: dict) -> StoredImage:
        card_id = record.get("business_card_id")
        return StoredImage(
            filename=filename,
            url=image_url(filename),
            size=record.get("size", 0),
            content_type=record.get("content_type", "application/octet-stream"),
            uploaded_at=record.get("uploaded_at"),
            original_name=record.get("original_name"),
            business_card_id=int(card_id) if card_id else None,
        )


class DatabaseObjectStore(ObjectStore):
    """Fallback store keeping base64 encoded blobs in the images table."""

    def __init__(self, database_service: DatabaseService):
        self.db = database_service

    def put(self, filename, data, content_type, metadata):
        card_id = metadata.get("business_card_id")

        with self.db.session_scope() as session:
            blob = ImageBlobORM(
                filename=filename,
                content_type=content_type,
                data=base64.b64encode(data).decode("ascii"),
                size=len(data),
                original_name=metadata.get("original_name"),
                business_card_id=int(card_id) if card_id else None,
            )
            session.add(blob)
            session.flush()
            session.refresh(blob)
            return self._to_model(blob)

    def get(self, filename):
        with self.db.session_scope() as session:
            blob = session.get(ImageBlobORM, filename)
            if blob is None:
                return None
            return base64.b64decode(blob.data), self._to_model(blob)

    def delete(self, filename):
        with self.db.session_scope() as session:
            blob = session.get(ImageBlobORM, filename)
            if blob is None:
                return False
            session.delete(blob)
            return True

    def list(self, limit=100):
        with self.db.session_scope() as session:
            blobs = session.scalars(
                select(ImageBlobORM).order_by(ImageBlobORM.uploaded_at.desc()).limit(limit)
            ).all()
            return [self._to_model(blob) for blob in blobs]

    @staticmethod
    def _to_model(blob: ImageBlobORM) -> StoredImage:
        return StoredImage(
            filename=blob.filename,
            url=image_url(blob.filename),
            size=blob.size,
            content_type=blob.content_type,
            uploaded_at=blob.uploaded_at,
            original_name=blob.original_name,
            business_card_id=blob.business_card_id,
        )


class ImageService:
    """
    Upload, fetch and delete business card photos.

    Keeps card records in sync: an upload tied to a card sets its image
    reference, and deleting an image clears every reference to it.
    """

    def __init__(
        self,
        store: ObjectStore,
        card_repository: BusinessCardRepository,
        allowed_types: List[str],
        max_bytes: int,
    ):
        self.store = store
        self.card_repository = card_repository
        self.allowed_types = [t.lower() for t in allowed_types]
        self.max_bytes = max_bytes

    def validate(self, data: bytes, content_type: Optional[str]) -> None:
        """
        Raises:
            ImageValidationError: empty file, unsupported type or too large
        """
        if not data:
            raise ImageValidationError("No file selected")

        if (content_type or "").lower() not in self.allowed_types:
            raise ImageValidationError("Unsupported file type (JPEG, PNG and WebP only)")

        if len(data) > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ImageValidationError(f"File is too large (max {limit_mb}MB)")

    def upload(
        self,
        data: bytes,
        content_type: Optional[str],
        original_name: Optional[str] = None,
        business_card_id: Optional[int] = None,
    ) -> StoredImage:
        """
        Validate and store an image, attaching it to a card when an ID is given.
        """
        self.validate(data, content_type)

        if business_card_id is not None and self.card_repository.get_card(business_card_id) is None:
            raise NotFoundError("Business card not found")

        filename = generate_filename(original_name)
        stored = self.store.put(
            filename,
            data,
            content_type.lower(),
            {
                "original_name": original_name,
                "business_card_id": str(business_card_id) if business_card_id is not None else None,
            },
        )
        logger.info(f"Stored image {filename} ({len(data)} bytes)")

        if business_card_id is not None:
            self.card_repository.set_image(business_card_id, stored.url, filename)

        return stored

    def get(self, filename: str) -> Tuple[bytes, StoredImage]:
        """
        Raises:
            NotFoundError: unknown or unsafe filename
        """
        found = self.store.get(validate_filename(filename))
        if found is None:
            raise NotFoundError("Image not found")
        return found

    def delete(self, filename: str) -> bool:
        """
        Delete the blob and clear card references.

        Returns:
            True if a blob was removed
        """
        validate_filename(filename)
        removed = self.store.delete(filename)
        cleared = self.card_repository.clear_image_by_filename(filename)
        logger.info(f"Deleted image {filename} (blob removed: {removed}, cards cleared: {cleared})")
        return removed

    def list_images(self, limit: int = 100) -> List[StoredImage]:
        return self.store.list(limit=limit)

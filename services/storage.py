"""
Blob storage for receipts, invoices and payment proofs.

Uploads happen before the transition that needs the URL; a failed upload
never reaches the workflow engines.
"""

import os
import uuid
from pathlib import Path
from typing import NamedTuple, Optional, Protocol

from config import config
from constants import UploadKinds
from exceptions import NotFoundError, PersistenceError, ValidationError
from logging_config import get_logger

logger = get_logger("storage")

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
ALLOWED_EXTENSIONS = {
    UploadKinds.RECEIPT: IMAGE_EXTENSIONS,
    UploadKinds.PAYMENT_PROOF: IMAGE_EXTENSIONS,
    UploadKinds.INVOICE: IMAGE_EXTENSIONS | {".pdf"},
}


class UploadResult(NamedTuple):
    url: str
    public_id: str


class BlobStorage(Protocol):
    def upload(self, data: bytes, kind: str, filename: str) -> UploadResult: ...

    def delete(self, public_id: str) -> None: ...


def validate_upload(data: bytes, kind: str, filename: Optional[str], max_mb: Optional[int] = None) -> str:
    """Check kind, extension and size; returns the normalized extension."""
    if kind not in ALLOWED_EXTENSIONS:
        raise ValidationError(f"Unknown upload kind '{kind}'", field="kind")
    if not data:
        raise ValidationError("No file provided", field="file")

    ext = Path(filename or "").suffix.lower()
    allowed = ALLOWED_EXTENSIONS[kind]
    if ext not in allowed:
        raise ValidationError(
            f"Invalid file type. Allowed: {', '.join(sorted(allowed))}",
            field="file",
            details={"extension": ext},
        )

    max_mb = max_mb if max_mb is not None else config.MAX_UPLOAD_MB
    if len(data) > max_mb * 1024 * 1024:
        raise ValidationError(f"File size too large. Maximum {max_mb}MB", field="file")
    return ext


class LocalBlobStorage:
    """Stores files on local disk under ``<root>/<kind>/<uuid><ext>``."""

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or config.UPLOAD_DIR)
        self.base_url = (base_url or config.PUBLIC_BASE_URL).rstrip("/")

    def _path_for(self, public_id: str) -> Path:
        kind, _, name = public_id.partition("/")
        # public ids are "<kind>/<file>"; anything else could escape the root
        if kind not in ALLOWED_EXTENSIONS or not name or os.path.basename(name) != name:
            raise NotFoundError("File", public_id)
        return self.root / kind / name

    def upload(self, data: bytes, kind: str, filename: str) -> UploadResult:
        ext = validate_upload(data, kind, filename)
        public_id = f"{kind}/{uuid.uuid4().hex}{ext}"
        path = self._path_for(public_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store upload: {e}", exc_info=True, extra={"data": {"kind": kind}})
            raise PersistenceError("Failed to upload file") from e

        logger.info("File uploaded", extra={"data": {"public_id": public_id, "bytes": len(data)}})
        return UploadResult(url=f"{self.base_url}/api/uploads/{public_id}", public_id=public_id)

    def delete(self, public_id: str) -> None:
        path = self._path_for(public_id)
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFoundError("File", public_id)
        except OSError as e:
            raise PersistenceError("Failed to delete file") from e
        logger.info("File deleted", extra={"data": {"public_id": public_id}})

    def resolve(self, public_id: str) -> Path:
        path = self._path_for(public_id)
        if not path.is_file():
            raise NotFoundError("File", public_id)
        return path

"""
Local storage for booking attachments.

Files land in ``settings.UPLOAD_DIR`` under a random name that keeps the
original extension; the stored path is relative (``uploads/<name>``) and
is served by the ``/uploads`` static mount.
"""
import logging
import os
import secrets
from pathlib import Path
from typing import Optional

from fastapi import Request, UploadFile

from app.config import settings
from app.utils.errors import InvalidInput

logger = logging.getLogger(__name__)

URL_PREFIX = "uploads"


def _extension(filename: str) -> str:
    return Path(os.path.basename(filename or "")).suffix.lower()


def save_document(upload: UploadFile) -> str:
    """Validate and store an uploaded document, returning its stored path."""
    extension = _extension(upload.filename)
    if extension not in settings.ALLOWED_DOCUMENT_EXTENSIONS:
        raise InvalidInput(
            f"Document type not allowed. Allowed types: {', '.join(settings.ALLOWED_DOCUMENT_EXTENSIONS)}"
        )

    content = upload.file.read(settings.MAX_DOCUMENT_SIZE + 1)
    if len(content) > settings.MAX_DOCUMENT_SIZE:
        raise InvalidInput(
            f"Document exceeds the maximum size of {settings.MAX_DOCUMENT_SIZE // (1024 * 1024)} MB"
        )

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    name = f"document-{secrets.token_hex(12)}{extension}"
    (upload_dir / name).write_bytes(content)
    logger.debug(f"Stored document {upload.filename!r} as {name}")
    return f"{URL_PREFIX}/{name}"


def resolve_path(document_path: str) -> Path:
    return Path(settings.UPLOAD_DIR) / os.path.basename(document_path)


def delete_document(document_path: Optional[str]):
    """Remove a stored document; failures are logged only."""
    if not document_path:
        return
    try:
        resolve_path(document_path).unlink(missing_ok=True)
        logger.debug(f"Deleted document {document_path}")
    except OSError:
        logger.exception(f"Error deleting document {document_path}")


def public_url(request: Request, path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    return f"{str(request.base_url).rstrip('/')}/{path.lstrip('/')}"

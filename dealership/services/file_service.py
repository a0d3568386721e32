# dealership/services/file_service.py
"""
Uploaded file storage on local disk.

Files land in:  {UPLOAD_DIR}/{entity_type}/{YYYY}/{MM}/{entity_id}-{random}{ext}
and are served back at  /api/files/{entity_type}/{YYYY}/{MM}/{name}
"""

import io
import os
import secrets
from datetime import datetime

from fastapi import UploadFile
from PIL import Image, ImageOps

from dealership.config import settings
from dealership.exceptions import BusinessRuleError, NotFoundError
from dealership.utils.logger import get_logger

logger = get_logger(__name__)

FILES_URL_PREFIX = "/api/files/"
ENTITY_TYPES = ("vehicles", "persons", "transactions", "expenses")

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
ALLOWED_MIME_TYPES = set(MIME_TYPES.values())
IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

THUMBNAIL_PREFIX = "thumb_"
THUMBNAIL_SIZE = (300, 300)
READ_CHUNK_SIZE = 1024 * 1024


def upload_root() -> str:
    return os.path.abspath(settings.UPLOAD_DIR)


def mime_type_for(path: str) -> str:
    return MIME_TYPES.get(os.path.splitext(path)[1].lower(), "application/octet-stream")


def resolve_path(relative: str) -> str:
    """Absolute path of a stored file. Anything resolving outside the upload root is refused."""
    root = upload_root()
    full = os.path.abspath(os.path.join(root, relative.lstrip("/\\")))
    if os.path.commonpath([root, full]) != root or full == root:
        logger.warning(f"[FILES] Refused path outside upload root: {relative}")
        raise BusinessRuleError("Invalid file path")
    return full


def path_from_url(url: str) -> str:
    if not url.startswith(FILES_URL_PREFIX):
        raise BusinessRuleError("Not a stored file URL")
    return url[len(FILES_URL_PREFIX):]


def _extension(filename: str, content_type: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext in MIME_TYPES:
        return ext
    for known_ext, mime in MIME_TYPES.items():
        if mime == content_type:
            return known_ext
    return ""


async def _read_limited(upload: UploadFile) -> bytes:
    """Read the upload in chunks, stopping as soon as it exceeds MAX_UPLOAD_SIZE."""
    limit = settings.MAX_UPLOAD_SIZE
    too_large = BusinessRuleError(f"File size exceeds maximum allowed size of {limit // (1024 * 1024)}MB")
    if upload.size is not None and upload.size > limit:
        raise too_large

    chunks, size = [], 0
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise too_large
        chunks.append(chunk)
    return b"".join(chunks)


def _write_thumbnail(content: bytes, thumb_path: str) -> bool:
    """Center-cropped 300x300 copy in the original's format. Returns False if the image can't be decoded."""
    try:
        with Image.open(io.BytesIO(content)) as image:
            fmt = image.format or "JPEG"
            source = image.convert("RGB") if fmt == "JPEG" else image
            thumb = ImageOps.fit(source, THUMBNAIL_SIZE)
            thumb.save(thumb_path, format=fmt, **({"quality": 80} if fmt == "JPEG" else {}))
    except (OSError, ValueError) as exc:
        logger.warning(f"[FILES] Thumbnail failed for {os.path.basename(thumb_path)}: {exc}")
        return False
    return True


def _thumbnail_path(full_path: str) -> str:
    return os.path.join(os.path.dirname(full_path), THUMBNAIL_PREFIX + os.path.basename(full_path))


async def save_upload(upload: UploadFile, entity_type: str, entity_id: str) -> dict:
    """
    Validate and store one uploaded file. Returns its public description.
    Images also get a thumb_ copy next to them, reported as thumbnail_url.
    """
    if entity_type not in ENTITY_TYPES:
        raise BusinessRuleError("Invalid parameters",
                                details={"entity_type": f"must be one of {', '.join(ENTITY_TYPES)}"})
    if not entity_id or not str(entity_id).strip():
        raise BusinessRuleError("Invalid parameters", details={"entity_id": "is required"})

    content_type = upload.content_type or ""
    if content_type not in ALLOWED_MIME_TYPES:
        raise BusinessRuleError(f"File type {content_type or 'unknown'} is not allowed")

    content = await _read_limited(upload)
    if not content:
        raise BusinessRuleError("No file provided")

    now = datetime.utcnow()
    safe_id = "".join(ch for ch in str(entity_id) if ch.isalnum() or ch in "-_") or "file"
    filename = f"{safe_id}-{secrets.token_hex(8)}{_extension(upload.filename, content_type)}"
    relative = f"{entity_type}/{now:%Y}/{now:%m}/{filename}"
    full_path = resolve_path(relative)

    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    with open(full_path, "wb") as f:
        f.write(content)
    logger.info(f"[FILES] Saved {relative} ({len(content)} bytes)")

    stored = {
        "filename": filename,
        "original_name": upload.filename,
        "mimetype": content_type,
        "size": len(content),
        "url": f"{FILES_URL_PREFIX}{relative}",
        "thumbnail_url": None,
    }
    if content_type in IMAGE_MIME_TYPES and _write_thumbnail(content, _thumbnail_path(full_path)):
        stored["thumbnail_url"] = f"{FILES_URL_PREFIX}{entity_type}/{now:%Y}/{now:%m}/{THUMBNAIL_PREFIX}{filename}"
    return stored


def delete_file(url: str):
    """Remove a stored file together with its thumbnail (or, given a thumbnail, its original)."""
    full_path = resolve_path(path_from_url(url))
    if not os.path.isfile(full_path):
        raise NotFoundError("File not found")
    os.remove(full_path)

    name = os.path.basename(full_path)
    if name.startswith(THUMBNAIL_PREFIX):
        sibling = os.path.join(os.path.dirname(full_path), name[len(THUMBNAIL_PREFIX):])
    else:
        sibling = _thumbnail_path(full_path)
    if os.path.isfile(sibling):
        os.remove(sibling)
    logger.info(f"[FILES] Deleted {url}")



def stored_file(relative: str) -> tuple:
    """Returns (absolute path, media type) of an existing stored file."""
    full_path = resolve_path(relative)
    if not os.path.isfile(full_path):
        raise NotFoundError("File not found")
    return full_path, mime_type_for(full_path)

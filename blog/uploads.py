"""
Local-disk storage for uploaded images.

Only the returned path reference is stored on users and posts; the
bytes live under ``settings.UPLOAD_DIR`` and are served as static files
from ``settings.UPLOAD_URL_PREFIX``.
"""
import logging
import os
import time
from uuid import uuid4

import anyio
from fastapi import UploadFile

from blog.config import settings

logger = logging.getLogger(__name__)

MAX_EXTENSION_LENGTH = 10


def _stored_name(original: str) -> str:
    ext = os.path.splitext(original)[1]
    # Keep short alphanumeric extensions only; anything else is dropped.
    if len(ext) > MAX_EXTENSION_LENGTH or not ext[1:].isalnum() or not ext[1:].isascii():
        ext = ""
    return f"{int(time.time() * 1000)}-{uuid4().hex[:8]}{ext.lower()}"


async def ensure_upload_dir() -> None:
    await anyio.Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)


async def save_upload(file: UploadFile | None) -> str | None:
    """
    Persist *file* and return its public path reference.

    Returns None when no file was supplied.  Browsers submit an empty
    filename for an untouched file input, which is treated the same way.
    """
    if file is None or not file.filename:
        return None

    await ensure_upload_dir()
    name = _stored_name(file.filename)
    data = await file.read()
    await anyio.Path(settings.UPLOAD_DIR, name).write_bytes(data)
    logger.info("Stored upload %r as %s (%d bytes)", file.filename, name, len(data))
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{name}"


async def discard_upload(reference: str | None) -> None:
    """Remove the file behind a reference returned by ``save_upload``."""
    if reference is None:
        return
    name = reference.rsplit("/", 1)[-1]
    await anyio.Path(settings.UPLOAD_DIR, name).unlink(missing_ok=True)
    logger.info("Discarded upload %s", name)

import logging
import os
import shutil
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Protocol
from uuid import uuid4

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from videotube.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaAsset:
    url: str
    public_id: str


class MediaHost(Protocol):
    async def upload(self, local_path: Path) -> MediaAsset | None: ...

    async def delete(self, public_id: str | None) -> bool: ...


class CloudinaryMediaHost:
    """
    Media host backed by Cloudinary.

    Credentials are passed on every call instead of through ``cloudinary.config``
    so that two hosts with different accounts can coexist in one process.
    """

    def __init__(self, settings: Settings):
        self.credentials = {
            "cloud_name": settings.CLOUDINARY_CLOUD_NAME,
            "api_key": settings.CLOUDINARY_API_KEY,
            "api_secret": settings.CLOUDINARY_API_SECRET,
        }

    async def upload(self, local_path: Path) -> MediaAsset | None:
        try:
            response = await run_in_threadpool(
                cloudinary.uploader.upload,
                str(local_path),
                resource_type="auto",
                **self.credentials,
            )
        except (CloudinaryError, OSError):
            logger.exception("Upload to media host failed for %s", local_path.name)
            return None
        url = response.get("secure_url") or response.get("url")
        logger.info("File uploaded to media host: public_id=%s", response.get("public_id"))
        return MediaAsset(url=url, public_id=response["public_id"])

    async def delete(self, public_id: str | None) -> bool:
        if not public_id:
            return True
        try:
            response = await run_in_threadpool(
                cloudinary.uploader.destroy,
                public_id,
                resource_type="image",
                **self.credentials,
            )
        except CloudinaryError as exc:
            logger.warning("Media deletion failed for public_id=%s: %s", public_id, exc)
            return False
        if response.get("result") != "ok":
            logger.warning("Media deletion returned %r for public_id=%s", response.get("result"), public_id)
            return False
        return True


@asynccontextmanager
async def staged_upload(upload: UploadFile | None, directory: str) -> AsyncIterator[Path | None]:
    """
    Copy an incoming upload to a temporary local file for the media host.

    The local copy is removed on exit whether or not the upload succeeded.
    Yields None when no file was sent.
    """
    if upload is None or not upload.filename:
        yield None
        return

    os.makedirs(directory, exist_ok=True)
    suffix = Path(upload.filename).suffix
    local_path = Path(directory) / f"{uuid4().hex}{suffix}"

    def _write():
        with open(local_path, "wb") as fh:
            shutil.copyfileobj(upload.file, fh)

    try:
        await run_in_threadpool(_write)
        yield local_path
    finally:
        local_path.unlink(missing_ok=True)

from __future__ import annotations

import asyncio
import logging
import re
import time
from io import BytesIO
from typing import Callable

from PIL import Image

from ....infrastructure.metrics import metrics
from ...errors import BackendError, StorageUnavailable, ValidationError
from ...gateways import BlobStorage
from ...results import RepositoryResult
from ..models import UploadedPhoto, UploadFile

DEFAULT_BUCKET = "imagens"
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
# accepted as images but not decodable by Pillow
VECTOR_CONTENT_TYPES = frozenset({"image/svg+xml"})

logger = logging.getLogger(__name__)


def sanitize_owner(email: str | None) -> str:
    return re.sub(r"[^\w]", "-", email or "") or "anonymous"


class UploadRepository:
    """Stores catalog photos in a public bucket and hands back their URLs."""

    def __init__(
        self,
        storage: BlobStorage,
        *,
        bucket: str = DEFAULT_BUCKET,
        max_bytes: int = MAX_UPLOAD_BYTES,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = storage
        self._bucket = bucket
        self._max_bytes = max_bytes
        self._clock = clock
        self._bucket_ready = False
        self._bucket_lock = asyncio.Lock()

    @property
    def bucket(self) -> str:
        return self._bucket

    def check(self, file: UploadFile) -> list[str]:
        errors = []
        if not (file.content_type or "").startswith("image/"):
            errors.append("Only image files are allowed")
        if file.size > self._max_bytes:
            errors.append(f"Image is too large. Maximum size is {self._max_bytes // (1024 * 1024)}MB")
        vector = (file.content_type or "").lower() in VECTOR_CONTENT_TYPES
        if not errors and not vector and not _decodes_as_image(file.data):
            errors.append("File content is not a valid image")
        return errors

    def object_path(self, file: UploadFile, folder: str, owner_email: str | None) -> str:
        millis = int(self._clock() * 1000)
        return f"{folder}/{sanitize_owner(owner_email)}-{millis}.{file.extension}"

    async def ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        async with self._bucket_lock:
            if self._bucket_ready:
                return
            try:
                buckets = await self._storage.list_buckets()
                if self._bucket not in buckets:
                    logger.info("Creating storage bucket %s", self._bucket)
                    await self._storage.create_bucket(self._bucket, public=True)
            except BackendError as exc:
                logger.error("Storage bucket %s is unavailable: %s", self._bucket, exc)
                raise StorageUnavailable(f"Image storage bucket '{self._bucket}' is unavailable") from exc
            self._bucket_ready = True

    async def upload(self, file: UploadFile, folder: str, *, owner_email: str | None = None) -> RepositoryResult:
        async with metrics.span_async("upload:photo", source="repository", extra={"bytes": file.size}) as span:
            errors = self.check(file)
            if errors:
                span.mark("rejected")
                return RepositoryResult.fail(ValidationError(errors))
            try:
                await self.ensure_bucket()
            except StorageUnavailable as exc:
                span.mark("failed")
                return RepositoryResult.fail(exc)

            path = self.object_path(file, folder, owner_email)
            try:
                await self._storage.upload(self._bucket, path, file.data, content_type=file.content_type)
            except BackendError as exc:
                logger.error("Upload of %s failed: %s", path, exc)
                span.mark("failed")
                return RepositoryResult.fail(exc.with_message(f"Photo upload failed: {exc.message}"))

            url = self._storage.public_url(self._bucket, path)
            logger.info("Uploaded photo %s", path)
            return RepositoryResult.ok(UploadedPhoto(url=url, path=path))


def _decodes_as_image(data: bytes) -> bool:
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
    except (OSError, SyntaxError):
        return False
    return True

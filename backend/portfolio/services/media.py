"""Media library backed by S3-compatible storage."""

import mimetypes
from datetime import datetime
from pathlib import PurePosixPath

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.config import get_settings
from portfolio.core.exceptions import NotFoundError, UpstreamError, ValidationError
from portfolio.core.logging import get_logger
from portfolio.integrations.storage import StorageClient, get_storage_client
from portfolio.models.media import Media
from portfolio.repositories.media import MediaRepository
from portfolio.utils.dates import utcnow
from portfolio.utils.slugify import slugify
from portfolio.utils.text import clamp_or_default, random_id
from portfolio.utils.validation import normalize_whitespace

logger = get_logger(__name__)

ALLOWED_EXACT_TYPES = frozenset({"application/pdf", "video/mp4"})


def is_allowed_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    content_type = content_type.split(";")[0].strip().lower()
    return content_type.startswith("image/") or content_type in ALLOWED_EXACT_TYPES


def build_object_key(filename: str, content_type: str, now: datetime | None = None) -> str:
    """`YYYY/MM/<random id>-<slugified name>.<ext>`."""
    now = now or utcnow()
    name = PurePosixPath(filename or "").name
    stem, ext = PurePosixPath(name).stem, PurePosixPath(name).suffix.lstrip(".").lower()
    if not ext:
        guessed = mimetypes.guess_extension(content_type) or ".bin"
        ext = guessed.lstrip(".")
    base = slugify(stem, max_length=60) or "file"
    return f"{now:%Y}/{now:%m}/{random_id(10)}-{base}.{ext}"


class MediaService:
    @staticmethod
    async def upload(
        db: AsyncSession,
        file_bytes: bytes,
        filename: str,
        content_type: str | None,
        alt: str | None = None,
        storage: StorageClient | None = None,
    ) -> Media:
        """Store one file and record it.

        Raises:
            ValidationError: empty file, type not allowed, or over the size limit.
            UpstreamError: storage not configured (503) or the upload failed (502).
        """
        if not file_bytes:
            raise ValidationError("File is empty.", field="file")
        if not is_allowed_type(content_type):
            raise ValidationError(
                "Only images, PDF and MP4 files are allowed.",
                field="file",
                value=content_type,
                code="UNSUPPORTED_MEDIA_TYPE",
            )
        max_bytes = get_settings().media_max_upload_bytes
        if len(file_bytes) > max_bytes:
            raise ValidationError(
                f"File is larger than {max_bytes} bytes.",
                field="file",
                value=len(file_bytes),
                code="FILE_TOO_LARGE",
            )

        storage = storage or get_storage_client()
        if not storage.available:
            raise UpstreamError("Media storage is not configured.", code="STORAGE_UNAVAILABLE", unavailable=True)

        mime_type = (content_type or "").split(";")[0].strip().lower()
        key = build_object_key(filename, mime_type)
        result = await storage.put_object(key, file_bytes, mime_type)
        if not result.success:
            raise UpstreamError(f"Upload failed: {result.error}", code="UPLOAD_FAILED")

        try:
            media = await MediaRepository(db).create(
                path=key,
                bucket=storage.bucket or "media",
                mime_type=mime_type,
                size_bytes=len(file_bytes),
                alt=normalize_whitespace(alt)[:300] or None,
                url=storage.public_url(key),
            )
        except SQLAlchemyError:
            # No row will reference the object, so remove it before re-raising
            cleanup = await storage.delete_object(key)
            if not cleanup.success:
                logger.error(
                    "Orphaned media object left in storage",
                    extra={"path": key, "error": cleanup.error},
                )
            raise
        logger.info(
            "Media uploaded",
            extra={"media_id": media.id, "path": key, "size_bytes": len(file_bytes)},
        )
        return media

    @staticmethod
    async def list(db: AsyncSession, limit: object = 50, offset: object = 0) -> list[Media]:
        return await MediaRepository(db).list_recent(
            limit=int(clamp_or_default(limit, 1, 200, 50)),
            offset=int(clamp_or_default(offset, 0, 1_000_000, 0)),
        )

    @staticmethod
    async def delete(db: AsyncSession, media_id: str, storage: StorageClient | None = None) -> None:
        """Delete the stored object, then the row."""
        repo = MediaRepository(db)
        media = await repo.get_by_id(media_id)
        if media is None:
            raise NotFoundError(f"Media '{media_id}' not found")

        storage = storage or get_storage_client()
        if storage.available:
            result = await storage.delete_object(media.path)
            if not result.success:
                raise UpstreamError(f"Delete failed: {result.error}", code="DELETE_FAILED")
        else:
            logger.warning(
                "Storage not configured, removing media row only",
                extra={"media_id": media_id, "path": media.path},
            )
        await repo.delete(media)

    @staticmethod
    def public_url(path: str, storage: StorageClient | None = None) -> str:
        return (storage or get_storage_client()).public_url(path)

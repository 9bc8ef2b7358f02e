import logging
import os
import random
import re
import string

import cloudinary
import cloudinary.uploader
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import Media

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=getattr(settings, "CLOUDINARY_CLOUD_NAME", ""),
    api_key=getattr(settings, "CLOUDINARY_API_KEY", ""),
    api_secret=getattr(settings, "CLOUDINARY_API_SECRET", ""),
    secure=True,
)


class MediaStorageManager:
    """
    Stores media library uploads.

    Files land under ``uploads/YYYY/MM/`` in Django's default storage, or on
    Cloudinary when ``MEDIA_BACKEND`` is "cloudinary".
    """

    ALLOWED_MIME_TYPES = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "video/mp4",
        "video/webm",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]
    MEDIA_MIME_TYPES = ALLOWED_MIME_TYPES[:7]

    MAX_BASENAME_LENGTH = 50

    @classmethod
    def max_upload_size(cls):
        return getattr(settings, "ODB_MAX_UPLOAD_SIZE", 50 * 1024 * 1024)

    @classmethod
    def backend(cls):
        return getattr(settings, "MEDIA_BACKEND", Media.STORAGE_LOCAL)

    @classmethod
    def validate_file(cls, file_obj):
        """
        Raises:
            ValidationError: if the MIME type is not allowed or the file is too large
        """
        content_type = getattr(file_obj, "content_type", "")
        if content_type not in cls.ALLOWED_MIME_TYPES:
            raise ValidationError(_("File type not allowed: {type}").format(type=content_type or "unknown"))

        limit = cls.max_upload_size()
        if file_obj.size > limit:
            raise ValidationError(
                _("File too large: {name}. Maximum size is {size}MB").format(
                    name=file_obj.name, size=limit // (1024 * 1024)
                )
            )
        return True

    @classmethod
    def sanitize_basename(cls, filename):
        base, _ext = os.path.splitext(os.path.basename(filename))
        base = re.sub(r"[^a-z0-9]", "-", base.lower())
        base = re.sub(r"-+", "-", base)
        return base[: cls.MAX_BASENAME_LENGTH]

    @classmethod
    def build_storage_path(cls, filename, now=None):
        """uploads/YYYY/MM/<sanitized base>-<timestamp ms>-<6 random chars><ext>"""
        now = now or timezone.now()
        ext = os.path.splitext(filename)[1].lower()
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
        timestamp = int(now.timestamp() * 1000)
        name = f"{cls.sanitize_basename(filename)}-{timestamp}-{suffix}{ext}"
        return f"uploads/{now:%Y}/{now:%m}/{name}"

    @classmethod
    def store_file(cls, file_obj):
        """Persist an uploaded file and create its Media row."""
        cls.validate_file(file_obj)
        storage_path = cls.build_storage_path(file_obj.name)

        if cls.backend() == Media.STORAGE_CLOUDINARY:
            return cls._store_on_cloudinary(file_obj, storage_path)

        saved_path = default_storage.save(storage_path, file_obj)
        media = Media.objects.create(
            filename=file_obj.name,
            path=saved_path,
            url=default_storage.url(saved_path),
            mime_type=file_obj.content_type,
            size=file_obj.size,
            storage_backend=Media.STORAGE_LOCAL,
        )
        logger.info(f"[MEDIA-UPLOADED] {file_obj.name} -> {saved_path}")
        return media

    @classmethod
    def _store_on_cloudinary(cls, file_obj, storage_path):
        resource_type = "raw"
        if file_obj.content_type.startswith("image/"):
            resource_type = "image"
        elif file_obj.content_type.startswith("video/"):
            resource_type = "video"

        folder = getattr(settings, "CLOUDINARY_FOLDER", "odb")
        public_id = os.path.splitext(storage_path)[0]
        result = cloudinary.uploader.upload(
            file_obj,
            public_id=public_id,
            folder=folder,
            resource_type=resource_type,
            tags=["odb", resource_type],
        )

        media = Media.objects.create(
            filename=file_obj.name,
            path=storage_path,
            url=result["secure_url"],
            mime_type=file_obj.content_type,
            size=result.get("bytes", file_obj.size),
            width=result.get("width"),
            height=result.get("height"),
            storage_backend=Media.STORAGE_CLOUDINARY,
            public_id=result["public_id"],
        )
        logger.info(f"[MEDIA-UPLOADED] {file_obj.name} -> cloudinary:{result['public_id']}")
        return media

    @classmethod
    def delete_file(cls, media):
        """Remove the stored file of ``media`` (the row is left to the caller)."""
        if media.storage_backend == Media.STORAGE_CLOUDINARY and media.public_id:
            resource_type = "raw"
            if media.file_kind in ("image", "video"):
                resource_type = media.file_kind
            result = cloudinary.uploader.destroy(media.public_id, resource_type=resource_type)
            if result.get("result") != "ok":
                logger.warning(f"[MEDIA-DELETE] Cloudinary did not delete {media.public_id}: {result}")
            return

        path = (media.path or "").lstrip("/")
        if path and default_storage.exists(path):
            default_storage.delete(path)
        else:
            logger.warning(f"[MEDIA-DELETE] File already missing: {media.path}")

    @classmethod
    def filter_by_kind(cls, queryset, kind):
        if kind == "image":
            return queryset.filter(mime_type__startswith="image/")
        if kind == "video":
            return queryset.filter(mime_type__startswith="video/")
        if kind == "document":
            return queryset.exclude(mime_type__in=cls.MEDIA_MIME_TYPES)
        return queryset

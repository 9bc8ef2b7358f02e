import base64
import gzip
import json
import logging
import posixpath
import zipfile
from datetime import timedelta

from django.conf import settings
from django.core import serializers
from django.core.exceptions import ValidationError
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.serializers.base import DeserializationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction
from django.utils import timezone

from core.models import (
    DatabaseBackup,
    GridTile,
    Media,
    NavigationItem,
    NavigationMenu,
    Page,
    PageBlock,
    PageRevision,
    SiteSetting,
)

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("1.0", "2.0")

# Payload sections in export order
BACKUP_SECTIONS = [
    ("pages", Page),
    ("blocks", PageBlock),
    ("page_revisions", PageRevision),
    ("navigation_menus", NavigationMenu),
    ("navigation_items", NavigationItem),
    ("grid_tiles", GridTile),
    ("media", Media),
    ("settings", SiteSetting),
]
SECTION_MODELS = dict(BACKUP_SECTIONS)

# Children before parents
WIPE_ORDER = [
    "blocks",
    "page_revisions",
    "pages",
    "navigation_items",
    "navigation_menus",
    "grid_tiles",
    "media",
    "settings",
]

# Parents before children
INSERT_ORDER = [
    "settings",
    "media",
    "grid_tiles",
    "navigation_menus",
    "navigation_items",
    "pages",
    "blocks",
    "page_revisions",
]

SECTION_ORDERING = {
    "pages": ["created_at"],
    "blocks": ["page_id", "order"],
    "page_revisions": ["page_id", "version"],
    "navigation_menus": ["created_at"],
    "navigation_items": ["menu_id", "depth", "order"],
    "grid_tiles": ["order"],
    "media": ["uploaded_at"],
    "settings": ["key"],
}

TYPE_NAME_LABELS = {
    DatabaseBackup.TYPE_MANUAL: "manuelle",
    DatabaseBackup.TYPE_AUTO_PRE_IMPORT: "pré-import",
    DatabaseBackup.TYPE_AUTO_PRE_EXPORT: "pré-restauration",
    DatabaseBackup.TYPE_SCHEDULED: "planifiée",
}


class BackupManager:
    """Creates, stores, rotates and restores full content backups."""

    @staticmethod
    def create_backup_data():
        """Export every content table into a versioned payload."""
        data = {}
        for section, model in BACKUP_SECTIONS:
            queryset = model.objects.order_by(*SECTION_ORDERING[section])
            data[section] = json.loads(serializers.serialize("json", queryset))

        return {
            "exported_at": timezone.now().isoformat(),
            "version": settings.ODB_BACKUP_VERSION,
            "schema_version": settings.ODB_BACKUP_SCHEMA_VERSION,
            "site": settings.ODB_SITE_NAME,
            "data": data,
            "stats": {section: len(records) for section, records in data.items()},
        }

    @staticmethod
    def compress_backup(payload):
        """
        Returns:
            tuple: (base64 gzip text, uncompressed size, compressed size)
        """
        raw = json.dumps(payload, cls=DjangoJSONEncoder).encode("utf-8")
        encoded = base64.b64encode(gzip.compress(raw)).decode("ascii")
        return encoded, len(raw), len(encoded)

    @staticmethod
    def decompress_backup(encoded):
        try:
            raw = gzip.decompress(base64.b64decode(encoded))
            return json.loads(raw.decode("utf-8"))
        except (ValueError, OSError, EOFError) as e:
            raise ValidationError(f"Backup data is corrupted: {e}")

    @staticmethod
    def should_skip_backup(backup_type):
        """Automatic backups are skipped when one of the same type is recent."""
        if backup_type == DatabaseBackup.TYPE_MANUAL:
            return False
        since = timezone.now() - timedelta(minutes=settings.ODB_MIN_BACKUP_INTERVAL_MINUTES)
        return DatabaseBackup.objects.filter(type=backup_type, created_at__gte=since).exists()

    @staticmethod
    def cleanup_old_backups():
        """Keep only the newest automatic, unprotected backups. Returns the number deleted."""
        stale_ids = list(
            DatabaseBackup.objects.filter(
                type__in=DatabaseBackup.AUTOMATIC_TYPES,
                is_protected=False,
            )
            .order_by("-created_at")
            .values_list("id", flat=True)[settings.ODB_MAX_AUTO_BACKUPS :]
        )
        if not stale_ids:
            return 0
        deleted, _ = DatabaseBackup.objects.filter(id__in=stale_ids).delete()
        logger.info(f"[BACKUP-CLEANUP] Removed {deleted} old automatic backups")
        return deleted

    @classmethod
    def create_backup(cls, backup_type=DatabaseBackup.TYPE_MANUAL, name=None, description=None,
                      is_protected=False, user=None):
        """
        Snapshot the database into a DatabaseBackup row.

        Returns:
            tuple: (backup or None when skipped, number of rotated backups)
        """
        valid_types = [choice[0] for choice in DatabaseBackup.TYPE_CHOICES]
        if backup_type not in valid_types:
            raise ValidationError(f"Unknown backup type '{backup_type}'")

        if cls.should_skip_backup(backup_type):
            logger.info(f"[BACKUP-SKIPPED] A recent {backup_type} backup already exists")
            return None, 0

        payload = cls.create_backup_data()
        encoded, size, compressed_size = cls.compress_backup(payload)
        now = timezone.localtime()

        backup = DatabaseBackup.objects.create(
            name=name or f"Sauvegarde {TYPE_NAME_LABELS[backup_type]} - {now:%d/%m/%Y %H:%M:%S}",
            type=backup_type,
            data=encoded,
            size=size,
            compressed_size=compressed_size,
            version=payload["version"],
            stats=payload["stats"],
            description=description,
            created_by=user.get_username() if user is not None and user.is_authenticated else None,
            is_protected=is_protected,
        )
        logger.info(
            f"[BACKUP-CREATED] {backup.name} ({backup_type}, {size} bytes -> {compressed_size} bytes)"
        )

        deleted = cls.cleanup_old_backups()
        return backup, deleted

    @classmethod
    def create_auto_backup(cls, backup_type, user=None):
        description = {
            DatabaseBackup.TYPE_AUTO_PRE_IMPORT: "Sauvegarde automatique créée avant l'import",
            DatabaseBackup.TYPE_AUTO_PRE_EXPORT: "Sauvegarde automatique créée avant la restauration",
            DatabaseBackup.TYPE_SCHEDULED: "Sauvegarde planifiée",
        }.get(backup_type)
        backup, _ = cls.create_backup(backup_type, description=description, user=user)
        return backup

    @staticmethod
    def validate_payload(payload):
        """
        Check the payload structure and upgrade older versions in place.

        Raises:
            ValidationError: on an unusable payload
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            raise ValidationError("Invalid backup file: missing data section")

        # Exports older than the version field are 1.0
        version = str(payload.get("version") or "1.0")
        if version not in SUPPORTED_VERSIONS:
            raise ValidationError(f"Unsupported backup version '{version}'")

        if version == "1.0":
            # 1.0 exports predate page revisions
            payload["data"].setdefault("page_revisions", [])
            payload["version"] = "2.0"

        for section, records in payload["data"].items():
            if section in SECTION_MODELS and not isinstance(records, list):
                raise ValidationError(f"Invalid backup file: '{section}' must be a list")
        return payload

    @staticmethod
    def _deserialize(section, records):
        expected = SECTION_MODELS[section]._meta.label_lower
        for record in records:
            if not isinstance(record, dict) or record.get("model") != expected:
                raise ValidationError(f"Invalid record in '{section}': expected {expected} entries")
        try:
            return list(serializers.deserialize("python", records, ignorenonexistent=True))
        except DeserializationError as e:
            raise ValidationError(f"Invalid record in '{section}': {e}")

    @classmethod
    @transaction.atomic
    def restore_backup_data(cls, payload):
        """
        Replace all content with the payload. Runs in a single transaction:
        any failure leaves the current content untouched.

        Returns:
            dict: restored record count per section
        """
        payload = cls.validate_payload(payload)
        data = payload["data"]

        for section in WIPE_ORDER:
            SECTION_MODELS[section].objects.all().delete()

        restored = {}
        parents = {}
        for section in INSERT_ORDER:
            records = data.get(section) or []
            if section == "navigation_items":
                # Parents are linked in a second pass once every item exists
                records = [dict(record, fields=dict(record.get("fields", {}))) for record in records]
                for record in records:
                    parents[record["pk"]] = record["fields"].pop("parent", None)

            for deserialized in cls._deserialize(section, records):
                deserialized.save()
            restored[section] = len(records)

        for item_id, parent_id in parents.items():
            if parent_id:
                NavigationItem.objects.filter(pk=item_id).update(parent_id=parent_id)

        logger.info(f"[BACKUP-RESTORED] {restored}")
        return restored

    @classmethod
    def restore_backup(cls, backup, user=None):
        """
        Restore a stored backup, taking a safety backup of the current state
        first. A failing safety backup is logged and does not block the restore.
        """
        pre_restore = None
        try:
            pre_restore = cls.create_auto_backup(DatabaseBackup.TYPE_AUTO_PRE_EXPORT, user=user)
        except Exception as e:
            logger.warning(f"[BACKUP-RESTORE] Pre-restore backup failed, continuing: {e}")

        payload = cls.decompress_backup(backup.data)
        restored = cls.restore_backup_data(payload)
        logger.info(f"[BACKUP-RESTORE] Restored '{backup.name}'")
        return restored, pre_restore

    # =========================================================================
    # SITE IMPORT FILES
    # =========================================================================

    @staticmethod
    def load_import_file(uploaded_file):
        """
        Read a site export: either a .json payload or a .zip archive holding
        backup.json and an uploads/ folder. Archived uploads are only read
        here; write them with write_media_files once the import succeeded.

        Returns:
            tuple: (payload dict, list of (storage path, bytes))
        """
        name = (uploaded_file.name or "").lower()
        if name.endswith(".zip"):
            try:
                archive = zipfile.ZipFile(uploaded_file)
            except zipfile.BadZipFile:
                raise ValidationError("Invalid ZIP archive")

            with archive:
                if "backup.json" not in archive.namelist():
                    raise ValidationError("backup.json not found in ZIP archive")
                try:
                    payload = json.loads(archive.read("backup.json").decode("utf-8"))
                except (ValueError, UnicodeDecodeError):
                    raise ValidationError("backup.json is not valid JSON")

                media_files = []
                for member in archive.infolist():
                    path = posixpath.normpath(member.filename)
                    if member.is_dir() or not path.startswith("uploads/") or ".." in path.split("/"):
                        continue
                    media_files.append((path, archive.read(member)))
            return payload, media_files

        if name.endswith(".json"):
            try:
                return json.loads(uploaded_file.read().decode("utf-8")), []
            except (ValueError, UnicodeDecodeError):
                raise ValidationError("Invalid JSON file")

        raise ValidationError("Unsupported file format: upload a .json or .zip export")

    @staticmethod
    def write_media_files(media_files):
        """Write (path, bytes) pairs from an import archive to the default storage."""
        for path, content in media_files:
            if default_storage.exists(path):
                default_storage.delete(path)
            default_storage.save(path, ContentFile(content))
        return len(media_files)

"""
Backup management and full-site export/import endpoints (administrators only).
"""

import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from core.models import DatabaseBackup
from core.permissions import admin_role_required
from core.serializers import DatabaseBackupSerializer, DatabaseBackupWriteSerializer
from core.utils.backup_utils import BackupManager
from core.utils.request_utils import handle_api_errors, json_error, parse_json_body, query_bool

logger = logging.getLogger(__name__)


def _json_attachment(payload, filename):
    response = HttpResponse(
        json.dumps(payload, cls=DjangoJSONEncoder, indent=2, ensure_ascii=False),
        content_type="application/json",
    )
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


@csrf_exempt
@require_http_methods(["GET", "POST"])
@admin_role_required
@handle_api_errors
def backups_view(request):
    if request.method == "GET":
        backups = DatabaseBackup.objects.defer("data").order_by("-created_at")
        return JsonResponse(DatabaseBackupSerializer(backups, many=True).data, safe=False)

    serializer = DatabaseBackupWriteSerializer(data=parse_json_body(request))
    if not serializer.is_valid():
        return json_error("Validation failed", 400, details=serializer.errors)
    data = serializer.validated_data
    backup_type = data.get("type") or DatabaseBackup.TYPE_MANUAL

    backup, deleted = BackupManager.create_backup(
        backup_type,
        name=data.get("name"),
        description=data.get("description"),
        is_protected=data.get("is_protected", False),
        user=request.user,
    )
    if backup is None:
        return JsonResponse(
            {
                "skipped": True,
                "message": f"Une sauvegarde {backup_type} a déjà été créée récemment",
            }
        )

    return JsonResponse(
        {
            "success": True,
            "backup": DatabaseBackupSerializer(backup).data,
            "deleted_old_backups": deleted,
        },
        status=201,
    )


@csrf_exempt
@require_http_methods(["GET", "PATCH", "DELETE"])
@admin_role_required
@handle_api_errors
def backup_detail_view(request, backup_id):
    backup = DatabaseBackup.objects.get(pk=backup_id)

    if request.method == "GET":
        if query_bool(request, "download"):
            payload = BackupManager.decompress_backup(backup.data)
            created = timezone.localtime(backup.created_at)
            filename = f"odb-backup-{created:%Y-%m-%d}-{str(backup.id)[:8]}.json"
            return _json_attachment(payload, filename)
        return JsonResponse(DatabaseBackupSerializer(backup).data)

    if request.method == "DELETE":
        if backup.is_protected:
            return json_error("Cette sauvegarde est protégée et ne peut pas être supprimée", 403)
        backup.delete()
        logger.info(f"[BACKUP-DELETED] {backup.name} by {request.user.username}")
        return JsonResponse({"success": True, "message": "Sauvegarde supprimée"})

    serializer = DatabaseBackupWriteSerializer(data=parse_json_body(request), partial=True)
    if not serializer.is_valid():
        return json_error("Validation failed", 400, details=serializer.errors)
    data = serializer.validated_data
    update_fields = []
    if "name" in data:
        if not data["name"]:
            return json_error("Name cannot be empty", 400)
        backup.name = data["name"]
        update_fields.append("name")
    if "description" in data:
        backup.description = data["description"]
        update_fields.append("description")
    if "is_protected" in data:
        backup.is_protected = data["is_protected"]
        update_fields.append("is_protected")
    if update_fields:
        backup.save(update_fields=update_fields + ["updated_at"])
    return JsonResponse(DatabaseBackupSerializer(backup).data)


@csrf_exempt
@require_http_methods(["POST"])
@admin_role_required
@handle_api_errors
def backup_restore_view(request, backup_id):
    backup = DatabaseBackup.objects.get(pk=backup_id)
    restored, pre_restore = BackupManager.restore_backup(backup, user=request.user)
    logger.info(f"[BACKUP-RESTORE] '{backup.name}' restored by {request.user.username}")
    return JsonResponse(
        {
            "success": True,
            "message": f"Sauvegarde '{backup.name}' restaurée",
            "restored": restored,
            "pre_restore_backup_id": str(pre_restore.id) if pre_restore else None,
        }
    )


# =============================================================================
# SITE EXPORT / IMPORT
# =============================================================================


@require_http_methods(["GET"])
@admin_role_required
@handle_api_errors
def site_export_view(request):
    payload = BackupManager.create_backup_data()
    filename = f"odb-backup-{timezone.localdate():%Y-%m-%d}.json"
    logger.info(f"[SITE-EXPORT] by {request.user.username}")
    return _json_attachment(payload, filename)


@csrf_exempt
@require_http_methods(["POST"])
@admin_role_required
@handle_api_errors
def site_import_view(request):
    uploaded = request.FILES.get("file")
    if uploaded is None:
        return json_error("Aucun fichier fourni", 400)

    payload, media_files = BackupManager.load_import_file(uploaded)
    # Reject bad files before touching anything
    payload = BackupManager.validate_payload(payload)

    pre_import = None
    try:
        pre_import = BackupManager.create_auto_backup(DatabaseBackup.TYPE_AUTO_PRE_IMPORT, user=request.user)
    except Exception as e:
        logger.warning(f"[SITE-IMPORT] Pre-import backup failed, continuing: {e}")

    restored = BackupManager.restore_backup_data(payload)
    extracted = BackupManager.write_media_files(media_files)
    logger.info(f"[SITE-IMPORT] {uploaded.name} imported by {request.user.username}")
    return JsonResponse(
        {
            "success": True,
            "message": "Import terminé",
            "stats": restored,
            "media_files": extracted,
            "pre_import_backup_id": str(pre_import.id) if pre_import else None,
        }
    )

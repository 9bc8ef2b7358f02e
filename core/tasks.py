import logging

from celery import shared_task

from core.models import DatabaseBackup
from core.utils.backup_utils import BackupManager

logger = logging.getLogger(__name__)


@shared_task
def create_scheduled_backup():
    """Nightly content backup; skipped when a scheduled backup is still recent"""
    backup, deleted = BackupManager.create_backup(DatabaseBackup.TYPE_SCHEDULED,
                                                  description="Sauvegarde planifiée")
    if backup is None:
        return "Scheduled backup skipped: a recent one already exists"
    return f"Scheduled backup {backup.id} created ({deleted} old backups removed)"

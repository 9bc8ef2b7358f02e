from django.core.management.base import BaseCommand

from core.models import DatabaseBackup
from core.utils.backup_utils import BackupManager


class Command(BaseCommand):
    help = "Create a content backup (scheduled by default, for cron jobs)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--type",
            default=DatabaseBackup.TYPE_SCHEDULED,
            choices=[choice[0] for choice in DatabaseBackup.TYPE_CHOICES],
            help="Backup type",
        )
        parser.add_argument("--name", default=None, help="Backup name")
        parser.add_argument("--description", default=None, help="Backup description")
        parser.add_argument(
            "--protected",
            action="store_true",
            help="Exclude the backup from automatic cleanup",
        )

    def handle(self, *args, **options):
        backup, deleted = BackupManager.create_backup(
            options["type"],
            name=options["name"],
            description=options["description"],
            is_protected=options["protected"],
        )
        if backup is None:
            self.stdout.write(self.style.WARNING("Backup skipped: a recent backup of this type exists"))
            return

        self.stdout.write(
            self.style.SUCCESS(
                f"Backup '{backup.name}' created ({backup.size} bytes, {backup.compressed_size} compressed)"
            )
        )
        if deleted:
            self.stdout.write(f"Removed {deleted} old automatic backups")

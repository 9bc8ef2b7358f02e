"""
Management command to remove idle visitor sessions.

Usage:
    python manage.py purge_sessions
    python manage.py purge_sessions --minutes 60
    python manage.py purge_sessions --dry-run
"""

from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from analytics.models import ActiveSession
from analytics.utils import purge_stale_sessions


class Command(BaseCommand):
    help = "Delete analytics sessions that have been idle for too long"

    def add_arguments(self, parser):
        parser.add_argument(
            "--minutes",
            type=int,
            default=30,
            help="Idle time after which a session is removed",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many sessions would be removed",
        )

    def handle(self, *args, **options):
        minutes = options["minutes"]
        if minutes < 1:
            raise CommandError("--minutes must be at least 1")

        if options["dry_run"]:
            cutoff = timezone.now() - timedelta(minutes=minutes)
            count = ActiveSession.objects.filter(last_seen_at__lt=cutoff).count()
            self.stdout.write(f"{count} sessions would be removed")
            return

        deleted = purge_stale_sessions(minutes)
        self.stdout.write(self.style.SUCCESS(f"Removed {deleted} stale sessions"))

import uuid

from django.db import models
from django.utils import timezone


class PageView(models.Model):
    """
    A single page view sent by the public site tracker.
    The duration is filled in later by the tracker's exit ping.
    """

    DEVICE_CHOICES = [
        ("desktop", "Desktop"),
        ("mobile", "Mobile"),
        ("tablet", "Tablet"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    path = models.CharField(max_length=500, db_index=True, help_text="Visited path")
    page_id = models.CharField(
        max_length=64, blank=True, null=True, help_text="Builder page id, when known"
    )
    session_id = models.CharField(
        max_length=64, db_index=True, help_text="Tracker session identifier"
    )
    user_agent = models.TextField(blank=True, null=True)
    referrer = models.CharField(max_length=1000, blank=True, null=True)
    device = models.CharField(
        max_length=20, choices=DEVICE_CHOICES, blank=True, null=True, db_index=True
    )
    browser = models.CharField(max_length=50, blank=True, null=True)
    os = models.CharField(max_length=50, blank=True, null=True)
    duration = models.PositiveIntegerField(
        null=True, blank=True, help_text="Seconds spent on the page"
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Page View"
        verbose_name_plural = "Page Views"
        indexes = [
            models.Index(fields=["session_id", "path"]),
            models.Index(fields=["created_at", "path"]),
        ]

    def __str__(self):
        return f"{self.path} - {str(self.session_id)[:8]}"


class ActiveSession(models.Model):
    """Last known position of a visitor session, used for the live visitor count."""

    session_id = models.CharField(max_length=64, unique=True)
    path = models.CharField(max_length=500)
    page_views = models.PositiveIntegerField(default=1)
    started_at = models.DateTimeField(default=timezone.now)
    last_seen_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-last_seen_at"]
        verbose_name = "Active Session"
        verbose_name_plural = "Active Sessions"

    def __str__(self):
        return f"Session {self.session_id[:8]} on {self.path}"

    @property
    def duration_minutes(self):
        return round((self.last_seen_at - self.started_at).total_seconds() / 60, 1)

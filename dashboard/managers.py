from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import User
from django.db.models import Count, Q, Sum
from django.utils import timezone

from analytics.models import ActiveSession, PageView
from core.models import DatabaseBackup, GridTile, Media, NavigationItem, NavigationMenu, Page, PageBlock
from core.utils.cache_utils import CacheManager


class DashboardStatsManager:
    """Manager for dashboard statistics"""

    @staticmethod
    def get_overview_stats():
        """Get main dashboard statistics (cached for a few minutes)"""
        cached = CacheManager.get_cached_stats("overview")
        if cached is not None:
            return cached

        now = timezone.now()
        seven_days_ago = now - timedelta(days=7)
        active_pages = Page.objects.filter(deleted_at__isnull=True)

        stats = {
            "pages": {
                "total": active_pages.count(),
                "published": active_pages.filter(published=True).count(),
                "draft": active_pages.filter(published=False).count(),
                "trashed": Page.objects.filter(deleted_at__isnull=False).count(),
                "in_navigation": active_pages.filter(show_in_nav=True).count(),
            },
            "blocks": {
                "total": PageBlock.objects.count(),
                "hidden": PageBlock.objects.filter(visible=False).count(),
            },
            "navigation": {
                "menus": NavigationMenu.objects.count(),
                "items": NavigationItem.objects.count(),
            },
            "grid": {
                "tiles": GridTile.objects.count(),
                "published": GridTile.objects.filter(published=True).count(),
            },
            "media": Media.objects.aggregate(
                total_files=Count("id"),
                total_size=Sum("size"),
                images=Count("id", filter=Q(mime_type__startswith="image/")),
                videos=Count("id", filter=Q(mime_type__startswith="video/")),
            ),
            "backups": {
                "total": DatabaseBackup.objects.count(),
                "protected": DatabaseBackup.objects.filter(is_protected=True).count(),
                "last_backup_at": DatabaseBackup.objects.order_by("-created_at")
                .values_list("created_at", flat=True)
                .first(),
            },
            "analytics": {
                "views_last_7_days": PageView.objects.filter(created_at__gte=seven_days_ago).count(),
                "visitors_last_7_days": PageView.objects.filter(created_at__gte=seven_days_ago)
                .values("session_id")
                .distinct()
                .count(),
                "active_sessions": ActiveSession.objects.filter(
                    last_seen_at__gte=now - timedelta(minutes=settings.ODB_ACTIVE_SESSION_MINUTES)
                ).count(),
            },
            "users": {"total": User.objects.filter(is_active=True).count()},
        }
        stats["media"]["total_size"] = stats["media"]["total_size"] or 0

        CacheManager.cache_stats("overview", stats)
        return stats

    @staticmethod
    def get_recent_activity(limit=5):
        """Recently edited pages and recent uploads"""
        return {
            "recent_pages": list(
                Page.objects.filter(deleted_at__isnull=True)
                .order_by("-updated_at")
                .values("id", "slug", "title", "published", "updated_at")[:limit]
            ),
            "recent_media": list(
                Media.objects.order_by("-uploaded_at").values("id", "filename", "url", "uploaded_at")[:limit]
            ),
        }

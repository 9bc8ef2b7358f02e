"""
Utility functions for visitor tracking and the analytics dashboard
"""

import logging
import uuid
from collections import Counter, defaultdict
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from user_agents import parse

from analytics.models import ActiveSession, PageView

logger = logging.getLogger(__name__)

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_PERIOD = "7d"

# user_agents families folded into the dashboard chart buckets, first match wins
BROWSER_BUCKETS = [
    ("edge", ("edge",)),
    ("chrome", ("chrome", "chromium")),
    ("firefox", ("firefox",)),
    ("safari", ("safari",)),
    ("ie", ("ie", "ie mobile", "internet explorer")),
]
OS_BUCKETS = [
    ("windows", ("windows",)),
    ("ios", ("ios",)),
    ("macos", ("mac os",)),
    ("android", ("android",)),
    ("linux", ("linux", "ubuntu", "debian", "fedora")),
]


def _bucket(family, buckets):
    family = (family or "").lower()
    for name, keywords in buckets:
        for keyword in keywords:
            # "ie" only as a whole family name
            if family == keyword or (len(keyword) > 2 and keyword in family):
                return name
    return "other"


def get_client_ip(request):
    """Extract client IP address from request"""
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def parse_user_agent(user_agent_string: str) -> Dict[str, str]:
    """Parse user agent string into the device / browser / os buckets of the dashboard"""
    if not user_agent_string:
        return {"device": "desktop", "browser": "other", "os": "other"}

    user_agent = parse(user_agent_string)

    if user_agent.is_tablet:
        device = "tablet"
    elif user_agent.is_mobile:
        device = "mobile"
    else:
        device = "desktop"

    return {
        "device": device,
        "browser": _bucket(user_agent.browser.family, BROWSER_BUCKETS),
        "os": _bucket(user_agent.os.family, OS_BUCKETS),
    }


def resolve_session_id(session_id: Optional[str]) -> str:
    return session_id or str(uuid.uuid4())


@transaction.atomic
def record_page_view(path, session_id, user_agent="", referrer="", page_id=None):
    """Store a view and bump the visitor's active session"""
    agent = parse_user_agent(user_agent)
    view = PageView.objects.create(
        path=path,
        page_id=page_id,
        session_id=session_id,
        user_agent=user_agent,
        referrer=referrer,
        **agent,
    )

    touch_session(session_id, path)
    return view


def touch_session(session_id, path):
    """Upsert the active session, counting one more page view"""
    now = timezone.now()
    sessions = ActiveSession.objects.filter(session_id=session_id)
    bump = {"path": path, "last_seen_at": now, "page_views": F("page_views") + 1}
    if sessions.update(**bump):
        return
    try:
        with transaction.atomic():
            ActiveSession.objects.create(session_id=session_id, path=path, started_at=now, last_seen_at=now)
    except IntegrityError:
        # Another request opened the session first
        sessions.update(**bump)


def record_duration(path, session_id, duration):
    """Fill the duration of the session's views of ``path`` still missing one"""
    return PageView.objects.filter(
        session_id=session_id, path=path, duration__isnull=True
    ).update(duration=duration)


def purge_stale_sessions(minutes: int = 30) -> int:
    """Remove active sessions not seen for ``minutes``. Returns the number deleted."""
    cutoff = timezone.now() - timedelta(minutes=minutes)
    deleted, _ = ActiveSession.objects.filter(last_seen_at__lt=cutoff).delete()
    if deleted:
        logger.info(f"[SESSIONS-PURGED] {deleted} sessions idle for more than {minutes} minutes")
    return deleted


def traffic_source(referrer: Optional[str]) -> str:
    """Referrer host without 'www.'; internal hosts and unusable referrers count as Direct"""
    if not referrer:
        return "Direct"
    hostname = urlparse(referrer).hostname
    if not hostname:
        return "Direct"
    for internal_host in getattr(settings, "ANALYTICS_INTERNAL_HOSTS", []):
        if internal_host and internal_host in hostname:
            return "Direct"
    return hostname[4:] if hostname.startswith("www.") else hostname


class AnalyticsCalculator:
    """
    Builds the analytics dashboard summary for a period ending today.
    The period covers ``days`` calendar days, today included.
    """

    def __init__(self, period: str = DEFAULT_PERIOD):
        self.period = period if period in PERIOD_DAYS else DEFAULT_PERIOD
        self.days = PERIOD_DAYS[self.period]
        self.end_date = timezone.localdate()
        self.start_date = self.end_date - timedelta(days=self.days - 1)

    @property
    def start_datetime(self) -> datetime:
        return timezone.make_aware(datetime.combine(self.start_date, time.min))

    def get_page_views(self):
        return list(
            PageView.objects.filter(created_at__gte=self.start_datetime).values(
                "path", "session_id", "device", "browser", "referrer", "duration", "created_at"
            )
        )

    def get_overview(self, views: List[Dict]) -> Dict[str, Any]:
        durations = [view["duration"] for view in views if view["duration"] is not None]
        avg_duration = round(sum(durations) / len(durations)) if durations else 0

        active_since = timezone.now() - timedelta(minutes=settings.ODB_ACTIVE_SESSION_MINUTES)
        return {
            "total_views": len(views),
            "unique_visitors": len({view["session_id"] for view in views}),
            "avg_duration": avg_duration,
            "active_sessions": ActiveSession.objects.filter(last_seen_at__gte=active_since).count(),
        }

    def get_devices(self, views: List[Dict]) -> Dict[str, int]:
        counts = Counter(view["device"] for view in views)
        return {device: counts.get(device, 0) for device in ("desktop", "mobile", "tablet")}

    def get_browsers(self, views: List[Dict]) -> Dict[str, int]:
        return dict(Counter(view["browser"] or "other" for view in views))

    def get_top_pages(self, views: List[Dict], limit: int = 10) -> List[Dict]:
        pages = defaultdict(lambda: {"views": 0, "sessions": set()})
        for view in views:
            pages[view["path"]]["views"] += 1
            pages[view["path"]]["sessions"].add(view["session_id"])

        top = sorted(pages.items(), key=lambda entry: entry[1]["views"], reverse=True)[:limit]
        return [
            {"path": path, "views": data["views"], "unique_visitors": len(data["sessions"])}
            for path, data in top
        ]

    def get_daily_stats(self, views: List[Dict]) -> List[Dict]:
        """One entry per day of the period, days without views included"""
        days = {
            self.start_date + timedelta(days=offset): {"views": 0, "sessions": set()}
            for offset in range(self.days)
        }
        for view in views:
            day = timezone.localtime(view["created_at"]).date()
            if day in days:
                days[day]["views"] += 1
                days[day]["sessions"].add(view["session_id"])

        return [
            {
                "date": day.isoformat(),
                "views": data["views"],
                "unique_visitors": len(data["sessions"]),
            }
            for day, data in sorted(days.items())
        ]

    def get_traffic_sources(self, views: List[Dict], limit: int = 5) -> List[Dict]:
        counts = Counter(traffic_source(view["referrer"]) for view in views)
        return [{"source": source, "count": count} for source, count in counts.most_common(limit)]

    def get_summary(self) -> Dict[str, Any]:
        views = self.get_page_views()
        return {
            "period": self.period,
            "overview": self.get_overview(views),
            "devices": self.get_devices(views),
            "browsers": self.get_browsers(views),
            "top_pages": self.get_top_pages(views),
            "daily_stats": self.get_daily_stats(views),
            "traffic_sources": self.get_traffic_sources(views),
        }

"""
Tests for visitor tracking and the analytics dashboard summary
"""

from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.contrib.auth.models import User
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db.models import QuerySet
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase

from analytics.models import ActiveSession, PageView
from analytics.tasks import purge_stale_analytics_sessions
from analytics.utils import (
    AnalyticsCalculator,
    parse_user_agent,
    purge_stale_sessions,
    record_page_view,
    traffic_source,
)

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)
CHROME_DESKTOP_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0"
)
MAC_SAFARI_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15"
)
ANDROID_CHROME_UA = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
UBUNTU_FIREFOX_UA = "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


# =============================================================================
# HELPERS
# =============================================================================


class UserAgentTest(SimpleTestCase):
    def test_devices(self):
        self.assertEqual(parse_user_agent(IPHONE_UA)["device"], "mobile")
        self.assertEqual(parse_user_agent(IPAD_UA)["device"], "tablet")
        self.assertEqual(parse_user_agent(CHROME_DESKTOP_UA)["device"], "desktop")

    def test_browser_and_os_families(self):
        agent = parse_user_agent(CHROME_DESKTOP_UA)

        self.assertEqual(agent["browser"], "chrome")
        self.assertEqual(agent["os"], "windows")

    def test_families_are_bucketed(self):
        buckets = {
            IPHONE_UA: ("safari", "ios"),
            MAC_SAFARI_UA: ("safari", "macos"),
            EDGE_UA: ("edge", "windows"),
            ANDROID_CHROME_UA: ("chrome", "android"),
            UBUNTU_FIREFOX_UA: ("firefox", "linux"),
        }

        for user_agent, expected in buckets.items():
            agent = parse_user_agent(user_agent)
            self.assertEqual((agent["browser"], agent["os"]), expected, user_agent)

    def test_unknown_families(self):
        self.assertEqual(parse_user_agent("curl/8.4.0")["browser"], "other")

    def test_empty_user_agent(self):
        self.assertEqual(parse_user_agent(""), {"device": "desktop", "browser": "other", "os": "other"})


@override_settings(ANALYTICS_INTERNAL_HOSTS=["localhost", "optiquedebourbon.re"])
class TrafficSourceTest(SimpleTestCase):
    def test_external_hosts(self):
        self.assertEqual(traffic_source("https://www.google.com/search?q=opticien"), "google.com")
        self.assertEqual(traffic_source("https://m.facebook.com/"), "m.facebook.com")

    def test_direct_traffic(self):
        self.assertEqual(traffic_source(None), "Direct")
        self.assertEqual(traffic_source(""), "Direct")
        self.assertEqual(traffic_source("not a url"), "Direct")
        self.assertEqual(traffic_source("https://www.optiquedebourbon.re/magasins"), "Direct")
        self.assertEqual(traffic_source("http://localhost:3000/"), "Direct")


# =============================================================================
# RECORDING
# =============================================================================


class RecordingTest(TestCase):
    def test_first_view_opens_session(self):
        view = record_page_view("/", "session-1", user_agent=IPHONE_UA, referrer="https://google.com/")

        self.assertEqual(view.device, "mobile")
        session = ActiveSession.objects.get(session_id="session-1")
        self.assertEqual((session.path, session.page_views), ("/", 1))

    def test_next_view_bumps_session(self):
        record_page_view("/", "session-1")
        record_page_view("/magasins", "session-1")

        session = ActiveSession.objects.get(session_id="session-1")
        self.assertEqual((session.path, session.page_views), ("/magasins", 2))
        self.assertEqual(PageView.objects.count(), 2)

    def test_session_opened_concurrently_is_bumped(self):
        ActiveSession.objects.create(session_id="session-1", path="/")
        real_update = QuerySet.update
        calls = []

        def first_update_misses(queryset, **kwargs):
            # The other request inserts the session right after this one looked for it
            calls.append(kwargs)
            if len(calls) == 1:
                return 0
            return real_update(queryset, **kwargs)

        with patch.object(QuerySet, "update", autospec=True, side_effect=first_update_misses):
            record_page_view("/magasins", "session-1")

        session = ActiveSession.objects.get(session_id="session-1")
        self.assertEqual((session.path, session.page_views), ("/magasins", 2))
        self.assertEqual(PageView.objects.count(), 1)

    def test_purge_stale_sessions(self):
        now = timezone.now()
        ActiveSession.objects.create(session_id="old", path="/", last_seen_at=now - timedelta(minutes=45))
        ActiveSession.objects.create(session_id="fresh", path="/", last_seen_at=now - timedelta(minutes=5))

        self.assertEqual(purge_stale_sessions(30), 1)
        self.assertEqual(list(ActiveSession.objects.values_list("session_id", flat=True)), ["fresh"])

    def test_purge_task(self):
        ActiveSession.objects.create(
            session_id="old", path="/", last_seen_at=timezone.now() - timedelta(hours=2)
        )

        self.assertEqual(purge_stale_analytics_sessions(), "Purged 1 stale sessions")


class PurgeSessionsCommandTest(TestCase):
    def setUp(self):
        ActiveSession.objects.create(
            session_id="old", path="/", last_seen_at=timezone.now() - timedelta(hours=2)
        )

    def test_dry_run_keeps_sessions(self):
        out = StringIO()

        call_command("purge_sessions", "--dry-run", stdout=out)

        self.assertIn("1 sessions would be removed", out.getvalue())
        self.assertTrue(ActiveSession.objects.exists())

    def test_purge(self):
        out = StringIO()

        call_command("purge_sessions", "--minutes", "60", stdout=out)

        self.assertIn("Removed 1 stale sessions", out.getvalue())
        self.assertFalse(ActiveSession.objects.exists())

    def test_invalid_minutes(self):
        with self.assertRaises(CommandError):
            call_command("purge_sessions", "--minutes", "0")


# =============================================================================
# TRACKING API
# =============================================================================


class TrackAPITest(APITestCase):
    def setUp(self):
        self.url = reverse("analytics:track")

    def test_track_view_creates_session_id(self):
        response = self.client.post(
            self.url, {"path": "/magasins"}, format="json", HTTP_USER_AGENT=IPAD_UA
        )

        self.assertEqual(response.status_code, 200)
        session_id = response.json()["session_id"]
        self.assertTrue(session_id)
        view = PageView.objects.get()
        self.assertEqual((view.path, view.session_id, view.device), ("/magasins", session_id, "tablet"))

    def test_track_keeps_given_session(self):
        response = self.client.post(
            self.url, {"path": "/", "session_id": "abc", "page_id": "p1"}, format="json",
            HTTP_REFERER="https://www.google.com/",
        )

        self.assertEqual(response.json()["session_id"], "abc")
        view = PageView.objects.get()
        self.assertEqual((view.page_id, view.referrer), ("p1", "https://www.google.com/"))

    def test_track_requires_path(self):
        response = self.client.post(self.url, {"session_id": "abc"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Path required")

    def test_duration_ping_updates_open_views(self):
        record_page_view("/", "abc")
        record_page_view("/", "abc")
        record_page_view("/", "other")

        response = self.client.post(
            self.url, {"path": "/", "session_id": "abc", "duration": 42}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(PageView.objects.count(), 3)
        self.assertEqual(
            sorted(PageView.objects.values_list("session_id", "duration")),
            [("abc", 42), ("abc", 42), ("other", None)],
        )

    def test_invalid_duration(self):
        response = self.client.post(
            self.url, {"path": "/", "session_id": "abc", "duration": "long"}, format="json"
        )

        self.assertEqual(response.status_code, 400)

    def test_zero_duration_counts_as_view(self):
        self.client.post(self.url, {"path": "/", "session_id": "abc", "duration": 0}, format="json")

        self.assertEqual(PageView.objects.count(), 1)

    @patch("analytics.views.record_page_view", side_effect=RuntimeError("database down"))
    def test_tracking_failure(self, mock_record):
        response = self.client.post(self.url, {"path": "/"}, format="json")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Failed to track")


# =============================================================================
# SUMMARY
# =============================================================================


def add_view(path, session_id, days_ago=0, **fields):
    view = PageView.objects.create(path=path, session_id=session_id, device="desktop", browser="chrome", **fields)
    if days_ago:
        PageView.objects.filter(pk=view.pk).update(created_at=timezone.now() - timedelta(days=days_ago))
    return view


class AnalyticsCalculatorTest(TestCase):
    def test_period_defaults_to_seven_days(self):
        calculator = AnalyticsCalculator("1y")

        self.assertEqual(calculator.period, "7d")
        self.assertEqual(calculator.days, 7)
        self.assertEqual((calculator.end_date - calculator.start_date).days, 6)

    def test_summary(self):
        add_view("/", "s1", duration=30, referrer="https://www.google.com/")
        add_view("/magasins", "s1", duration=60)
        add_view("/", "s2", device="mobile", browser="safari")
        add_view("/", "s3", days_ago=20)
        ActiveSession.objects.create(session_id="s1", path="/magasins")
        ActiveSession.objects.create(
            session_id="s2", path="/", last_seen_at=timezone.now() - timedelta(minutes=20)
        )

        summary = AnalyticsCalculator("7d").get_summary()

        self.assertEqual(
            summary["overview"],
            {"total_views": 3, "unique_visitors": 2, "avg_duration": 45, "active_sessions": 1},
        )
        self.assertEqual(summary["devices"], {"desktop": 2, "mobile": 1, "tablet": 0})
        self.assertEqual(summary["browsers"], {"chrome": 2, "safari": 1})
        self.assertEqual(summary["top_pages"][0], {"path": "/", "views": 2, "unique_visitors": 2})
        self.assertEqual(len(summary["daily_stats"]), 7)
        self.assertEqual(summary["daily_stats"][-1]["views"], 3)
        self.assertEqual(summary["daily_stats"][-1]["date"], timezone.localdate().isoformat())
        self.assertEqual(summary["traffic_sources"][0], {"source": "Direct", "count": 2})

    def test_longer_period_includes_older_views(self):
        add_view("/", "s1")
        add_view("/", "s2", days_ago=20)

        summary = AnalyticsCalculator("30d").get_summary()

        self.assertEqual(summary["overview"]["total_views"], 2)
        self.assertEqual(len(summary["daily_stats"]), 30)


class AnalyticsSummaryAPITest(TestCase):
    def setUp(self):
        self.webmaster = User.objects.create_user("webmaster", "webmaster@test.com", "password")

    def test_summary_requires_authentication(self):
        response = self.client.get(reverse("analytics:summary"))

        self.assertEqual(response.status_code, 401)

    def test_summary_requires_analytics_feature(self):
        self.webmaster.profile.permissions = {"analytics": False}
        self.webmaster.profile.save()
        self.client.login(username="webmaster", password="password")

        response = self.client.get(reverse("analytics:summary"))

        self.assertEqual(response.status_code, 403)

    def test_summary(self):
        add_view("/", "s1")
        self.client.login(username="webmaster", password="password")

        response = self.client.get(reverse("analytics:summary"), {"period": "90d"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["period"], "90d")
        self.assertEqual(response.json()["overview"]["total_views"], 1)
        self.assertEqual(len(response.json()["daily_stats"]), 90)

from celery import shared_task

from analytics.utils import purge_stale_sessions


@shared_task
def purge_stale_analytics_sessions(minutes=30):
    """Drop visitor sessions idle for more than ``minutes``"""
    deleted = purge_stale_sessions(minutes)
    return f"Purged {deleted} stale sessions"

import logging

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from analytics.utils import (
    AnalyticsCalculator,
    get_client_ip,
    record_duration,
    record_page_view,
    resolve_session_id,
)
from core.permissions import feature_required

logger = logging.getLogger(__name__)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def track(request):
    """Record a page view, or the time spent on it when ``duration`` is sent"""
    try:
        data = request.data
        if not isinstance(data, dict):
            return Response({"error": "Invalid payload"}, status=status.HTTP_400_BAD_REQUEST)

        path = data.get("path")
        if not path:
            return Response({"error": "Path required"}, status=status.HTTP_400_BAD_REQUEST)

        existing_session_id = data.get("session_id")
        session_id = resolve_session_id(existing_session_id)
        duration = data.get("duration")

        if duration and existing_session_id:
            try:
                duration = int(duration)
            except (TypeError, ValueError):
                return Response({"error": "Invalid duration"}, status=status.HTTP_400_BAD_REQUEST)
            record_duration(path, session_id, max(0, duration))
            return Response({"success": True, "session_id": session_id})

        record_page_view(
            path,
            session_id,
            user_agent=request.META.get("HTTP_USER_AGENT", ""),
            referrer=request.META.get("HTTP_REFERER", ""),
            page_id=data.get("page_id"),
        )
        logger.debug(f"[TRACK] {path} for session {session_id} from {get_client_ip(request)}")
        return Response({"success": True, "session_id": session_id})

    except Exception as e:
        logger.error(f"[TRACKING-ERROR] {str(e)}", exc_info=True)
        return Response(
            {"error": "Failed to track"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


@require_http_methods(["GET"])
@feature_required("analytics")
def analytics_summary(request):
    period = request.GET.get("period", "7d")
    try:
        summary = AnalyticsCalculator(period).get_summary()
    except Exception as e:
        logger.error(f"[ANALYTICS-ERROR] {str(e)}", exc_info=True)
        return JsonResponse({"error": "Failed to fetch analytics"}, status=500)
    return JsonResponse(summary)

import logging

from django.contrib.auth.models import User
from django.db import transaction
from django.db.models import Q
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from core.models import UserProfile
from core.permissions import ROLE_ADMIN, admin_role_required, get_user_role, login_required_json
from core.serializers import DashboardUserSerializer, DashboardUserWriteSerializer
from core.utils.request_utils import handle_api_errors, json_error, parse_json_body

from .managers import DashboardStatsManager

logger = logging.getLogger(__name__)


def _admin_users():
    return User.objects.filter(
        Q(is_superuser=True) | Q(profile__role=UserProfile.ROLE_ADMIN)
    ).distinct()


def _apply_name(user, name):
    first_name, _, last_name = (name or "").strip().partition(" ")
    user.first_name = first_name[:150]
    user.last_name = last_name.strip()[:150]


def _save_profile(user, data):
    try:
        profile = user.profile
    except UserProfile.DoesNotExist:
        profile = UserProfile(user=user)
    if data.get("role"):
        profile.role = data["role"]
    if data.get("permissions") is not None:
        profile.permissions = data["permissions"]
    profile.save()
    return profile


# =============================================================================
# USERS
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST"])
@admin_role_required
@handle_api_errors
def users_view(request):
    if request.method == "GET":
        users = User.objects.select_related("profile").order_by("-date_joined")
        return JsonResponse(DashboardUserSerializer(users, many=True).data, safe=False)

    body = parse_json_body(request)
    if not body.get("email") or not body.get("password"):
        return json_error("Email et mot de passe requis", 400)

    serializer = DashboardUserWriteSerializer(data=body)
    if not serializer.is_valid():
        return json_error("Validation failed", 400, details=serializer.errors)
    data = serializer.validated_data

    email = data["email"].lower()
    if User.objects.filter(Q(email__iexact=email) | Q(username__iexact=email)).exists():
        return json_error("Un utilisateur avec cet email existe déjà", 400)

    with transaction.atomic():
        user = User(username=email, email=email)
        user.set_password(data["password"])
        _apply_name(user, data.get("name") or email.split("@")[0])
        user.save()
        _save_profile(user, {"role": data.get("role") or UserProfile.ROLE_WEBMASTER, **data})

    logger.info(f"[USER-CREATED] {email} by {request.user.username}")
    return JsonResponse(DashboardUserSerializer(user).data, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
@admin_role_required
@handle_api_errors
def user_detail_view(request, user_id):
    user = User.objects.select_related("profile").get(pk=user_id)

    if request.method == "GET":
        return JsonResponse(DashboardUserSerializer(user).data)

    if request.method == "DELETE":
        if user.pk == request.user.pk:
            return json_error("Vous ne pouvez pas supprimer votre propre compte", 400)
        if get_user_role(user) == ROLE_ADMIN and _admin_users().count() <= 1:
            return json_error("Impossible de supprimer le dernier administrateur", 400)
        user.delete()
        logger.info(f"[USER-DELETED] {user.username} by {request.user.username}")
        return JsonResponse({"success": True})

    serializer = DashboardUserWriteSerializer(data=parse_json_body(request), partial=True)
    if not serializer.is_valid():
        return json_error("Validation failed", 400, details=serializer.errors)
    data = serializer.validated_data

    email = data.get("email", "").lower()
    if email and email != user.email.lower():
        taken = User.objects.filter(Q(email__iexact=email) | Q(username__iexact=email)).exclude(pk=user.pk)
        if taken.exists():
            return json_error("Cet email est déjà utilisé", 400)

    demoting = (
        data.get("role") == UserProfile.ROLE_WEBMASTER
        and not user.is_superuser
        and get_user_role(user) == ROLE_ADMIN
    )
    if demoting and _admin_users().count() <= 1:
        return json_error("Impossible de retirer le rôle du dernier administrateur", 400)

    with transaction.atomic():
        if email:
            user.email = email
            user.username = email
        if data.get("name"):
            _apply_name(user, data["name"])
        if data.get("password"):
            user.set_password(data["password"])
        user.save()
        _save_profile(user, data)

    user.refresh_from_db()
    return JsonResponse(DashboardUserSerializer(user).data)


@require_http_methods(["GET"])
@login_required_json
def current_user_view(request):
    """Role and permissions of the signed-in user, for the dashboard sidebar"""
    return JsonResponse(DashboardUserSerializer(request.user).data)


# =============================================================================
# STATS
# =============================================================================


@require_http_methods(["GET"])
@login_required_json
@handle_api_errors
def dashboard_stats_view(request):
    return JsonResponse(
        {
            "stats": DashboardStatsManager.get_overview_stats(),
            "recent_activity": DashboardStatsManager.get_recent_activity(),
        }
    )

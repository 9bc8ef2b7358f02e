"""
Role and feature permissions for dashboard users.

ADMIN users can do everything. WEBMASTER users get one flag per dashboard
feature; flags that are missing from their stored permissions fall back to
WEBMASTER_DEFAULT_PERMISSIONS.
"""

import json
import logging
from functools import wraps

from django.http import JsonResponse

logger = logging.getLogger(__name__)

ROLE_ADMIN = "ADMIN"
ROLE_WEBMASTER = "WEBMASTER"

FEATURES = ["pages", "grid", "navigation", "media", "analytics", "apparence", "stores"]

FEATURE_LABELS = {
    "pages": "Pages",
    "grid": "Grille d'accueil",
    "navigation": "Navigation",
    "media": "Médiathèque",
    "analytics": "Statistiques",
    "apparence": "Apparence",
    "stores": "Magasins",
}

WEBMASTER_DEFAULT_PERMISSIONS = {
    "pages": True,
    "grid": True,
    "navigation": True,
    "media": True,
    "analytics": True,
    "apparence": False,
    "stores": True,
}

ADMIN_PERMISSIONS = {feature: True for feature in FEATURES}

# Dashboard sections and the feature that unlocks them
PATH_FEATURES = {
    "/dashboard/pages": "pages",
    "/dashboard/grid": "grid",
    "/dashboard/navigation": "navigation",
    "/dashboard/media": "media",
    "/dashboard/analytics": "analytics",
    "/dashboard/apparence": "apparence",
    "/dashboard/stores": "stores",
}
ADMIN_ONLY_PATHS = ["/dashboard/users", "/dashboard/settings"]


def parse_permissions(raw):
    """
    Normalize stored permissions into a complete feature map.

    Accepts a dict, a JSON string or None. Anything unparseable yields the
    webmaster defaults.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("[PERMISSIONS] Could not parse stored permissions, using defaults")
            return dict(WEBMASTER_DEFAULT_PERMISSIONS)

    if not isinstance(raw, dict):
        return dict(WEBMASTER_DEFAULT_PERMISSIONS)

    permissions = dict(WEBMASTER_DEFAULT_PERMISSIONS)
    for feature in FEATURES:
        if feature in raw:
            permissions[feature] = bool(raw[feature])
    return permissions


def has_permission(role, permissions, feature):
    if role == ROLE_ADMIN:
        return True
    return parse_permissions(permissions).get(feature, False)


def can_access_path(role, permissions, path):
    """Check whether a dashboard path is reachable for the given role/permissions."""
    if role == ROLE_ADMIN:
        return True

    for admin_path in ADMIN_ONLY_PATHS:
        if path.startswith(admin_path):
            return False

    for prefix, feature in PATH_FEATURES.items():
        if path.startswith(prefix):
            return has_permission(role, permissions, feature)

    return True


def get_user_role(user):
    """Resolve the dashboard role of a Django user (superusers are admins)."""
    if not user.is_authenticated:
        return None
    if user.is_superuser:
        return ROLE_ADMIN
    profile = getattr(user, "profile", None)
    if profile is None:
        return ROLE_WEBMASTER
    return profile.role


def get_user_permissions(user):
    if get_user_role(user) == ROLE_ADMIN:
        return dict(ADMIN_PERMISSIONS)
    profile = getattr(user, "profile", None)
    return parse_permissions(profile.permissions if profile else None)


def user_has_feature(user, feature):
    role = get_user_role(user)
    if role is None:
        return False
    return has_permission(role, get_user_permissions(user), feature)


def _unauthenticated_response():
    return JsonResponse({"success": False, "error": "Authentication required"}, status=401)


def feature_required(feature):
    """
    Decorator for JSON views restricted to users holding ``feature``.
    Returns 401 for anonymous users and 403 when the feature is not granted.
    """

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return _unauthenticated_response()

            if not user_has_feature(request.user, feature):
                logger.warning(
                    f"User {request.user.username} denied '{feature}' access at {request.path}"
                )
                return JsonResponse(
                    {"success": False, "error": "Permission denied"},
                    status=403,
                )

            return view_func(request, *args, **kwargs)

        return wrapper

    return decorator


def login_required_json(view_func):
    """Any authenticated dashboard user; JSON 401 otherwise."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return _unauthenticated_response()
        return view_func(request, *args, **kwargs)

    return wrapper


def admin_role_required(view_func):
    """Decorator for JSON views reserved to ADMIN users."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return _unauthenticated_response()

        if get_user_role(request.user) != ROLE_ADMIN:
            logger.warning(
                f"User {request.user.username} attempted to access admin endpoint at {request.path}"
            )
            return JsonResponse(
                {"success": False, "error": "Administrator privileges required"},
                status=403,
            )

        return view_func(request, *args, **kwargs)

    return wrapper

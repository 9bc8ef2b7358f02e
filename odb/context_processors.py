from django.conf import settings

from core.permissions import ROLE_ADMIN, get_user_permissions, get_user_role
from core.utils.settings_utils import get_settings_dict


def site_context(request):
    """Site-wide data for the admin and server-rendered templates"""
    role = get_user_role(request.user)

    return {
        "site_settings": get_settings_dict(public_only=True),
        "site_name": settings.ODB_SITE_NAME,
        "user_role": role,
        "user_permissions": get_user_permissions(request.user) if role else {},
        "is_admin": role == ROLE_ADMIN,
        "cms_version": "1.0.0",
        "debug_mode": getattr(settings, "DEBUG", False),
    }

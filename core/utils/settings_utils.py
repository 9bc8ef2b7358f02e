from django.db import transaction

from core.models import SiteSetting
from core.utils.cache_utils import CacheManager

# Keys (or key prefixes) the public site reads without authentication
PUBLIC_SETTING_PREFIXES = [
    "site_name",
    "site_description",
    "logo_url",
    "logo_dark_url",
    "footer_",
    "social_",
    "contact_",
    "newsletter_",
    "intro_",
    "loading_",
    "grid_",
    "navbar_",
    "apparence",
]


def is_public_key(key):
    return any(key.startswith(prefix) for prefix in PUBLIC_SETTING_PREFIXES)


def get_setting(key, default=None):
    setting = SiteSetting.objects.filter(key=key).first()
    return setting.value if setting else default


def get_settings_dict(public_only=True):
    """Return settings as a {key: value} dict, optionally limited to public keys."""
    if public_only:
        cached = CacheManager.get_public_settings()
        if cached is not None:
            return cached

    values = {
        setting.key: setting.value
        for setting in SiteSetting.objects.all()
        if not public_only or is_public_key(setting.key)
    }

    if public_only:
        CacheManager.cache_public_settings(values)
    return values


def upsert_setting(key, value):
    setting, _ = SiteSetting.objects.update_or_create(key=key, defaults={"value": value})
    return setting


@transaction.atomic
def upsert_settings(values):
    return [upsert_setting(key, value) for key, value in values.items()]

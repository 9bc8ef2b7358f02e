import logging

from django.conf import settings
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import SiteSetting, UserProfile
from .permissions import WEBMASTER_DEFAULT_PERMISSIONS
from .utils.cache_utils import CacheManager

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, raw=False, **kwargs):
    """Give every new user a dashboard profile (superusers become admins)."""
    if not created or raw:
        return
    role = UserProfile.ROLE_ADMIN if instance.is_superuser else UserProfile.ROLE_WEBMASTER
    UserProfile.objects.get_or_create(
        user=instance,
        defaults={"role": role, "permissions": dict(WEBMASTER_DEFAULT_PERMISSIONS)},
    )
    logger.info(f"[PROFILE-CREATED] {instance.username} as {role}")


@receiver(post_save, sender=SiteSetting)
@receiver(post_delete, sender=SiteSetting)
def invalidate_settings_cache(sender, instance, **kwargs):
    """Public settings are cached; drop the cache whenever a setting changes"""
    CacheManager.invalidate_settings_cache()

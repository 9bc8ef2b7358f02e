from django.core.cache import cache


class CacheManager:
    """Helper class for cached lookups served on every public request."""

    # Cache timeouts (in seconds)
    SETTINGS_CACHE_TIMEOUT = 3600  # 1 hour
    STATS_CACHE_TIMEOUT = 300  # 5 minutes

    PUBLIC_SETTINGS_KEY = "settings:public"

    @classmethod
    def get_stats_cache_key(cls, stats_type):
        return f"stats:{stats_type}"

    @classmethod
    def get_public_settings(cls):
        return cache.get(cls.PUBLIC_SETTINGS_KEY)

    @classmethod
    def cache_public_settings(cls, values):
        cache.set(cls.PUBLIC_SETTINGS_KEY, values, cls.SETTINGS_CACHE_TIMEOUT)

    @classmethod
    def invalidate_settings_cache(cls):
        cache.delete(cls.PUBLIC_SETTINGS_KEY)

    @classmethod
    def get_cached_stats(cls, stats_type):
        return cache.get(cls.get_stats_cache_key(stats_type))

    @classmethod
    def cache_stats(cls, stats_type, data):
        cache.set(cls.get_stats_cache_key(stats_type), data, cls.STATS_CACHE_TIMEOUT)

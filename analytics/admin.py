from django.contrib import admin

from .models import ActiveSession, PageView


@admin.register(PageView)
class PageViewAdmin(admin.ModelAdmin):
    list_display = [
        "path",
        "session_display",
        "device",
        "browser",
        "os",
        "duration_display",
        "created_at",
    ]
    list_filter = ["device", "browser", "os", "created_at"]
    search_fields = ["path", "session_id", "referrer"]
    readonly_fields = ["session_id", "created_at"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        ("Page", {"fields": ("path", "page_id", "duration", "created_at")}),
        (
            "Visitor",
            {
                "fields": ("session_id", "referrer", "user_agent", "device", "browser", "os"),
                "classes": ["collapse"],
            },
        ),
    )

    def session_display(self, obj):
        return str(obj.session_id)[:8]

    session_display.short_description = "Session"

    def duration_display(self, obj):
        if obj.duration is None:
            return "-"
        return f"{obj.duration}s"

    duration_display.short_description = "Duration"


@admin.register(ActiveSession)
class ActiveSessionAdmin(admin.ModelAdmin):
    list_display = ["session_id", "path", "page_views", "started_at", "last_seen_at"]
    search_fields = ["session_id", "path"]
    readonly_fields = ["started_at", "last_seen_at", "duration_minutes"]
    ordering = ["-last_seen_at"]

from django.contrib import admin
from django.utils.html import format_html

from .models import (
    DatabaseBackup,
    GridTile,
    Media,
    NavigationItem,
    NavigationMenu,
    Page,
    PageBlock,
    PageRevision,
    SiteSetting,
    UserProfile,
)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ["user", "role", "created_at"]
    list_filter = ["role"]
    search_fields = ["user__username", "user__email"]


class PageBlockInline(admin.TabularInline):
    model = PageBlock
    extra = 0
    fields = ["type", "order", "visible"]
    ordering = ["order"]


@admin.register(Page)
class PageAdmin(admin.ModelAdmin):
    list_display = [
        "title",
        "slug",
        "published",
        "show_in_nav",
        "nav_order",
        "block_count",
        "trashed",
        "updated_at",
    ]
    list_filter = ["published", "show_in_nav", "template", "deleted_at"]
    search_fields = ["title", "slug", "meta_title"]
    list_editable = ["published", "nav_order"]
    ordering = ["nav_order", "title"]
    readonly_fields = ["published_at", "deleted_at", "created_at", "updated_at"]
    inlines = [PageBlockInline]

    fieldsets = (
        ("Page", {"fields": ("title", "slug", "parent_slug", "template", "published", "published_at")}),
        ("SEO", {"fields": ("meta_title", "meta_description"), "classes": ("collapse",)}),
        (
            "Apparence",
            {
                "fields": (
                    "background_color",
                    "text_color",
                    "custom_css",
                    "show_navbar_title",
                    "navbar_title",
                    "navbar_subtitle",
                ),
                "classes": ("collapse",),
            },
        ),
        ("Navigation", {"fields": ("show_in_nav", "nav_order", "nav_label")}),
        ("Corbeille", {"fields": ("deleted_at", "created_at", "updated_at"), "classes": ("collapse",)}),
    )

    def block_count(self, obj):
        return obj.blocks.count()

    block_count.short_description = "Blocks"

    def trashed(self, obj):
        return obj.is_deleted

    trashed.boolean = True
    trashed.short_description = "Trashed"


@admin.register(PageRevision)
class PageRevisionAdmin(admin.ModelAdmin):
    list_display = ["page", "version", "title", "created_by", "change_note", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["page__title", "page__slug", "change_note"]
    readonly_fields = ["blocks_snapshot", "created_at"]
    ordering = ["-created_at"]


class NavigationItemInline(admin.TabularInline):
    model = NavigationItem
    extra = 0
    fields = ["label", "href", "page_slug", "parent", "order", "depth", "published"]
    readonly_fields = ["depth"]
    fk_name = "menu"


@admin.register(NavigationMenu)
class NavigationMenuAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "type", "position", "colors_preview", "published"]
    list_filter = ["type", "published"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ("name",)}
    inlines = [NavigationItemInline]

    def colors_preview(self, obj):
        return format_html(
            '<span style="display:inline-block;width:40px;height:16px;background:{};color:{};'
            'border:1px solid #ccc;text-align:center;font-size:10px;">Aa</span>',
            obj.background_color,
            obj.text_color,
        )

    colors_preview.short_description = "Colors"


@admin.register(Media)
class MediaAdmin(admin.ModelAdmin):
    list_display = ["filename", "mime_type", "file_size_display", "storage_backend", "preview", "uploaded_at"]
    list_filter = ["storage_backend", "mime_type", "uploaded_at"]
    search_fields = ["filename", "alt_text", "caption"]
    readonly_fields = ["path", "url", "size", "width", "height", "public_id", "uploaded_at"]

    def file_size_display(self, obj):
        size = obj.size or 0
        if size < 1024 * 1024:
            return f"{size / 1024:.1f} KB"
        return f"{size / (1024 * 1024):.1f} MB"

    file_size_display.short_description = "Size"

    def preview(self, obj):
        if obj.file_kind == "image":
            return format_html(
                '<img src="{}" style="max-width: 50px; max-height: 50px;" />',
                obj.url,
            )
        return obj.file_kind

    preview.short_description = "Preview"


@admin.register(GridTile)
class GridTileAdmin(admin.ModelAdmin):
    list_display = ["title", "href", "col_span", "row_span", "overlay_type", "order", "published"]
    list_editable = ["order", "published"]
    ordering = ["order"]


@admin.register(SiteSetting)
class SiteSettingAdmin(admin.ModelAdmin):
    list_display = ["key", "value", "updated_at"]
    search_fields = ["key"]


@admin.register(DatabaseBackup)
class DatabaseBackupAdmin(admin.ModelAdmin):
    list_display = ["name", "type", "size", "compressed_size", "is_protected", "created_by", "created_at"]
    list_filter = ["type", "is_protected", "created_at"]
    search_fields = ["name", "description"]
    exclude = ["data"]
    readonly_fields = ["type", "size", "compressed_size", "version", "stats", "created_by", "created_at"]

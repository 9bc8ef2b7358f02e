from django.contrib.auth.models import User
from rest_framework import serializers

from .blocks import BLOCK_TYPES
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
from .permissions import FEATURES, get_user_permissions, get_user_role
from .utils.validators import validate_color, validate_page_slug


class PageBlockSerializer(serializers.ModelSerializer):
    """Serializer for page builder blocks"""

    page_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = PageBlock
        fields = [
            "id",
            "page_id",
            "type",
            "order",
            "content",
            "settings",
            "styles",
            "visible",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["order"]


class BlockWriteSerializer(serializers.Serializer):
    """Validates block payloads for add/update requests"""

    type = serializers.ChoiceField(choices=BLOCK_TYPES, required=False)
    content = serializers.JSONField(required=False)
    settings = serializers.JSONField(required=False, allow_null=True)
    styles = serializers.JSONField(required=False, allow_null=True)
    visible = serializers.BooleanField(required=False)
    insert_after = serializers.UUIDField(required=False, allow_null=True)

    def validate_content(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Block content must be an object")
        return value


class PageSerializer(serializers.ModelSerializer):
    """
    Serializer for builder pages.
    Pass ``include_blocks`` (and optionally ``visible_blocks_only``) in the
    context to embed the ordered blocks.
    """

    class Meta:
        model = Page
        fields = [
            "id",
            "slug",
            "title",
            "meta_title",
            "meta_description",
            "published",
            "published_at",
            "template",
            "background_color",
            "text_color",
            "custom_css",
            "show_navbar_title",
            "navbar_title",
            "navbar_subtitle",
            "show_in_nav",
            "nav_order",
            "nav_label",
            "parent_slug",
            "deleted_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["published_at", "deleted_at"]
        # Slug uniqueness among active pages is checked by the page operations
        validators = []
        extra_kwargs = {"slug": {"validators": []}}

    def validate_slug(self, value):
        value = value.strip().strip("/")
        validate_page_slug(value)
        return value

    def validate_background_color(self, value):
        validate_color(value)
        return value

    def validate_text_color(self, value):
        validate_color(value)
        return value

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if self.context.get("include_blocks"):
            blocks = instance.blocks.order_by("order")
            if self.context.get("visible_blocks_only"):
                blocks = blocks.filter(visible=True)
            data["blocks"] = PageBlockSerializer(blocks, many=True).data
        return data


class PageRevisionSerializer(serializers.ModelSerializer):
    """Serializer for page revisions; the heavy snapshot is opt-in via context"""

    page_id = serializers.UUIDField(read_only=True)
    block_count = serializers.SerializerMethodField()

    class Meta:
        model = PageRevision
        fields = [
            "id",
            "page_id",
            "version",
            "title",
            "slug",
            "meta_title",
            "meta_description",
            "template",
            "background_color",
            "text_color",
            "custom_css",
            "blocks_snapshot",
            "block_count",
            "created_by",
            "change_note",
            "created_at",
        ]

    def get_block_count(self, obj):
        return len(obj.blocks_snapshot or [])

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not self.context.get("include_snapshot", True):
            data.pop("blocks_snapshot")
        return data


class NavigationItemSerializer(serializers.ModelSerializer):
    """Serializer for navigation items"""

    menu_id = serializers.UUIDField(read_only=True)
    parent_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = NavigationItem
        fields = [
            "id",
            "menu_id",
            "parent_id",
            "label",
            "href",
            "order",
            "depth",
            "page_slug",
            "open_in_new_tab",
            "icon",
            "icon_position",
            "css_class",
            "style",
            "dropdown_style",
            "parent_clickable",
            "published",
            "highlighted",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["depth"]


class NavigationMenuSerializer(serializers.ModelSerializer):
    """Serializer for navigation menus and their display settings"""

    class Meta:
        model = NavigationMenu
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "type",
            "position",
            "layout",
            "alignment",
            "display_mode",
            "animation",
            "animation_duration",
            "navbar_height",
            "font_size",
            "background_color",
            "text_color",
            "hover_color",
            "active_color",
            "border_color",
            "item_spacing",
            "padding",
            "mobile_menu_bg",
            "mobile_menu_text",
            "mobile_menu_hover",
            "mobile_menu_accent",
            "mobile_font_size",
            "shadow_on_scroll",
            "shrink_on_scroll",
            "scroll_opacity",
            "hide_on_scroll_down",
            "dropdown_animation",
            "dropdown_delay",
            "custom_css",
            "css_classes",
            "mobile_breakpoint",
            "mobile_style",
            "published",
            "created_at",
            "updated_at",
        ]
        # Duplicate slugs are reported by the views with a dedicated message
        extra_kwargs = {"slug": {"validators": []}}


class MediaSerializer(serializers.ModelSerializer):
    """Serializer for media library entries"""

    file_kind = serializers.CharField(read_only=True)

    class Meta:
        model = Media
        fields = [
            "id",
            "filename",
            "path",
            "url",
            "mime_type",
            "size",
            "width",
            "height",
            "alt_text",
            "caption",
            "storage_backend",
            "file_kind",
            "uploaded_at",
            "updated_at",
        ]
        read_only_fields = [
            "filename",
            "path",
            "url",
            "mime_type",
            "size",
            "width",
            "height",
            "storage_backend",
            "uploaded_at",
        ]


class GridTileSerializer(serializers.ModelSerializer):
    """Serializer for homepage grid tiles"""

    class Meta:
        model = GridTile
        fields = [
            "id",
            "title",
            "caption",
            "href",
            "background_url",
            "col_span",
            "row_span",
            "col_start",
            "row_start",
            "overlay_type",
            "overlay_color",
            "overlay_opacity",
            "order",
            "published",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["order"]


class SiteSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = SiteSetting
        fields = ["id", "key", "value", "updated_at"]


class DatabaseBackupSerializer(serializers.ModelSerializer):
    """Backup metadata (the compressed payload is never listed)"""

    class Meta:
        model = DatabaseBackup
        fields = [
            "id",
            "name",
            "type",
            "size",
            "compressed_size",
            "version",
            "stats",
            "description",
            "created_by",
            "created_at",
            "is_protected",
            "expires_at",
        ]
        read_only_fields = fields


class DatabaseBackupWriteSerializer(serializers.Serializer):
    """Validates backup create/update payloads"""

    type = serializers.ChoiceField(choices=DatabaseBackup.TYPE_CHOICES, required=False)
    name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_protected = serializers.BooleanField(required=False)


class DashboardUserSerializer(serializers.ModelSerializer):
    """Dashboard user with role and effective permissions"""

    name = serializers.SerializerMethodField()
    role = serializers.SerializerMethodField()
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "username", "email", "name", "role", "permissions", "date_joined", "last_login"]

    def get_name(self, obj):
        return obj.get_full_name() or obj.username

    def get_role(self, obj):
        return get_user_role(obj)

    def get_permissions(self, obj):
        return get_user_permissions(obj)


class DashboardUserWriteSerializer(serializers.Serializer):
    """Validates user create/update payloads"""

    email = serializers.EmailField(required=False)
    password = serializers.CharField(required=False, min_length=8, write_only=True)
    name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    role = serializers.ChoiceField(choices=UserProfile.ROLE_CHOICES, required=False)
    permissions = serializers.DictField(child=serializers.BooleanField(), required=False, allow_null=True)

    def validate_permissions(self, value):
        if value is None:
            return value
        unknown = set(value) - set(FEATURES)
        if unknown:
            raise serializers.ValidationError(f"Unknown features: {', '.join(sorted(unknown))}")
        return value

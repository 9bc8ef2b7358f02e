import uuid

from django.contrib.auth.models import User
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .blocks import BLOCK_TYPE_CHOICES

HOMEPAGE_SLUGS = ("", "accueil", "home")


class TimestampedModel(models.Model):
    """
    Abstract base model that provides self-updating 'created_at' and 'updated_at' fields.
    All CMS models inherit from this for consistent timestamp tracking.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("ID"),
        help_text=_("Unique identifier for this record"),
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        verbose_name=_("Created At"),
        help_text=_("Timestamp when this record was first created"),
        db_index=True,
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name=_("Updated At"),
        help_text=_("Timestamp when this record was last modified"),
        db_index=True,
    )

    class Meta:
        abstract = True
        get_latest_by = "created_at"


# =============================================================================
# USERS
# =============================================================================


class UserProfile(TimestampedModel):
    """
    Dashboard role and feature permissions attached to a Django user.
    Superusers always act as ADMIN regardless of the stored role.
    """

    ROLE_ADMIN = "ADMIN"
    ROLE_WEBMASTER = "WEBMASTER"
    ROLE_CHOICES = [
        (ROLE_ADMIN, _("Administrator")),
        (ROLE_WEBMASTER, _("Webmaster")),
    ]

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="profile",
        verbose_name=_("User"),
    )
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_WEBMASTER,
        verbose_name=_("Role"),
        db_index=True,
    )
    permissions = models.JSONField(
        null=True,
        blank=True,
        verbose_name=_("Permissions"),
        help_text=_("Per-feature access flags; missing keys fall back to webmaster defaults"),
    )

    class Meta:
        verbose_name = _("User Profile")
        verbose_name_plural = _("User Profiles")

    def __str__(self):
        return f"{self.user.username} ({self.effective_role})"

    @property
    def effective_role(self):
        if self.user.is_superuser:
            return self.ROLE_ADMIN
        return self.role


# =============================================================================
# PAGES & BLOCKS
# =============================================================================


class Page(TimestampedModel):
    """
    A builder page addressed by its slug. Slugs are stored without a leading
    slash; nested pages use "parent/child" slugs. Deleting a page moves it to
    the trash (deleted_at) unless a permanent delete is requested.
    """

    slug = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_("Slug"),
        help_text=_("URL path of the page without leading slash (empty for the homepage)"),
        db_index=True,
    )
    title = models.CharField(max_length=255, verbose_name=_("Title"))
    meta_title = models.CharField(max_length=255, blank=True, null=True, verbose_name=_("Meta Title"))
    meta_description = models.TextField(blank=True, null=True, verbose_name=_("Meta Description"))
    published = models.BooleanField(default=False, verbose_name=_("Published"), db_index=True)
    published_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Published At"),
        help_text=_("Set the first time the page is published"),
    )
    template = models.CharField(max_length=50, default="default", verbose_name=_("Template"))
    background_color = models.CharField(max_length=30, default="#ffffff", verbose_name=_("Background Color"))
    text_color = models.CharField(max_length=30, default="#000000", verbose_name=_("Text Color"))
    custom_css = models.TextField(blank=True, null=True, verbose_name=_("Custom CSS"))

    # Navbar title
    show_navbar_title = models.BooleanField(default=False, verbose_name=_("Show Navbar Title"))
    navbar_title = models.CharField(max_length=255, blank=True, null=True)
    navbar_subtitle = models.CharField(max_length=255, blank=True, null=True)

    # Navigation
    show_in_nav = models.BooleanField(default=False, verbose_name=_("Show In Navigation"))
    nav_order = models.IntegerField(default=0, verbose_name=_("Navigation Order"))
    nav_label = models.CharField(max_length=255, blank=True, null=True)
    parent_slug = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        verbose_name=_("Parent Slug"),
        help_text=_("Slug of the parent page, e.g. 'magasins' for store pages"),
        db_index=True,
    )

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Deleted At"),
        help_text=_("Set when the page is in the trash"),
        db_index=True,
    )

    class Meta:
        ordering = ["nav_order", "title"]
        verbose_name = _("Page")
        verbose_name_plural = _("Pages")
        constraints = [
            models.UniqueConstraint(
                fields=["slug"],
                condition=Q(deleted_at__isnull=True),
                name="unique_active_page_slug",
            ),
        ]
        indexes = [
            models.Index(fields=["published", "deleted_at"]),
            models.Index(fields=["parent_slug", "published"]),
        ]

    def __str__(self):
        return f"{self.title} (/{self.slug})"

    @property
    def is_homepage(self):
        return self.slug in HOMEPAGE_SLUGS

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def mark_published(self):
        """Flag the page as published, stamping published_at on the first publish."""
        self.published = True
        if not self.published_at:
            self.published_at = timezone.now()


class PageBlock(TimestampedModel):
    """A typed content block positioned inside a page (orders are 0..n-1)."""

    page = models.ForeignKey(
        Page,
        on_delete=models.CASCADE,
        related_name="blocks",
        verbose_name=_("Page"),
    )
    type = models.CharField(
        max_length=30,
        choices=BLOCK_TYPE_CHOICES,
        verbose_name=_("Block Type"),
    )
    order = models.PositiveIntegerField(default=0, verbose_name=_("Order"))
    content = models.JSONField(default=dict, blank=True, verbose_name=_("Content"))
    settings = models.JSONField(default=dict, blank=True, null=True, verbose_name=_("Settings"))
    styles = models.JSONField(default=dict, blank=True, null=True, verbose_name=_("Styles"))
    visible = models.BooleanField(default=True, verbose_name=_("Visible"))

    class Meta:
        ordering = ["order"]
        verbose_name = _("Page Block")
        verbose_name_plural = _("Page Blocks")
        indexes = [
            models.Index(fields=["page", "order"]),
        ]

    def __str__(self):
        return f"{self.type} #{self.order} on {self.page.slug or '/'}"


class PageRevision(TimestampedModel):
    """
    Point-in-time copy of a page's metadata and blocks, used for rollback.
    Versions are numbered per page starting at 1.
    """

    page = models.ForeignKey(
        Page,
        on_delete=models.CASCADE,
        related_name="revisions",
        verbose_name=_("Page"),
    )
    version = models.PositiveIntegerField(verbose_name=_("Version"))
    title = models.CharField(max_length=255)
    slug = models.CharField(max_length=255, blank=True)
    meta_title = models.CharField(max_length=255, blank=True, null=True)
    meta_description = models.TextField(blank=True, null=True)
    template = models.CharField(max_length=50, default="default")
    background_color = models.CharField(max_length=30, default="#ffffff")
    text_color = models.CharField(max_length=30, default="#000000")
    custom_css = models.TextField(blank=True, null=True)
    blocks_snapshot = models.JSONField(
        default=list,
        verbose_name=_("Blocks Snapshot"),
        help_text=_("Blocks of the page at the time of the revision"),
    )
    created_by = models.CharField(max_length=255, blank=True, null=True, verbose_name=_("Created By"))
    change_note = models.CharField(max_length=500, blank=True, null=True, verbose_name=_("Change Note"))

    class Meta:
        ordering = ["-version"]
        verbose_name = _("Page Revision")
        verbose_name_plural = _("Page Revisions")
        constraints = [
            models.UniqueConstraint(fields=["page", "version"], name="unique_page_revision_version"),
        ]

    def __str__(self):
        return f"{self.page.title} v{self.version}"


# =============================================================================
# NAVIGATION
# =============================================================================


class NavigationMenu(TimestampedModel):
    """A navigation menu (the site header is the 'header' menu) and its display styling."""

    POSITION_CHOICES = [("top", _("Top")), ("bottom", _("Bottom"))]
    LAYOUT_CHOICES = [("horizontal", _("Horizontal")), ("vertical", _("Vertical"))]
    ALIGNMENT_CHOICES = [
        ("left", _("Left")),
        ("center", _("Center")),
        ("right", _("Right")),
        ("space-between", _("Space between")),
    ]
    DISPLAY_MODE_CHOICES = [
        ("hamburger-only", _("Hamburger only")),
        ("traditional", _("Traditional")),
        ("hybrid", _("Hybrid")),
    ]
    DROPDOWN_ANIMATION_CHOICES = [("none", _("None")), ("fadeDown", _("Fade down")), ("scale", _("Scale"))]
    MOBILE_STYLE_CHOICES = [("hamburger", _("Hamburger")), ("slide", _("Slide"))]

    name = models.CharField(max_length=255, verbose_name=_("Name"))
    slug = models.SlugField(max_length=100, unique=True, verbose_name=_("Slug"))
    description = models.TextField(blank=True, null=True)
    type = models.CharField(max_length=30, default="header", verbose_name=_("Menu Type"))

    # Layout
    position = models.CharField(max_length=20, choices=POSITION_CHOICES, default="top")
    layout = models.CharField(max_length=20, choices=LAYOUT_CHOICES, default="horizontal")
    alignment = models.CharField(max_length=20, choices=ALIGNMENT_CHOICES, default="center")
    display_mode = models.CharField(max_length=20, choices=DISPLAY_MODE_CHOICES, default="hamburger-only")
    animation = models.CharField(max_length=30, default="none")
    animation_duration = models.PositiveIntegerField(default=200)

    # Navbar styling
    navbar_height = models.PositiveIntegerField(default=64)
    font_size = models.PositiveIntegerField(default=14)
    background_color = models.CharField(max_length=50, blank=True, null=True, default="#ffffff")
    text_color = models.CharField(max_length=50, blank=True, null=True, default="#000000")
    hover_color = models.CharField(max_length=50, blank=True, null=True, default="#666666")
    active_color = models.CharField(max_length=50, blank=True, null=True, default="#000000")
    border_color = models.CharField(max_length=50, blank=True, null=True)
    item_spacing = models.PositiveIntegerField(default=32)
    padding = models.CharField(max_length=50, blank=True, null=True)

    # Mobile menu styling
    mobile_menu_bg = models.CharField(max_length=50, blank=True, null=True, default="rgba(0,0,0,0.95)")
    mobile_menu_text = models.CharField(max_length=50, blank=True, null=True, default="#ffffff")
    mobile_menu_hover = models.CharField(max_length=50, blank=True, null=True, default="#999999")
    mobile_menu_accent = models.CharField(max_length=50, blank=True, null=True, default="#f59e0b")
    mobile_font_size = models.PositiveIntegerField(default=18)

    # Scroll behaviour
    shadow_on_scroll = models.BooleanField(default=True)
    shrink_on_scroll = models.BooleanField(default=True)
    scroll_opacity = models.PositiveIntegerField(
        default=100, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    hide_on_scroll_down = models.BooleanField(default=False)

    # Dropdowns
    dropdown_animation = models.CharField(max_length=20, choices=DROPDOWN_ANIMATION_CHOICES, default="fadeDown")
    dropdown_delay = models.PositiveIntegerField(default=0)

    custom_css = models.TextField(blank=True, null=True)
    css_classes = models.CharField(max_length=255, blank=True, null=True)

    # Mobile
    mobile_breakpoint = models.PositiveIntegerField(default=768)
    mobile_style = models.CharField(max_length=20, choices=MOBILE_STYLE_CHOICES, default="hamburger")

    published = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name = _("Navigation Menu")
        verbose_name_plural = _("Navigation Menus")

    def __str__(self):
        return self.name


class NavigationItem(TimestampedModel):
    """
    A link inside a navigation menu. Items nest through ``parent``;
    depth is 0 for root items and parent.depth + 1 otherwise.
    """

    ICON_POSITION_CHOICES = [("left", _("Left")), ("right", _("Right"))]

    menu = models.ForeignKey(
        NavigationMenu,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("Menu"),
    )
    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="children",
        verbose_name=_("Parent Item"),
    )
    label = models.CharField(max_length=255, verbose_name=_("Label"))
    href = models.CharField(max_length=500, blank=True, null=True)
    order = models.IntegerField(default=0, verbose_name=_("Order"))
    depth = models.PositiveIntegerField(default=0, verbose_name=_("Depth"))
    page_slug = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        verbose_name=_("Page Slug"),
        help_text=_("Links the item to a builder page instead of a raw href"),
    )
    open_in_new_tab = models.BooleanField(default=False)
    icon = models.CharField(max_length=100, blank=True, null=True)
    icon_position = models.CharField(max_length=10, choices=ICON_POSITION_CHOICES, default="left")
    css_class = models.CharField(max_length=255, blank=True, null=True)
    style = models.JSONField(default=dict, blank=True, null=True)
    dropdown_style = models.CharField(max_length=30, default="dropdown")
    parent_clickable = models.BooleanField(default=True)
    published = models.BooleanField(default=True, db_index=True)
    highlighted = models.BooleanField(default=False)

    class Meta:
        ordering = ["depth", "order"]
        verbose_name = _("Navigation Item")
        verbose_name_plural = _("Navigation Items")
        indexes = [
            models.Index(fields=["menu", "parent", "order"]),
        ]

    def __str__(self):
        return f"{self.label} ({self.menu.slug})"


# =============================================================================
# MEDIA, GRID & SETTINGS
# =============================================================================


class Media(TimestampedModel):
    """A file in the media library, stored locally or on Cloudinary."""

    STORAGE_LOCAL = "local"
    STORAGE_CLOUDINARY = "cloudinary"
    STORAGE_CHOICES = [
        (STORAGE_LOCAL, _("Local storage")),
        (STORAGE_CLOUDINARY, _("Cloudinary")),
    ]

    filename = models.CharField(max_length=255, verbose_name=_("Filename"), db_index=True)
    path = models.CharField(
        max_length=500,
        verbose_name=_("Storage Path"),
        help_text=_("Path inside the storage backend, e.g. uploads/2026/10/photo-1700000000-abc123.jpg"),
    )
    url = models.CharField(max_length=1000, verbose_name=_("Public URL"))
    mime_type = models.CharField(max_length=100, verbose_name=_("MIME Type"), db_index=True)
    size = models.PositiveBigIntegerField(default=0, verbose_name=_("Size (bytes)"))
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    alt_text = models.CharField(max_length=500, blank=True, null=True, verbose_name=_("Alt Text"))
    caption = models.TextField(blank=True, null=True, verbose_name=_("Caption"))
    storage_backend = models.CharField(max_length=20, choices=STORAGE_CHOICES, default=STORAGE_LOCAL)
    public_id = models.CharField(
        max_length=500,
        blank=True,
        null=True,
        help_text=_("Cloudinary public ID when stored remotely"),
    )
    uploaded_at = models.DateTimeField(default=timezone.now, verbose_name=_("Uploaded At"), db_index=True)

    class Meta:
        ordering = ["-uploaded_at"]
        verbose_name = _("Media")
        verbose_name_plural = _("Media")

    def __str__(self):
        return self.filename

    @property
    def file_kind(self):
        if self.mime_type.startswith("image/"):
            return "image"
        if self.mime_type.startswith("video/"):
            return "video"
        return "document"


class GridTile(TimestampedModel):
    """A tile of the homepage bento grid."""

    OVERLAY_DARK = "DARK"
    OVERLAY_LIGHT = "LIGHT"
    OVERLAY_CHOICES = [
        (OVERLAY_DARK, _("Dark")),
        (OVERLAY_LIGHT, _("Light")),
    ]

    title = models.CharField(max_length=255)
    caption = models.CharField(max_length=500, blank=True, null=True)
    href = models.CharField(max_length=500)
    background_url = models.CharField(max_length=1000)
    col_span = models.PositiveSmallIntegerField(default=2)
    row_span = models.PositiveSmallIntegerField(default=1)
    col_start = models.PositiveSmallIntegerField(default=1)
    row_start = models.PositiveSmallIntegerField(default=1)
    overlay_type = models.CharField(max_length=10, choices=OVERLAY_CHOICES, default=OVERLAY_DARK)
    overlay_color = models.CharField(max_length=50, blank=True, null=True)
    overlay_opacity = models.PositiveSmallIntegerField(
        default=60, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    order = models.PositiveIntegerField(default=0, db_index=True)
    published = models.BooleanField(default=True)

    class Meta:
        ordering = ["order"]
        verbose_name = _("Grid Tile")
        verbose_name_plural = _("Grid Tiles")

    def __str__(self):
        return self.title


class SiteSetting(TimestampedModel):
    """Key/value site configuration (JSON values)."""

    key = models.CharField(max_length=255, unique=True, verbose_name=_("Key"))
    value = models.JSONField(null=True, blank=True, verbose_name=_("Value"))

    class Meta:
        ordering = ["key"]
        verbose_name = _("Site Setting")
        verbose_name_plural = _("Site Settings")

    def __str__(self):
        return self.key


# =============================================================================
# BACKUPS
# =============================================================================


class DatabaseBackup(TimestampedModel):
    """A gzip-compressed, base64-encoded JSON snapshot of all content tables."""

    TYPE_MANUAL = "MANUAL"
    TYPE_AUTO_PRE_IMPORT = "AUTO_PRE_IMPORT"
    TYPE_AUTO_PRE_EXPORT = "AUTO_PRE_EXPORT"
    TYPE_SCHEDULED = "SCHEDULED"
    TYPE_CHOICES = [
        (TYPE_MANUAL, _("Manual")),
        (TYPE_AUTO_PRE_IMPORT, _("Automatic (before import)")),
        (TYPE_AUTO_PRE_EXPORT, _("Automatic (before restore)")),
        (TYPE_SCHEDULED, _("Scheduled")),
    ]
    AUTOMATIC_TYPES = [TYPE_AUTO_PRE_IMPORT, TYPE_AUTO_PRE_EXPORT, TYPE_SCHEDULED]

    name = models.CharField(max_length=255, verbose_name=_("Name"))
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_MANUAL, db_index=True)
    data = models.TextField(verbose_name=_("Data"), help_text=_("Base64 encoded gzip JSON payload"))
    size = models.PositiveBigIntegerField(default=0, help_text=_("Uncompressed JSON size in bytes"))
    compressed_size = models.PositiveBigIntegerField(default=0)
    version = models.CharField(max_length=20, default="2.0")
    stats = models.JSONField(default=dict, blank=True)
    description = models.TextField(blank=True, null=True)
    created_by = models.CharField(max_length=255, blank=True, null=True)
    is_protected = models.BooleanField(
        default=False,
        verbose_name=_("Protected"),
        help_text=_("Protected backups are never deleted or rotated"),
    )
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Database Backup")
        verbose_name_plural = _("Database Backups")
        indexes = [
            models.Index(fields=["type", "created_at"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"

    @property
    def is_automatic(self):
        return self.type in self.AUTOMATIC_TYPES

"""
Page, block and revision operations shared by the page builder views,
the backup tooling and the management commands.
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import F, Max
from django.utils import timezone

from core.blocks import get_default_content, get_default_styles, is_valid_block_type
from core.models import HOMEPAGE_SLUGS, Page, PageBlock, PageRevision

logger = logging.getLogger(__name__)

# Page fields a revision snapshot captures and a restore brings back
REVISION_FIELDS = [
    "title",
    "meta_title",
    "meta_description",
    "template",
    "background_color",
    "text_color",
    "custom_css",
]

PAGE_EDITABLE_FIELDS = [
    "title",
    "meta_title",
    "meta_description",
    "published",
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
]


def _as_int(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def normalize_slug(slug):
    """Strip surrounding whitespace and slashes: "/magasins/" -> "magasins"."""
    if slug is None:
        return ""
    return str(slug).strip().strip("/")


def is_homepage_slug(slug):
    return normalize_slug(slug) in HOMEPAGE_SLUGS


def _slug_candidates(slug):
    normalized = normalize_slug(slug)
    if normalized in HOMEPAGE_SLUGS:
        return list(HOMEPAGE_SLUGS) + ["/"]
    # Pages created before slugs were normalized were stored with a leading slash
    return [normalized, f"/{normalized}"]


def find_page(slug, include_deleted=False):
    """
    Look a page up by slug, accepting the legacy "/slug" form.
    Active pages win over trashed pages sharing the slug.

    Raises:
        Page.DoesNotExist: when no matching page is visible
    """
    queryset = Page.objects.filter(slug__in=_slug_candidates(slug))
    if not include_deleted:
        queryset = queryset.filter(deleted_at__isnull=True)

    page = queryset.order_by(F("deleted_at").asc(nulls_first=True), "-updated_at").first()
    if page is None:
        raise Page.DoesNotExist(f"Page '{normalize_slug(slug)}' not found")
    return page


def slug_taken(slug, exclude_page=None):
    """True when an active page already uses ``slug``."""
    queryset = Page.objects.filter(slug__in=_slug_candidates(slug), deleted_at__isnull=True)
    if exclude_page is not None:
        queryset = queryset.exclude(pk=exclude_page.pk)
    return queryset.exists()


def list_pages(published=None, include_deleted=False, only_deleted=False):
    queryset = Page.objects.all()
    if only_deleted:
        queryset = queryset.filter(deleted_at__isnull=False)
    elif not include_deleted:
        queryset = queryset.filter(deleted_at__isnull=True)
    if published is not None:
        queryset = queryset.filter(published=published)
    return queryset.order_by("nav_order", "title")


# =============================================================================
# BLOCKS
# =============================================================================


def block_snapshot(block):
    return {
        "id": str(block.id),
        "type": block.type,
        "order": block.order,
        "content": block.content,
        "settings": block.settings,
        "styles": block.styles,
        "visible": block.visible,
    }


def build_block(page, data, order):
    """Build an unsaved PageBlock from request data, filling registry defaults."""
    block_type = data.get("type")
    if not block_type:
        raise ValidationError("Block type is required")
    if not is_valid_block_type(block_type):
        raise ValidationError(f"Unknown block type '{block_type}'")

    content = data.get("content")
    styles = data.get("styles")
    return PageBlock(
        page=page,
        type=block_type,
        order=order,
        content=content if content is not None else get_default_content(block_type),
        settings=data.get("settings") or {},
        styles=styles if styles is not None else get_default_styles(block_type),
        visible=data.get("visible", True),
    )


def replace_blocks(page, blocks_data):
    """Replace every block of ``page``; orders follow the list position."""
    blocks = [build_block(page, data, index) for index, data in enumerate(blocks_data)]
    page.blocks.all().delete()
    PageBlock.objects.bulk_create(blocks)
    return blocks


def reindex_blocks(page):
    """Rewrite block orders as a contiguous 0..n-1 sequence."""
    for index, block in enumerate(page.blocks.order_by("order", "created_at")):
        if block.order != index:
            block.order = index
            block.save(update_fields=["order", "updated_at"])


@transaction.atomic
def add_block(page, data):
    """Append a block, or insert it right after ``data["insert_after"]``."""
    insert_after = data.get("insert_after")
    if insert_after:
        try:
            anchor = page.blocks.get(pk=insert_after)
        except (PageBlock.DoesNotExist, ValidationError):
            raise ValidationError("Block to insert after was not found on this page")
        order = anchor.order + 1
        page.blocks.filter(order__gte=order).update(order=F("order") + 1)
    else:
        current_max = page.blocks.aggregate(max_order=Max("order"))["max_order"]
        order = 0 if current_max is None else current_max + 1

    block = build_block(page, data, order)
    block.save()
    return block


@transaction.atomic
def reorder_blocks(page, block_ids):
    """
    Place the listed blocks first, in the given order. Blocks missing from
    the list keep their relative order after them.
    """
    block_ids = [str(block_id) for block_id in block_ids]
    blocks = {str(block.id): block for block in page.blocks.all()}

    unknown = [block_id for block_id in block_ids if block_id not in blocks]
    if unknown:
        raise ValidationError(f"Blocks not found on this page: {', '.join(unknown)}")
    if len(set(block_ids)) != len(block_ids):
        raise ValidationError("Duplicate block ids in reorder request")

    remaining = sorted(
        (block for block_id, block in blocks.items() if block_id not in block_ids),
        key=lambda block: block.order,
    )
    ordered = [blocks[block_id] for block_id in block_ids] + remaining
    for index, block in enumerate(ordered):
        block.order = index
    PageBlock.objects.bulk_update(ordered, ["order"])
    return ordered


@transaction.atomic
def move_block(block, new_order):
    page = block.page
    siblings = list(page.blocks.exclude(pk=block.pk).order_by("order"))
    new_order = max(0, min(_as_int(new_order, "order"), len(siblings)))
    siblings.insert(new_order, block)
    for index, item in enumerate(siblings):
        item.order = index
    PageBlock.objects.bulk_update(siblings, ["order"])
    return block


@transaction.atomic
def delete_block(block):
    page = block.page
    block.delete()
    reindex_blocks(page)


@transaction.atomic
def duplicate_block(block):
    """Copy ``block`` directly after itself, shifting the following blocks."""
    page = block.page
    page.blocks.filter(order__gt=block.order).update(order=F("order") + 1)
    return PageBlock.objects.create(
        page=page,
        type=block.type,
        order=block.order + 1,
        content=block.content,
        settings=block.settings,
        styles=block.styles,
        visible=block.visible,
    )


# =============================================================================
# REVISIONS
# =============================================================================


def next_revision_version(page):
    latest = page.revisions.aggregate(latest=Max("version"))["latest"]
    return (latest or 0) + 1


def create_revision(page, user=None, change_note=None):
    """Snapshot the page metadata and its blocks into a new revision."""
    revision = PageRevision.objects.create(
        page=page,
        version=next_revision_version(page),
        slug=page.slug,
        blocks_snapshot=[block_snapshot(block) for block in page.blocks.order_by("order")],
        created_by=user.get_username() if user is not None and user.is_authenticated else None,
        change_note=change_note,
        **{field: getattr(page, field) for field in REVISION_FIELDS},
    )
    logger.info(f"[REVISION-CREATED] {page.slug or '/'} v{revision.version}")
    return revision


@transaction.atomic
def restore_revision(page, revision, user=None):
    """
    Bring a page back to ``revision``. The current state is saved first so
    the restore itself can be undone. Navigation and publication settings
    are left untouched.
    """
    create_revision(
        page,
        user=user,
        change_note=f"Before restoring version {revision.version}",
    )

    page.blocks.all().delete()
    snapshot = sorted(revision.blocks_snapshot or [], key=lambda item: item.get("order", 0))
    PageBlock.objects.bulk_create(
        [
            PageBlock(
                page=page,
                type=item["type"],
                order=index,
                content=item.get("content") or {},
                settings=item.get("settings") or {},
                styles=item.get("styles") or {},
                visible=item.get("visible", True),
            )
            for index, item in enumerate(snapshot)
        ]
    )

    for field in REVISION_FIELDS:
        setattr(page, field, getattr(revision, field))
    page.save()

    logger.info(f"[REVISION-RESTORED] {page.slug or '/'} restored to v{revision.version}")
    return page


# =============================================================================
# PAGES
# =============================================================================


@transaction.atomic
def create_page(data):
    title = (data.get("title") or "").strip()
    slug = normalize_slug(data.get("slug"))
    if not title or not data.get("slug"):
        raise ValidationError("Title and slug are required")
    if slug_taken(slug):
        raise ValidationError("A page with this slug already exists")

    page = Page(slug=slug, title=title, published=False)
    for field in PAGE_EDITABLE_FIELDS:
        if field in data and field not in ("title", "published"):
            setattr(page, field, data[field])
    page.save()

    replace_blocks(page, data.get("blocks") or [])
    logger.info(f"[PAGE-CREATED] /{page.slug}")
    return page


@transaction.atomic
def update_page(page, data, user=None):
    """
    Apply an editor save to ``page``.

    A revision of the current state is recorded first unless
    ``create_revision`` is false. ``blocks`` replaces all blocks and
    ``new_slug`` renames the page.
    """
    homepage = page.is_homepage

    if "blocks" in data and data["blocks"] is not None and homepage:
        raise PermissionDenied("The homepage content is managed by the grid and cannot be edited here")

    new_slug = data.get("new_slug")
    if new_slug is not None:
        new_slug = normalize_slug(new_slug)
        if new_slug != normalize_slug(page.slug):
            if homepage:
                raise PermissionDenied("The homepage slug cannot be changed")
            if slug_taken(new_slug, exclude_page=page):
                raise ValidationError("A page with this slug already exists")

    if data.get("create_revision", True):
        create_revision(page, user=user, change_note=data.get("change_note"))

    if "blocks" in data and data["blocks"] is not None:
        replace_blocks(page, data["blocks"])

    for field in PAGE_EDITABLE_FIELDS:
        if field in data and field != "published":
            setattr(page, field, data[field])

    if "published" in data:
        if data["published"]:
            page.mark_published()
        else:
            page.published = False

    if new_slug is not None:
        page.slug = new_slug

    page.save()
    logger.info(f"[PAGE-UPDATED] /{page.slug}")
    return page


def delete_page(page, permanent=False):
    if page.is_homepage:
        raise PermissionDenied("The homepage cannot be deleted")

    if permanent:
        slug = page.slug
        page.delete()
        logger.info(f"[PAGE-DELETED] /{slug} permanently deleted")
        return None

    page.deleted_at = timezone.now()
    page.show_in_nav = False
    page.save(update_fields=["deleted_at", "show_in_nav", "updated_at"])
    logger.info(f"[PAGE-TRASHED] /{page.slug}")
    return page


def restore_page(page):
    """Take a page out of the trash unless an active page now owns its slug."""
    if slug_taken(page.slug, exclude_page=page):
        raise ValidationError("Another active page already uses this slug")
    page.deleted_at = None
    page.save(update_fields=["deleted_at", "updated_at"])
    logger.info(f"[PAGE-RESTORED] /{page.slug}")
    return page


def patch_page(page, data):
    """Quick dashboard actions: restore, publish toggle, nav order and visibility."""
    nav_order = _as_int(data["nav_order"], "nav_order") if "nav_order" in data else None
    if data.get("restore"):
        restore_page(page)

    if "published" in data:
        if data["published"]:
            page.mark_published()
        else:
            page.published = False
    if "nav_order" in data:
        page.nav_order = nav_order
    if "show_in_nav" in data:
        page.show_in_nav = bool(data["show_in_nav"])

    page.save()
    return page


def navigation_pages():
    """Active pages offered as link targets in the navigation editor."""
    return (
        Page.objects.filter(deleted_at__isnull=True)
        .order_by("title")
        .values("id", "slug", "title", "published", "nav_label", "show_in_nav")
    )

"""
Navigation tree helpers.

Items are stored flat with a parent pointer and a cached depth. These
helpers rebuild the nested tree for rendering, resolve item links and keep
depths consistent when items move.
"""

import logging
from typing import Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max

from core.models import NavigationItem, NavigationMenu

logger = logging.getLogger(__name__)

ITEM_FIELDS = [
    "label",
    "href",
    "order",
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
]


def _item_value(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name)


def _parent_key(item):
    value = _item_value(item, "parent_id")
    return str(value) if value is not None else None


def build_nested_items(
    items: List, parent_id: Optional[str] = None, include_unpublished: bool = False
) -> List[Dict]:
    """
    Build the nested structure of a flat item list.

    Args:
        items: item dicts (with ``id``/``parent_id``) or NavigationItem instances
        parent_id: parent to collect children for (None for root items)
        include_unpublished: keep unpublished items (dashboard views)

    Returns:
        list of item dicts, each with a ``children`` list, sorted by order
    """
    parent_key = str(parent_id) if parent_id is not None else None
    children = [
        item
        for item in items
        if _parent_key(item) == parent_key and (include_unpublished or _item_value(item, "published"))
    ]
    children.sort(key=lambda item: _item_value(item, "order"))

    nested = []
    for item in children:
        node = dict(item) if isinstance(item, dict) else item_to_dict(item)
        node["children"] = build_nested_items(items, _item_value(item, "id"), include_unpublished)
        nested.append(node)
    return nested


def flatten_items(nested: List[Dict], depth: int = 0) -> List[Dict]:
    """Flatten a nested tree back to a list, stamping each item's depth."""
    flat = []
    for node in nested:
        children = node.get("children") or []
        item = {key: value for key, value in node.items() if key != "children"}
        item["depth"] = depth
        flat.append(item)
        flat.extend(flatten_items(children, depth + 1))
    return flat


def item_to_dict(item):
    return {
        "id": str(item.id),
        "menu_id": str(item.menu_id),
        "parent_id": str(item.parent_id) if item.parent_id else None,
        "depth": item.depth,
        "created_at": item.created_at.isoformat() if item.created_at else None,
        "updated_at": item.updated_at.isoformat() if item.updated_at else None,
        **{field: getattr(item, field) for field in ITEM_FIELDS},
    }


def get_item_href(item):
    """
    Resolve the URL an item points to.

    Page links win over raw hrefs; external http(s) links are kept as is and
    internal hrefs are made root-relative. Items without a target resolve to "#".
    """
    page_slug = _item_value(item, "page_slug")
    if page_slug:
        if page_slug in ("home", "/"):
            return "/"
        return page_slug if page_slug.startswith("/") else f"/{page_slug}"

    href = _item_value(item, "href")
    if href:
        if href.startswith(("http://", "https://")):
            return href
        return href if href.startswith("/") else f"/{href}"

    return "#"


def is_item_active(item, pathname):
    """True when ``pathname`` is the item's page or one of its sub-pages."""
    href = get_item_href(item)
    if href == "#":
        return False
    if href == "/":
        return pathname == "/"
    return pathname == href or pathname.startswith(f"{href}/")


# =============================================================================
# HIERARCHY MAINTENANCE
# =============================================================================


def get_descendant_ids(item):
    ids = []
    pending = [item.pk]
    while pending:
        child_ids = list(NavigationItem.objects.filter(parent_id__in=pending).values_list("pk", flat=True))
        ids.extend(child_ids)
        pending = child_ids
    return ids


def update_descendant_depths(item):
    """Recompute depth for every descendant of ``item`` (item.depth already set)."""
    for child in item.children.all():
        depth = item.depth + 1
        if child.depth != depth:
            child.depth = depth
            child.save(update_fields=["depth", "updated_at"])
        update_descendant_depths(child)


def validate_parent(item, parent):
    """Reject parents from another menu and moves that would create a cycle."""
    if parent is None:
        return
    if parent.menu_id != item.menu_id:
        raise ValidationError("Parent item belongs to another menu")
    if item.pk and (parent.pk == item.pk or parent.pk in get_descendant_ids(item)):
        raise ValidationError("An item cannot be moved under itself or one of its children")


def next_sibling_order(menu, parent):
    current = NavigationItem.objects.filter(menu=menu, parent=parent).aggregate(max_order=Max("order"))
    return 0 if current["max_order"] is None else current["max_order"] + 1


def resolve_menu(menu_id=None, menu_slug=None):
    """
    Raises:
        NavigationMenu.DoesNotExist: when the menu is unknown
    """
    if menu_id:
        return NavigationMenu.objects.get(pk=menu_id)
    if menu_slug:
        return NavigationMenu.objects.get(slug=menu_slug)
    raise ValidationError("menu_id or menu_slug is required")


@transaction.atomic
def create_item(data):
    menu = resolve_menu(data.get("menu_id"), data.get("menu_slug"))

    parent = None
    if data.get("parent_id"):
        parent = NavigationItem.objects.get(pk=data["parent_id"])

    if not data.get("label"):
        raise ValidationError("Label is required")

    item = NavigationItem(menu=menu, parent=parent)
    validate_parent(item, parent)
    for field in ITEM_FIELDS:
        if field in data and data[field] is not None:
            setattr(item, field, data[field])
    item.depth = parent.depth + 1 if parent else 0
    if data.get("order") is None:
        item.order = next_sibling_order(menu, parent)
    item.save()

    logger.info(f"[NAV-ITEM-CREATED] '{item.label}' in menu {menu.slug}")
    return item


@transaction.atomic
def update_item(item, data):
    """Update an item; moving it to a new parent recomputes depths of its subtree."""
    parent_changed = False
    if "parent_id" in data:
        new_parent_id = str(data["parent_id"]) if data["parent_id"] else None
        current_parent_id = str(item.parent_id) if item.parent_id else None
        if new_parent_id != current_parent_id:
            parent = NavigationItem.objects.get(pk=new_parent_id) if new_parent_id else None
            validate_parent(item, parent)
            item.parent = parent
            item.depth = parent.depth + 1 if parent else 0
            parent_changed = True

    for field in ITEM_FIELDS:
        if field in data:
            setattr(item, field, data[field])
    item.save()

    if parent_changed:
        update_descendant_depths(item)
    return item


@transaction.atomic
def bulk_update_items(items_data):
    """
    Apply a drag-and-drop save: each entry carries an ``id`` and any of
    order / parent_id / menu_id plus item fields.
    """
    updated = []
    for data in items_data:
        if not data.get("id"):
            raise ValidationError("Every item needs an id")
        item = NavigationItem.objects.get(pk=data["id"])
        if data.get("menu_id") and str(data["menu_id"]) != str(item.menu_id):
            item.menu = NavigationMenu.objects.get(pk=data["menu_id"])
        updated.append(update_item(item, data))

    # Parents may have been saved after their children; settle every depth once more
    for item in updated:
        item.refresh_from_db()
        if item.parent_id is None:
            if item.depth != 0:
                item.depth = 0
                item.save(update_fields=["depth", "updated_at"])
            update_descendant_depths(item)
    return updated


@transaction.atomic
def delete_item(item, delete_children=True):
    """
    Delete an item. With ``delete_children`` false, its children are
    promoted to the item's own parent instead of being removed.
    """
    if not delete_children:
        for child in list(item.children.all()):
            child.parent_id = item.parent_id
            child.depth = item.depth
            child.save(update_fields=["parent", "depth", "updated_at"])
            update_descendant_depths(child)
    item.delete()
    logger.info(f"[NAV-ITEM-DELETED] '{item.label}' (children {'deleted' if delete_children else 'promoted'})")


def menu_items(menu, only_published=False):
    queryset = menu.items.order_by("depth", "order")
    if only_published:
        queryset = queryset.filter(published=True)
    return queryset

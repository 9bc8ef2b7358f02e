"""
Navigation menus and items JSON API.
"""

import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .models import NavigationItem, NavigationMenu
from .permissions import feature_required, user_has_feature
from .serializers import NavigationItemSerializer, NavigationMenuSerializer
from .utils import navigation_utils
from .utils.request_utils import (
    handle_api_errors,
    json_error,
    parse_json_body,
    query_bool,
)

logger = logging.getLogger(__name__)


def _menu_payload(menu, only_published=False):
    data = NavigationMenuSerializer(menu).data
    items = list(navigation_utils.menu_items(menu, only_published=only_published))
    data["items"] = NavigationItemSerializer(items, many=True).data
    data["nested_items"] = navigation_utils.build_nested_items(
        items, include_unpublished=not only_published
    )
    return data


# =============================================================================
# MENUS
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST"])
@handle_api_errors
def menus_view(request):
    if request.method == "POST":
        return _create_menu(request)

    can_edit = user_has_feature(request.user, "navigation")
    only_published = query_bool(request, "only_published") or not can_edit
    menus = NavigationMenu.objects.order_by("name")
    if only_published:
        menus = menus.filter(published=True)

    if query_bool(request, "include_items"):
        data = [_menu_payload(menu, only_published=only_published) for menu in menus]
    else:
        data = NavigationMenuSerializer(menus, many=True).data
    return JsonResponse(data, safe=False)


@feature_required("navigation")
def _create_menu(request):
    body = parse_json_body(request)
    if not body.get("name") or not body.get("slug"):
        return json_error("Name and slug are required", 400)
    if NavigationMenu.objects.filter(slug=body["slug"]).exists():
        return json_error("A menu with this slug already exists", 400)

    serializer = NavigationMenuSerializer(data=body)
    if not serializer.is_valid():
        return json_error("Validation failed", 400, details=serializer.errors)
    menu = serializer.save()
    logger.info(f"[NAV-MENU-CREATED] {menu.slug} by {request.user.username}")
    return JsonResponse(_menu_payload(menu), status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@handle_api_errors
def menu_detail_view(request, slug):
    if request.method == "GET":
        can_edit = user_has_feature(request.user, "navigation")
        menu = NavigationMenu.objects.get(slug=slug)
        if not menu.published and not can_edit:
            return json_error("Menu not found", 404)
        only_published = query_bool(request, "only_published") or not can_edit
        return JsonResponse(_menu_payload(menu, only_published=only_published))
    if request.method == "DELETE":
        return _delete_menu(request, slug)
    return _update_menu(request, slug)


@feature_required("navigation")
def _update_menu(request, slug):
    menu = NavigationMenu.objects.get(slug=slug)
    body = parse_json_body(request)

    new_slug = body.get("slug")
    if new_slug and new_slug != menu.slug:
        if NavigationMenu.objects.filter(slug=new_slug).exclude(pk=menu.pk).exists():
            return json_error("A menu with this slug already exists", 400)

    serializer = NavigationMenuSerializer(menu, data=body, partial=True)
    if not serializer.is_valid():
        return json_error("Validation failed", 400, details=serializer.errors)
    menu = serializer.save()
    return JsonResponse(_menu_payload(menu))


@feature_required("navigation")
def _delete_menu(request, slug):
    menu = NavigationMenu.objects.get(slug=slug)
    menu.delete()
    logger.info(f"[NAV-MENU-DELETED] {slug} by {request.user.username}")
    return JsonResponse({"success": True})


# =============================================================================
# ITEMS
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST", "PUT"])
@handle_api_errors
def items_view(request):
    if request.method == "POST":
        return _create_item(request)
    if request.method == "PUT":
        return _bulk_update_items(request)

    menu = navigation_utils.resolve_menu(
        request.GET.get("menu_id"), request.GET.get("menu_slug")
    )
    can_edit = user_has_feature(request.user, "navigation")
    if not menu.published and not can_edit:
        return json_error("Menu not found", 404)

    only_published = query_bool(request, "only_published") or not can_edit
    items = list(navigation_utils.menu_items(menu, only_published=only_published))
    if query_bool(request, "nested"):
        return JsonResponse(
            navigation_utils.build_nested_items(items, include_unpublished=not only_published),
            safe=False,
        )
    return JsonResponse(NavigationItemSerializer(items, many=True).data, safe=False)


@feature_required("navigation")
def _create_item(request):
    body = parse_json_body(request)
    item = navigation_utils.create_item(body)
    return JsonResponse(NavigationItemSerializer(item).data, status=201)


@feature_required("navigation")
def _bulk_update_items(request):
    body = parse_json_body(request)
    items_data = body.get("items")
    if not isinstance(items_data, list):
        return json_error("items must be a list", 400)
    items = navigation_utils.bulk_update_items(items_data)
    logger.info(f"[NAV-ITEMS-BULK] {len(items)} items updated by {request.user.username}")
    return JsonResponse(
        {"success": True, "items": NavigationItemSerializer(items, many=True).data}
    )


@csrf_exempt
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@feature_required("navigation")
@handle_api_errors
def item_detail_view(request, item_id):
    item = NavigationItem.objects.get(pk=item_id)

    if request.method == "GET":
        return JsonResponse(NavigationItemSerializer(item).data)

    if request.method == "DELETE":
        delete_children = query_bool(request, "delete_children", default=True)
        navigation_utils.delete_item(item, delete_children=delete_children)
        return JsonResponse({"success": True})

    body = parse_json_body(request)
    if "label" in body and not body["label"]:
        return json_error("Label cannot be empty", 400)
    item = navigation_utils.update_item(item, body)
    return JsonResponse(NavigationItemSerializer(item).data)

"""
Page builder JSON API: pages, blocks and revisions.
"""

import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .blocks import BLOCK_CATEGORIES, get_definitions_by_category
from .models import PageRevision
from .permissions import feature_required, user_has_feature
from .serializers import (
    BlockWriteSerializer,
    PageBlockSerializer,
    PageRevisionSerializer,
    PageSerializer,
)
from .utils import page_utils
from .utils.request_utils import (
    handle_api_errors,
    json_error,
    parse_json_body,
    query_bool,
    query_int,
)
from .utils.validators import validate_block_ids

logger = logging.getLogger(__name__)


def _page_payload(page, include_blocks=True, visible_only=False):
    return PageSerializer(
        page,
        context={"include_blocks": include_blocks, "visible_blocks_only": visible_only},
    ).data


def _validation_failed(serializer):
    return json_error("Validation failed", 400, details=serializer.errors)


# =============================================================================
# PAGES
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST"])
@handle_api_errors
def pages_view(request):
    if request.method == "POST":
        return _create_page(request)

    can_edit = user_has_feature(request.user, "pages")
    published = request.GET.get("published")
    include_deleted = query_bool(request, "include_deleted")
    only_deleted = query_bool(request, "only_deleted")

    if published is not None:
        published = published.lower() in ("1", "true", "yes")
    if not can_edit:
        # Visitors only ever see live pages
        published, include_deleted, only_deleted = True, False, False

    pages = page_utils.list_pages(
        published=published,
        include_deleted=include_deleted,
        only_deleted=only_deleted,
    )
    include_blocks = query_bool(request, "include_blocks")
    data = PageSerializer(
        pages.prefetch_related("blocks") if include_blocks else pages,
        many=True,
        context={"include_blocks": include_blocks, "visible_blocks_only": True},
    ).data
    return JsonResponse(data, safe=False)


@feature_required("pages")
def _create_page(request):
    body = parse_json_body(request)
    if not body.get("title") or not body.get("slug"):
        return json_error("Title and slug are required", 400)

    serializer = PageSerializer(data=body, partial=True)
    if not serializer.is_valid():
        return _validation_failed(serializer)

    data = dict(serializer.validated_data)
    data["blocks"] = body.get("blocks") or []
    page = page_utils.create_page(data)
    logger.info(f"Page /{page.slug} created by {request.user.username}")
    return JsonResponse(_page_payload(page), status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@handle_api_errors
def page_detail_view(request, slug):
    if request.method == "GET":
        can_edit = user_has_feature(request.user, "pages")
        include_deleted = can_edit and query_bool(request, "include_deleted")
        page = page_utils.find_page(slug, include_deleted=include_deleted)
        if not page.published and not can_edit:
            return json_error("Page not found", 404)
        return JsonResponse(_page_payload(page, visible_only=not can_edit))
    if request.method == "PUT":
        return _update_page(request, slug)
    if request.method == "PATCH":
        return _patch_page(request, slug)
    return _delete_page(request, slug)


@feature_required("pages")
def _update_page(request, slug):
    page = page_utils.find_page(slug)
    body = parse_json_body(request)

    field_data = {key: value for key, value in body.items() if key != "slug"}
    serializer = PageSerializer(page, data=field_data, partial=True)
    if not serializer.is_valid():
        return _validation_failed(serializer)

    data = dict(serializer.validated_data)
    for key in ("blocks", "create_revision", "change_note"):
        if key in body:
            data[key] = body[key]
    # Renames are sent either as new_slug or as a slug different from the URL one
    new_slug = body.get("new_slug", body.get("slug"))
    if new_slug is not None:
        data["new_slug"] = new_slug

    page = page_utils.update_page(page, data, user=request.user)
    return JsonResponse(_page_payload(page))


@feature_required("pages")
def _patch_page(request, slug):
    body = parse_json_body(request)
    page = page_utils.find_page(slug, include_deleted=bool(body.get("restore")))
    page = page_utils.patch_page(page, body)
    return JsonResponse(_page_payload(page, include_blocks=False))


@feature_required("pages")
def _delete_page(request, slug):
    permanent = query_bool(request, "permanent")
    page = page_utils.find_page(slug, include_deleted=permanent)
    page_utils.delete_page(page, permanent=permanent)
    logger.info(
        f"Page /{page.slug} {'permanently deleted' if permanent else 'moved to trash'} by {request.user.username}"
    )
    return JsonResponse({"success": True, "permanent": permanent})


@require_http_methods(["GET"])
@feature_required("navigation")
@handle_api_errors
def navigation_pages_view(request):
    """Pages that navigation items can link to"""
    pages = [
        {**page, "id": str(page["id"])}
        for page in page_utils.navigation_pages()
    ]
    return JsonResponse(pages, safe=False)


# =============================================================================
# BLOCKS
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST", "PUT"])
@feature_required("pages")
@handle_api_errors
def page_blocks_view(request, slug):
    page = page_utils.find_page(slug)

    if request.method == "GET":
        blocks = page.blocks.order_by("order")
        return JsonResponse(PageBlockSerializer(blocks, many=True).data, safe=False)

    body = parse_json_body(request)

    if request.method == "PUT":
        block_ids = body.get("block_ids")
        validate_block_ids(block_ids)
        blocks = page_utils.reorder_blocks(page, block_ids)
        return JsonResponse(PageBlockSerializer(blocks, many=True).data, safe=False)

    if not body.get("type"):
        return json_error("Block type is required", 400)
    serializer = BlockWriteSerializer(data=body)
    if not serializer.is_valid():
        return _validation_failed(serializer)

    data = dict(serializer.validated_data)
    block = page_utils.add_block(page, data)
    return JsonResponse(PageBlockSerializer(block).data, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "PATCH", "DELETE", "POST"])
@feature_required("pages")
@handle_api_errors
def block_detail_view(request, slug, block_id):
    page = page_utils.find_page(slug)
    block = page.blocks.get(pk=block_id)

    if request.method == "GET":
        return JsonResponse(PageBlockSerializer(block).data)

    if request.method == "DELETE":
        page_utils.delete_block(block)
        return JsonResponse({"success": True})

    if request.method == "POST":
        duplicate = page_utils.duplicate_block(block)
        return JsonResponse(PageBlockSerializer(duplicate).data, status=201)

    body = parse_json_body(request)

    if request.method == "PATCH":
        if "order" in body:
            page_utils.move_block(block, body["order"])
        if "visible" in body:
            block.visible = bool(body["visible"])
            block.save(update_fields=["visible", "updated_at"])
        block.refresh_from_db()
        return JsonResponse(PageBlockSerializer(block).data)

    serializer = BlockWriteSerializer(data=body, partial=True)
    if not serializer.is_valid():
        return _validation_failed(serializer)

    for field in ("type", "content", "settings", "styles", "visible"):
        if field in serializer.validated_data:
            setattr(block, field, serializer.validated_data[field])
    block.save()
    return JsonResponse(PageBlockSerializer(block).data)


# =============================================================================
# REVISIONS
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST"])
@feature_required("pages")
@handle_api_errors
def page_revisions_view(request, slug):
    page = page_utils.find_page(slug)

    if request.method == "POST":
        body = parse_json_body(request)
        revision = page_utils.create_revision(
            page,
            user=request.user,
            change_note=body.get("change_note") or "Manual snapshot",
        )
        return JsonResponse(PageRevisionSerializer(revision).data, status=201)

    limit = query_int(request, "limit", 50, minimum=1, maximum=200)
    offset = query_int(request, "offset", 0, minimum=0)
    revisions = page.revisions.order_by("-version")
    total = revisions.count()
    data = PageRevisionSerializer(
        revisions[offset : offset + limit],
        many=True,
        context={"include_snapshot": False},
    ).data
    return JsonResponse({"revisions": data, "total": total, "limit": limit, "offset": offset})


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@feature_required("pages")
@handle_api_errors
def revision_detail_view(request, slug, revision_id):
    page = page_utils.find_page(slug)
    revision = page.revisions.get(pk=revision_id)

    if request.method == "DELETE":
        version = revision.version
        revision.delete()
        logger.info(f"Revision v{version} of /{page.slug} deleted by {request.user.username}")
        return JsonResponse({"success": True})

    return JsonResponse(PageRevisionSerializer(revision).data)


@csrf_exempt
@require_http_methods(["POST"])
@feature_required("pages")
@handle_api_errors
def revision_restore_view(request, slug, revision_id):
    page = page_utils.find_page(slug)
    try:
        revision = page.revisions.get(pk=revision_id)
    except PageRevision.DoesNotExist:
        return json_error("Revision not found", 404)

    page = page_utils.restore_revision(page, revision, user=request.user)
    return JsonResponse(
        {
            "success": True,
            "page": _page_payload(page),
            "restored_from_version": revision.version,
        }
    )


@require_http_methods(["GET"])
@feature_required("pages")
def block_definitions_view(request):
    """Block types available in the editor, grouped by category"""
    return JsonResponse(
        {
            "categories": BLOCK_CATEGORIES,
            "definitions": get_definitions_by_category(),
        }
    )

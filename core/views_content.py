"""
Media library, homepage grid, site settings and store endpoints.
"""

import logging
import math

from django.db import transaction
from django.db.models import Max, Q
from django.http import JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .models import GridTile, Media, SiteSetting
from .permissions import (
    ROLE_ADMIN,
    admin_role_required,
    feature_required,
    get_user_role,
    user_has_feature,
)
from .serializers import GridTileSerializer, MediaSerializer, SiteSettingSerializer
from .utils import settings_utils
from .utils.media_storage import MediaStorageManager
from .utils.request_utils import (
    handle_api_errors,
    json_error,
    parse_json_body,
    query_bool,
    query_int,
)
from .utils.store_utils import get_store, list_stores

logger = logging.getLogger(__name__)

MEDIA_SORT_FIELDS = ("uploaded_at", "filename", "size", "mime_type")


# =============================================================================
# MEDIA LIBRARY
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST"])
@feature_required("media")
@handle_api_errors
def media_view(request):
    if request.method == "POST":
        return _upload_media(request)

    page = query_int(request, "page", 1, minimum=1)
    limit = query_int(request, "limit", 24, minimum=1, maximum=100)
    search = request.GET.get("search", "").strip()
    sort_by = request.GET.get("sort_by", "uploaded_at")
    if sort_by not in MEDIA_SORT_FIELDS:
        sort_by = "uploaded_at"
    sort_order = "" if request.GET.get("sort_order") == "asc" else "-"

    queryset = Media.objects.all()
    if search:
        queryset = queryset.filter(
            Q(filename__icontains=search)
            | Q(alt_text__icontains=search)
            | Q(caption__icontains=search)
        )
    queryset = MediaStorageManager.filter_by_kind(queryset, request.GET.get("type"))

    total = queryset.count()
    offset = (page - 1) * limit
    media = queryset.order_by(f"{sort_order}{sort_by}")[offset : offset + limit]

    return JsonResponse(
        {
            "media": MediaSerializer(media, many=True).data,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }
    )


def _upload_media(request):
    files = request.FILES.getlist("files") or request.FILES.getlist("file")
    if not files:
        return json_error("No file provided", 400)

    # Validate everything before storing anything
    for uploaded in files:
        MediaStorageManager.validate_file(uploaded)

    stored = [MediaStorageManager.store_file(uploaded) for uploaded in files]
    logger.info(f"[MEDIA-UPLOAD] {len(stored)} file(s) uploaded by {request.user.username}")
    return JsonResponse(
        {"success": True, "media": MediaSerializer(stored, many=True).data},
        status=201,
    )


@csrf_exempt
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@feature_required("media")
@handle_api_errors
def media_detail_view(request, media_id):
    media = Media.objects.get(pk=media_id)

    if request.method == "GET":
        return JsonResponse(MediaSerializer(media).data)

    if request.method == "DELETE":
        MediaStorageManager.delete_file(media)
        media.delete()
        logger.info(f"[MEDIA-DELETED] {media.filename} by {request.user.username}")
        return JsonResponse({"success": True})

    body = parse_json_body(request)
    serializer = MediaSerializer(
        media,
        data={key: body[key] for key in ("alt_text", "caption") if key in body},
        partial=True,
    )
    if not serializer.is_valid():
        return json_error("Validation failed", 400, details=serializer.errors)
    return JsonResponse(MediaSerializer(serializer.save()).data)


# =============================================================================
# HOMEPAGE GRID
# =============================================================================


@csrf_exempt
@require_http_methods(["GET", "POST", "PUT"])
@handle_api_errors
def grid_view(request):
    if request.method == "POST":
        return _create_tile(request)
    if request.method == "PUT":
        return _replace_tiles(request)

    tiles = GridTile.objects.order_by("order")
    if not user_has_feature(request.user, "grid") or query_bool(request, "only_published"):
        tiles = tiles.filter(published=True)
    return JsonResponse(GridTileSerializer(tiles, many=True).data, safe=False)


@feature_required("grid")
def _create_tile(request):
    body = parse_json_body(request)
    serializer = GridTileSerializer(data=body)
    if not serializer.is_valid():
        return json_error("Validation failed", 400, details=serializer.errors)

    current_max = GridTile.objects.aggregate(max_order=Max("order"))["max_order"] or 0
    tile = serializer.save(order=current_max + 1)
    return JsonResponse(GridTileSerializer(tile).data, status=201)


@feature_required("grid")
def _replace_tiles(request):
    body = parse_json_body(request)
    tiles_data = body.get("tiles")
    if not isinstance(tiles_data, list):
        return json_error("tiles must be a list", 400)

    serializers_list = [GridTileSerializer(data=tile) for tile in tiles_data]
    errors = {
        index: serializer.errors
        for index, serializer in enumerate(serializers_list)
        if not serializer.is_valid()
    }
    if errors:
        return json_error("Validation failed", 400, details=errors)

    with transaction.atomic():
        GridTile.objects.all().delete()
        tiles = [
            serializer.save(order=index + 1)
            for index, serializer in enumerate(serializers_list)
        ]

    logger.info(f"[GRID-SAVED] {len(tiles)} tiles by {request.user.username}")
    return JsonResponse(GridTileSerializer(tiles, many=True).data, safe=False)


# =============================================================================
# SITE SETTINGS
# =============================================================================


@never_cache
@csrf_exempt
@require_http_methods(["GET", "PUT"])
@handle_api_errors
def settings_view(request):
    """
    GET returns public settings to everyone, and every setting to admins
    asking for ``?all=true``. PUT upserts a {key: value} map (admins only).
    """
    if request.method == "PUT":
        return _save_settings(request)

    is_admin = get_user_role(request.user) == ROLE_ADMIN
    public_only = not (is_admin and query_bool(request, "all"))
    return JsonResponse(settings_utils.get_settings_dict(public_only=public_only))


@admin_role_required
def _save_settings(request):
    body = parse_json_body(request)
    values = body.get("settings", body)
    if not isinstance(values, dict) or not values:
        return json_error("A settings object is required", 400)

    saved = settings_utils.upsert_settings(values)
    logger.info(f"[SETTINGS-SAVED] {len(saved)} keys by {request.user.username}")
    return JsonResponse({"success": True, "updated": [setting.key for setting in saved]})


@never_cache
@csrf_exempt
@require_http_methods(["GET", "PUT"])
@handle_api_errors
def setting_detail_view(request, key):
    if request.method == "PUT":
        return _save_setting(request, key)

    if not settings_utils.is_public_key(key) and get_user_role(request.user) != ROLE_ADMIN:
        return json_error("Setting not found", 404)
    setting = SiteSetting.objects.get(key=key)
    return JsonResponse(SiteSettingSerializer(setting).data)


@admin_role_required
def _save_setting(request, key):
    body = parse_json_body(request)
    if "value" not in body:
        return json_error("value is required", 400)
    setting = settings_utils.upsert_setting(key, body["value"])
    return JsonResponse(SiteSettingSerializer(setting).data)


# =============================================================================
# STORES
# =============================================================================


@require_http_methods(["GET"])
@handle_api_errors
def stores_view(request):
    return JsonResponse(list_stores(), safe=False)


@require_http_methods(["GET"])
@handle_api_errors
def store_detail_view(request, slug):
    return JsonResponse({"store": get_store(slug)})

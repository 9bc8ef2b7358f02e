import json
import logging
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.http import JsonResponse

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")


def parse_json_body(request):
    """Decode a JSON request body into a dict (empty body gives {})."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def query_bool(request, name, default=False):
    value = request.GET.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def query_int(request, name, default, minimum=None, maximum=None):
    try:
        value = int(request.GET.get(name, default))
    except (TypeError, ValueError):
        value = default
    if minimum is not None:
        value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def validation_message(error):
    """Flatten a ValidationError into a single readable string."""
    if hasattr(error, "message_dict"):
        return "; ".join(
            f"{field}: {' '.join(str(m) for m in messages)}"
            for field, messages in error.message_dict.items()
        )
    return " ".join(str(message) for message in error.messages)


def json_error(message, status, **extra):
    return JsonResponse({"success": False, "error": message, **extra}, status=status)


def handle_api_errors(view_func):
    """
    Map domain exceptions raised by a JSON view to error responses:
    missing rows -> 404, ValidationError -> 400, PermissionDenied -> 403,
    anything else is logged and answered with 500.
    """

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except ObjectDoesNotExist as e:
            return json_error(str(e) or "Not found", 404)
        except ValidationError as e:
            return json_error(validation_message(e), 400)
        except PermissionDenied as e:
            return json_error(str(e) or "Permission denied", 403)
        except Exception as e:
            logger.error(f"[API-ERROR] {request.method} {request.path}: {str(e)}", exc_info=True)
            return json_error("Internal server error", 500)

    return wrapper

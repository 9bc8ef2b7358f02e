import re

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

PAGE_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:[-_][a-z0-9]+)*(?:/[a-z0-9]+(?:[-_][a-z0-9]+)*)*$")
COLOR_PATTERN = re.compile(
    r"^(#[0-9a-fA-F]{3,8}|rgba?\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*(,\s*(0|1|0?\.\d+)\s*)?\)|transparent)$"
)


def validate_page_slug(value):
    """Validate a normalized page slug ("" is the homepage, "/" separates levels)."""
    if value == "":
        return
    if not PAGE_SLUG_PATTERN.match(value):
        raise ValidationError(
            _("Slug can only contain lowercase letters, numbers, hyphens and '/' separators.")
        )


def validate_color(value):
    """Validate CSS colours used by pages, menus and grid tiles."""
    if value in (None, ""):
        return
    if not COLOR_PATTERN.match(value.strip()):
        raise ValidationError(_("Enter a valid color (e.g., #dc2626 or rgba(0,0,0,0.5))"))


def validate_block_ids(block_ids):
    if not isinstance(block_ids, list) or not all(isinstance(item, str) for item in block_ids):
        raise ValidationError(_("block_ids must be a list of block identifiers"))

"""
Store listing built from the store pages (children of 'magasins').

Store details live inside page blocks. The STORE_LAYOUT block is the
current format; older pages carry the same data in STORE_HERO,
STORE_CONTACT, STORE_REVIEWS or CARDS blocks.
"""

import re

from django.conf import settings
from django.db.models import Prefetch

from core.models import Page, PageBlock

STORES_PARENT_SLUG = "magasins"

RATING_PATTERN = re.compile(r"(\d+\.?\d*)/5.*\((\d+)")
PLACE_ID_PATTERN = re.compile(r"placeId=(\d+)")
CITY_PATTERN = re.compile(r"\d{5}\s+(.+)")


def _first_block(blocks, block_type):
    for block in blocks:
        if block.type == block_type and isinstance(block.content, dict):
            return block.content
    return None


def extract_store(page):
    blocks = list(page.blocks.all())
    address, phone, rating, reviews = "", "", 0, 0

    layout = _first_block(blocks, "STORE_LAYOUT")
    if layout:
        contact = layout.get("contact") or {}
        address = (contact.get("address") or "").replace("\n", ", ")
        phone = contact.get("phone") or ""
        review_data = layout.get("reviews") or {}
        rating = review_data.get("rating") or 0
        reviews = review_data.get("reviewCount") or 0

    if not address:
        hero = _first_block(blocks, "STORE_HERO")
        if hero and hero.get("subtitle"):
            address = hero["subtitle"].replace(" – ", ", ")

    if not phone or not address:
        contact = _first_block(blocks, "STORE_CONTACT")
        if contact:
            phone = phone or contact.get("phone") or ""
            if not address and contact.get("address"):
                address = contact["address"].replace("\n", ", ")

    if not rating:
        review_block = _first_block(blocks, "STORE_REVIEWS")
        if review_block:
            rating = review_block.get("rating") or 0
            reviews = review_block.get("reviewCount") or 0

    if not address or not phone:
        cards = (_first_block(blocks, "CARDS") or {}).get("cards") or []
        for card in cards:
            title = card.get("title")
            description = card.get("description") or ""
            if title == "Adresse" and not address:
                address = description.replace("\n", ", ")
            elif title == "Téléphone" and not phone:
                phone = description.split("\n")[0]
            elif title == "Note clients" and not rating:
                match = RATING_PATTERN.search(description)
                if match:
                    rating = float(match.group(1))
                    reviews = int(match.group(2))

    store_id = page.slug.replace(f"{STORES_PARENT_SLUG}/", "", 1)
    return {
        "id": store_id,
        "name": page.title,
        "address": address,
        "phone": phone,
        "rating": rating,
        "reviews": reviews,
        "image": f"{settings.MEDIA_URL}uploads/stores/{store_id}.jpg",
    }


def _visible_blocks():
    return Prefetch("blocks", queryset=PageBlock.objects.filter(visible=True).order_by("order"))


def list_stores():
    pages = (
        Page.objects.filter(parent_slug=STORES_PARENT_SLUG, published=True, deleted_at__isnull=True)
        .prefetch_related(_visible_blocks())
        .order_by("title")
    )
    return [extract_store(page) for page in pages]


def find_store_page(slug):
    """
    Published store page for ``slug``, looked up under 'magasins/' first.

    Raises:
        Page.DoesNotExist: when no published store page matches
    """
    slug = slug.strip("/")
    pages = Page.objects.filter(published=True, deleted_at__isnull=True).prefetch_related(_visible_blocks())
    for candidate in (f"{STORES_PARENT_SLUG}/{slug}", slug):
        page = pages.filter(slug__in=[candidate, f"/{candidate}"]).first()
        if page is not None:
            return page
    raise Page.DoesNotExist("Store not found")


def extract_store_detail(page, store_id):
    """Full store sheet: contact, opening hours, services, specialties and reviews."""
    blocks = list(page.blocks.all())
    address = phone = phone2 = email = description = ""
    rating, reviews = 0, 0
    minute_pass_id = None
    hours, services, specialties = {}, [], []

    layout = _first_block(blocks, "STORE_LAYOUT")
    if layout:
        contact = layout.get("contact") or {}
        address = contact.get("address") or ""
        phone = contact.get("phone") or ""
        phone2 = contact.get("phone2") or ""
        email = contact.get("email") or ""
        hours.update(contact.get("hours") or {})

        services.extend((layout.get("services") or {}).get("items") or [])
        for item in (layout.get("specialties") or {}).get("items") or []:
            if isinstance(item, dict) and item.get("title"):
                specialties.append(item["title"])

        match = PLACE_ID_PATTERN.search((layout.get("cta") or {}).get("rdvUrl") or "")
        if match:
            minute_pass_id = match.group(1)

        review_data = layout.get("reviews") or {}
        rating = review_data.get("rating") or 0
        reviews = review_data.get("reviewCount") or 0

    hero = _first_block(blocks, "STORE_HERO")
    if hero:
        description = hero.get("description") or ""
        if not address and hero.get("subtitle"):
            address = hero["subtitle"].replace(" – ", "\n")

    # Older store pages
    contact = _first_block(blocks, "STORE_CONTACT")
    if contact and not address:
        address = contact.get("address") or ""
        phone = phone or contact.get("phone") or ""
        phone2 = phone2 or contact.get("phone2") or ""
        email = email or contact.get("email") or ""
        hours.update(contact.get("hours") or {})

    service_block = _first_block(blocks, "STORE_SERVICES")
    if service_block and not services:
        services.extend(service_block.get("services") or [])

    review_block = _first_block(blocks, "STORE_REVIEWS")
    if review_block and not rating:
        rating = review_block.get("rating") or 0
        reviews = review_block.get("reviewCount") or 0

    city = ""
    address_lines = address.split("\n")
    if len(address_lines) > 1:
        match = CITY_PATTERN.search(address_lines[-1].strip())
        if match:
            city = match.group(1)

    return {
        "id": store_id,
        "name": page.title,
        "address": address,
        "phone": phone,
        "phone2": phone2,
        "email": email,
        "rating": rating,
        "reviews": reviews,
        "minute_pass_id": minute_pass_id,
        "city": city,
        "description": description or page.meta_description or "",
        "featured_image": f"{settings.MEDIA_URL}uploads/stores/{store_id}.jpg",
        "hours": hours,
        "services": services,
        "specialties": specialties,
    }


def get_store(slug):
    slug = slug.strip("/")
    return extract_store_detail(find_store_page(slug), slug)

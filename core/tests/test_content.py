"""
Tests for the homepage grid, site settings and store listing
"""

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse

from core.models import GridTile, Page, PageBlock, SiteSetting
from core.utils import settings_utils
from core.utils.store_utils import extract_store, extract_store_detail, find_store_page, list_stores


def make_tile(title, order, published=True):
    return GridTile.objects.create(
        title=title, href=f"/{title.lower()}", background_url=f"/media/{title.lower()}.jpg",
        order=order, published=published,
    )


class ContentAPITestCase(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser("admin", "admin@test.com", "password")
        self.webmaster = User.objects.create_user("webmaster", "webmaster@test.com", "password")


# =============================================================================
# GRID
# =============================================================================


class GridAPITest(ContentAPITestCase):
    def setUp(self):
        super().setUp()
        make_tile("Lunettes", 1)
        make_tile("Lentilles", 2, published=False)

    def test_public_grid_only_lists_published_tiles(self):
        response = self.client.get(reverse("core:grid"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual([tile["title"] for tile in response.json()], ["Lunettes"])

    def test_editor_sees_every_tile(self):
        self.client.login(username="webmaster", password="password")

        response = self.client.get(reverse("core:grid"))

        self.assertEqual(len(response.json()), 2)

    def test_create_tile_is_appended(self):
        self.client.login(username="webmaster", password="password")

        response = self.client.post(
            reverse("core:grid"),
            {"title": "Solaires", "href": "/solaires", "background_url": "/media/s.jpg"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["order"], 3)

    def test_create_tile_validates_opacity(self):
        self.client.login(username="admin", password="password")

        response = self.client.post(
            reverse("core:grid"),
            {"title": "X", "href": "/x", "background_url": "/x.jpg", "overlay_opacity": 150},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)

    def test_replace_tiles(self):
        self.client.login(username="admin", password="password")

        response = self.client.put(
            reverse("core:grid"),
            {
                "tiles": [
                    {"title": "B", "href": "/b", "background_url": "/b.jpg"},
                    {"title": "A", "href": "/a", "background_url": "/a.jpg", "col_span": 4},
                ]
            },
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            list(GridTile.objects.order_by("order").values_list("title", "order")), [("B", 1), ("A", 2)]
        )

    def test_replace_tiles_is_all_or_nothing(self):
        self.client.login(username="admin", password="password")

        response = self.client.put(
            reverse("core:grid"),
            {"tiles": [{"title": "B", "href": "/b", "background_url": "/b.jpg"}, {"title": "No href"}]},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(GridTile.objects.count(), 2)

    def test_grid_editing_requires_feature(self):
        self.webmaster.profile.permissions = {"grid": False}
        self.webmaster.profile.save()
        self.client.login(username="webmaster", password="password")

        response = self.client.put(reverse("core:grid"), {"tiles": []}, content_type="application/json")

        self.assertEqual(response.status_code, 403)


# =============================================================================
# SETTINGS
# =============================================================================


class SettingsTest(ContentAPITestCase):
    def setUp(self):
        super().setUp()
        SiteSetting.objects.create(key="site_name", value="Optique de Bourbon")
        SiteSetting.objects.create(key="footer_text", value="Depuis 1985")
        SiteSetting.objects.create(key="smtp_password", value="secret")

    def test_public_settings(self):
        self.assertTrue(settings_utils.is_public_key("social_facebook"))
        self.assertFalse(settings_utils.is_public_key("smtp_password"))

        values = settings_utils.get_settings_dict()

        self.assertEqual(values, {"site_name": "Optique de Bourbon", "footer_text": "Depuis 1985"})

    def test_public_settings_cache_is_invalidated_on_save(self):
        settings_utils.get_settings_dict()

        settings_utils.upsert_setting("site_name", "ODB")

        self.assertEqual(settings_utils.get_settings_dict()["site_name"], "ODB")

    def test_anonymous_get_returns_public_settings(self):
        response = self.client.get(reverse("core:settings"), {"all": "true"})

        self.assertEqual(response.status_code, 200)
        self.assertNotIn("smtp_password", response.json())

    def test_admin_can_read_every_setting(self):
        self.client.login(username="admin", password="password")

        response = self.client.get(reverse("core:settings"), {"all": "true"})

        self.assertEqual(response.json()["smtp_password"], "secret")

    def test_private_setting_detail_is_hidden(self):
        response = self.client.get(reverse("core:setting_detail", kwargs={"key": "smtp_password"}))
        public = self.client.get(reverse("core:setting_detail", kwargs={"key": "footer_text"}))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(public.json()["value"], "Depuis 1985")

    def test_save_settings_requires_admin(self):
        self.client.login(username="webmaster", password="password")

        response = self.client.put(
            reverse("core:settings"), {"site_name": "Hacked"}, content_type="application/json"
        )

        self.assertEqual(response.status_code, 403)

    def test_save_settings(self):
        self.client.login(username="admin", password="password")

        response = self.client.put(
            reverse("core:settings"),
            {"settings": {"site_name": "ODB", "navbar_logo_height": 48}},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(SiteSetting.objects.get(key="navbar_logo_height").value, 48)
        self.assertEqual(self.client.get(reverse("core:settings")).json()["site_name"], "ODB")

    def test_save_single_setting(self):
        self.client.login(username="admin", password="password")

        missing = self.client.put(
            reverse("core:setting_detail", kwargs={"key": "intro_enabled"}), {}, content_type="application/json"
        )
        response = self.client.put(
            reverse("core:setting_detail", kwargs={"key": "intro_enabled"}),
            {"value": False},
            content_type="application/json",
        )

        self.assertEqual(missing.status_code, 400)
        self.assertEqual(response.status_code, 200)
        self.assertIs(SiteSetting.objects.get(key="intro_enabled").value, False)


# =============================================================================
# STORES
# =============================================================================


class StoreListingTest(TestCase):
    def make_store(self, slug, title, blocks, published=True):
        page = Page.objects.create(slug=slug, title=title, parent_slug="magasins", published=published)
        for index, (block_type, content) in enumerate(blocks):
            PageBlock.objects.create(page=page, type=block_type, order=index, content=content)
        return page

    def test_store_layout_block(self):
        page = self.make_store(
            "magasins/saint-denis",
            "Saint-Denis",
            [
                (
                    "STORE_LAYOUT",
                    {
                        "contact": {"address": "12 rue de Paris\n97400 Saint-Denis", "phone": "0262 00 00 00"},
                        "reviews": {"rating": 4.8, "reviewCount": 120},
                    },
                )
            ],
        )

        store = extract_store(page)

        self.assertEqual(store["id"], "saint-denis")
        self.assertEqual(store["address"], "12 rue de Paris, 97400 Saint-Denis")
        self.assertEqual(store["phone"], "0262 00 00 00")
        self.assertEqual((store["rating"], store["reviews"]), (4.8, 120))
        self.assertEqual(store["image"], "/media/uploads/stores/saint-denis.jpg")

    def test_legacy_blocks(self):
        page = self.make_store(
            "magasins/saint-pierre",
            "Saint-Pierre",
            [
                ("STORE_HERO", {"subtitle": "5 rue des Bons Enfants – Saint-Pierre"}),
                ("STORE_CONTACT", {"phone": "0262 11 11 11"}),
                ("STORE_REVIEWS", {"rating": 4.5, "reviewCount": 30}),
            ],
        )

        store = extract_store(page)

        self.assertEqual(store["address"], "5 rue des Bons Enfants, Saint-Pierre")
        self.assertEqual(store["phone"], "0262 11 11 11")
        self.assertEqual(store["rating"], 4.5)

    def test_cards_block(self):
        page = self.make_store(
            "magasins/le-port",
            "Le Port",
            [
                (
                    "CARDS",
                    {
                        "cards": [
                            {"title": "Adresse", "description": "1 avenue du Port\n97420 Le Port"},
                            {"title": "Téléphone", "description": "0262 22 22 22\nLun-Sam"},
                            {"title": "Note clients", "description": "4.9/5 étoiles (87 avis)"},
                        ]
                    },
                )
            ],
        )

        store = extract_store(page)

        self.assertEqual(store["address"], "1 avenue du Port, 97420 Le Port")
        self.assertEqual(store["phone"], "0262 22 22 22")
        self.assertEqual((store["rating"], store["reviews"]), (4.9, 87))

    def test_list_stores_only_includes_live_store_pages(self):
        self.make_store("magasins/b", "B", [])
        self.make_store("magasins/a", "A", [])
        self.make_store("magasins/draft", "Draft", [], published=False)
        Page.objects.create(slug="contact", title="Contact", published=True)

        self.assertEqual([store["name"] for store in list_stores()], ["A", "B"])

    def test_stores_endpoint_is_public(self):
        self.make_store("magasins/a", "A", [])

        response = self.client.get(reverse("core:stores"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["id"], "a")


class StoreDetailTest(TestCase):
    def setUp(self):
        self.page = Page.objects.create(
            slug="magasins/saint-denis", title="Saint-Denis", parent_slug="magasins",
            published=True, meta_description="Opticien au centre-ville",
        )
        PageBlock.objects.create(
            page=self.page,
            type="STORE_LAYOUT",
            order=0,
            content={
                "contact": {
                    "address": "12 rue de Paris\n97400 Saint-Denis",
                    "phone": "0262 00 00 00",
                    "phone2": "0692 00 00 00",
                    "email": "saint-denis@optiquedebourbon.re",
                    "hours": {"lundi": "9h-18h"},
                },
                "services": {"items": ["Examen de vue", "Lentilles"]},
                "specialties": {"items": [{"title": "Basse vision", "description": "..."}]},
                "cta": {"rdvUrl": "https://www.minutepass.fr/rdv?placeId=4821&source=site"},
                "reviews": {"rating": 4.8, "reviewCount": 120},
            },
        )

    def test_store_layout_details(self):
        store = extract_store_detail(self.page, "saint-denis")

        self.assertEqual(store["address"], "12 rue de Paris\n97400 Saint-Denis")
        self.assertEqual(store["city"], "Saint-Denis")
        self.assertEqual((store["phone"], store["phone2"]), ("0262 00 00 00", "0692 00 00 00"))
        self.assertEqual(store["email"], "saint-denis@optiquedebourbon.re")
        self.assertEqual(store["hours"], {"lundi": "9h-18h"})
        self.assertEqual(store["services"], ["Examen de vue", "Lentilles"])
        self.assertEqual(store["specialties"], ["Basse vision"])
        self.assertEqual(store["minute_pass_id"], "4821")
        self.assertEqual((store["rating"], store["reviews"]), (4.8, 120))
        self.assertEqual(store["description"], "Opticien au centre-ville")
        self.assertEqual(store["featured_image"], "/media/uploads/stores/saint-denis.jpg")

    def test_legacy_blocks(self):
        page = Page.objects.create(slug="saint-pierre", title="Saint-Pierre", published=True)
        PageBlock.objects.create(
            page=page, type="STORE_HERO", order=0,
            content={"description": "Face au marché", "subtitle": "5 rue des Bons Enfants – 97410 Saint-Pierre"},
        )
        PageBlock.objects.create(
            page=page, type="STORE_CONTACT", order=1,
            content={"phone": "0262 11 11 11", "hours": {"samedi": "9h-12h"}},
        )
        PageBlock.objects.create(page=page, type="STORE_SERVICES", order=2, content={"services": ["Réparation"]})
        PageBlock.objects.create(
            page=page, type="STORE_REVIEWS", order=3, content={"rating": 4.5, "reviewCount": 30}
        )

        store = extract_store_detail(page, "saint-pierre")

        self.assertEqual(store["address"], "5 rue des Bons Enfants\n97410 Saint-Pierre")
        self.assertEqual(store["city"], "Saint-Pierre")
        self.assertEqual(store["description"], "Face au marché")
        self.assertEqual(store["services"], ["Réparation"])
        self.assertEqual(store["rating"], 4.5)
        self.assertIsNone(store["minute_pass_id"])

    def test_lookup_prefers_store_pages(self):
        Page.objects.create(slug="saint-denis", title="Autre page", published=True)

        self.assertEqual(find_store_page("saint-denis"), self.page)

    def test_lookup_skips_drafts_and_trash(self):
        Page.objects.create(slug="magasins/brouillon", title="Brouillon", published=False)

        with self.assertRaises(Page.DoesNotExist):
            find_store_page("brouillon")

    def test_hidden_blocks_are_ignored(self):
        self.page.blocks.update(visible=False)

        store = extract_store_detail(find_store_page("saint-denis"), "saint-denis")

        self.assertEqual(store["address"], "")

    def test_store_detail_endpoint(self):
        response = self.client.get(reverse("core:store_detail", kwargs={"slug": "saint-denis"}))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["store"]["id"], "saint-denis")
        self.assertEqual(response.json()["store"]["name"], "Saint-Denis")

    def test_unknown_store(self):
        response = self.client.get(reverse("core:store_detail", kwargs={"slug": "nulle-part"}))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Store not found")

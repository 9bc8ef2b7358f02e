"""
Tests for navigation menus and items
"""

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from core.models import NavigationItem, NavigationMenu
from core.utils import navigation_utils


def add_item(menu, label, parent=None, order=0, **fields):
    return NavigationItem.objects.create(
        menu=menu,
        parent=parent,
        label=label,
        order=order,
        depth=parent.depth + 1 if parent else 0,
        **fields,
    )


# =============================================================================
# TREE HELPERS
# =============================================================================


class NestedItemsTest(SimpleTestCase):
    items = [
        {"id": "1", "parent_id": None, "label": "Magasins", "order": 1, "published": True},
        {"id": "2", "parent_id": None, "label": "Accueil", "order": 0, "published": True},
        {"id": "3", "parent_id": "1", "label": "Saint-Denis", "order": 0, "published": True},
        {"id": "4", "parent_id": "1", "label": "Brouillon", "order": 1, "published": False},
        {"id": "5", "parent_id": "3", "label": "Horaires", "order": 0, "published": True},
    ]

    def test_build_nested_items(self):
        nested = navigation_utils.build_nested_items(self.items)

        self.assertEqual([node["label"] for node in nested], ["Accueil", "Magasins"])
        stores = nested[1]
        self.assertEqual([child["label"] for child in stores["children"]], ["Saint-Denis"])
        self.assertEqual(stores["children"][0]["children"][0]["label"], "Horaires")

    def test_build_nested_items_with_unpublished(self):
        nested = navigation_utils.build_nested_items(self.items, include_unpublished=True)

        self.assertEqual(len(nested[1]["children"]), 2)

    def test_flatten_items_stamps_depth(self):
        nested = navigation_utils.build_nested_items(self.items)

        flat = navigation_utils.flatten_items(nested)

        self.assertEqual(
            [(item["label"], item["depth"]) for item in flat],
            [("Accueil", 0), ("Magasins", 0), ("Saint-Denis", 1), ("Horaires", 2)],
        )
        self.assertNotIn("children", flat[0])

    def test_item_href(self):
        self.assertEqual(navigation_utils.get_item_href({"page_slug": "contact", "href": "/x"}), "/contact")
        self.assertEqual(navigation_utils.get_item_href({"page_slug": "home", "href": None}), "/")
        self.assertEqual(
            navigation_utils.get_item_href({"page_slug": None, "href": "https://example.com"}),
            "https://example.com",
        )
        self.assertEqual(navigation_utils.get_item_href({"page_slug": None, "href": "promo"}), "/promo")
        self.assertEqual(navigation_utils.get_item_href({"page_slug": None, "href": None}), "#")

    def test_item_active(self):
        item = {"page_slug": "magasins", "href": None}

        self.assertTrue(navigation_utils.is_item_active(item, "/magasins"))
        self.assertTrue(navigation_utils.is_item_active(item, "/magasins/saint-denis"))
        self.assertFalse(navigation_utils.is_item_active(item, "/magasinsx"))
        self.assertTrue(navigation_utils.is_item_active({"page_slug": "home", "href": None}, "/"))
        self.assertFalse(navigation_utils.is_item_active({"page_slug": None, "href": None}, "/"))


# =============================================================================
# ITEM OPERATIONS
# =============================================================================


class NavigationItemOperationsTest(TestCase):
    def setUp(self):
        self.menu = NavigationMenu.objects.create(name="Menu principal", slug="header")
        self.other_menu = NavigationMenu.objects.create(name="Pied de page", slug="footer")

    def test_create_item_appends_to_siblings(self):
        first = navigation_utils.create_item({"menu_slug": "header", "label": "Accueil"})
        second = navigation_utils.create_item({"menu_id": str(self.menu.id), "label": "Contact"})

        self.assertEqual((first.order, second.order), (0, 1))
        self.assertEqual(second.depth, 0)

    def test_create_child_item(self):
        parent = navigation_utils.create_item({"menu_slug": "header", "label": "Magasins"})

        child = navigation_utils.create_item(
            {"menu_slug": "header", "label": "Saint-Denis", "parent_id": str(parent.id)}
        )

        self.assertEqual(child.depth, 1)
        self.assertEqual(child.order, 0)

    def test_create_item_requires_label_and_menu(self):
        with self.assertRaises(ValidationError):
            navigation_utils.create_item({"menu_slug": "header"})
        with self.assertRaises(ValidationError):
            navigation_utils.create_item({"label": "Orphan"})
        with self.assertRaises(NavigationMenu.DoesNotExist):
            navigation_utils.create_item({"menu_slug": "missing", "label": "Orphan"})

    def test_parent_from_another_menu_is_rejected(self):
        foreign = add_item(self.other_menu, "Mentions")

        with self.assertRaises(ValidationError):
            navigation_utils.create_item(
                {"menu_slug": "header", "label": "Child", "parent_id": str(foreign.id)}
            )

    def test_move_updates_subtree_depths(self):
        stores = add_item(self.menu, "Magasins")
        saint_denis = add_item(self.menu, "Saint-Denis", parent=stores)
        hours = add_item(self.menu, "Horaires", parent=saint_denis)
        about = add_item(self.menu, "A propos", order=1)

        navigation_utils.update_item(stores, {"parent_id": str(about.id)})

        stores.refresh_from_db()
        saint_denis.refresh_from_db()
        hours.refresh_from_db()
        self.assertEqual((stores.depth, saint_denis.depth, hours.depth), (1, 2, 3))

    def test_move_under_own_descendant_is_rejected(self):
        stores = add_item(self.menu, "Magasins")
        saint_denis = add_item(self.menu, "Saint-Denis", parent=stores)
        hours = add_item(self.menu, "Horaires", parent=saint_denis)

        with self.assertRaises(ValidationError):
            navigation_utils.update_item(stores, {"parent_id": str(hours.id)})
        with self.assertRaises(ValidationError):
            navigation_utils.update_item(stores, {"parent_id": str(stores.id)})

    def test_delete_item_promotes_children(self):
        stores = add_item(self.menu, "Magasins")
        saint_denis = add_item(self.menu, "Saint-Denis", parent=stores)
        hours = add_item(self.menu, "Horaires", parent=saint_denis)

        navigation_utils.delete_item(stores, delete_children=False)

        saint_denis.refresh_from_db()
        hours.refresh_from_db()
        self.assertIsNone(saint_denis.parent_id)
        self.assertEqual((saint_denis.depth, hours.depth), (0, 1))

    def test_delete_item_with_children(self):
        stores = add_item(self.menu, "Magasins")
        add_item(self.menu, "Saint-Denis", parent=stores)

        navigation_utils.delete_item(stores)

        self.assertFalse(NavigationItem.objects.exists())

    def test_bulk_update_moves_between_menus(self):
        stores = add_item(self.menu, "Magasins")
        child = add_item(self.menu, "Saint-Denis", parent=stores)

        navigation_utils.bulk_update_items(
            [
                {"id": str(child.id), "parent_id": None, "order": 5},
                {"id": str(stores.id), "menu_id": str(self.other_menu.id), "order": 2},
            ]
        )

        child.refresh_from_db()
        stores.refresh_from_db()
        self.assertIsNone(child.parent_id)
        self.assertEqual((child.depth, child.order), (0, 5))
        self.assertEqual(stores.menu_id, self.other_menu.id)
        self.assertEqual(stores.order, 2)

    def test_bulk_update_requires_ids(self):
        with self.assertRaises(ValidationError):
            navigation_utils.bulk_update_items([{"order": 1}])


# =============================================================================
# API TESTS
# =============================================================================


class NavigationAPITest(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser("admin", "admin@test.com", "password")
        self.menu = NavigationMenu.objects.create(name="Menu principal", slug="header")
        self.stores = add_item(self.menu, "Magasins", page_slug="magasins")
        add_item(self.menu, "Saint-Denis", parent=self.stores, page_slug="magasins/saint-denis")
        add_item(self.menu, "Brouillon", order=1, published=False)

    def test_public_menu_hides_unpublished_items(self):
        response = self.client.get(reverse("core:navigation_menu_detail", kwargs={"slug": "header"}))

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data["items"]), 2)
        self.assertEqual(data["nested_items"][0]["label"], "Magasins")
        self.assertEqual(data["nested_items"][0]["children"][0]["label"], "Saint-Denis")

    def test_unpublished_menu_is_hidden(self):
        NavigationMenu.objects.create(name="Brouillon", slug="draft", published=False)

        response = self.client.get(reverse("core:navigation_menu_detail", kwargs={"slug": "draft"}))
        listing = self.client.get(reverse("core:navigation_menus"))

        self.assertEqual(response.status_code, 404)
        self.assertEqual([menu["slug"] for menu in listing.json()], ["header"])

    def test_editor_sees_unpublished_items(self):
        self.client.login(username="admin", password="password")

        response = self.client.get(reverse("core:navigation_items"), {"menu_slug": "header"})

        self.assertEqual(len(response.json()), 3)

    def test_items_nested(self):
        response = self.client.get(
            reverse("core:navigation_items"), {"menu_slug": "header", "nested": "true"}
        )

        self.assertEqual(len(response.json()), 1)
        self.assertEqual(len(response.json()[0]["children"]), 1)

    def test_create_menu(self):
        self.client.login(username="admin", password="password")

        response = self.client.post(
            reverse("core:navigation_menus"),
            {"name": "Pied de page", "slug": "footer", "type": "footer"},
            content_type="application/json",
        )
        duplicate = self.client.post(
            reverse("core:navigation_menus"),
            {"name": "Autre", "slug": "footer"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["items"], [])
        self.assertEqual(duplicate.status_code, 400)

    def test_create_menu_requires_authentication(self):
        response = self.client.post(
            reverse("core:navigation_menus"),
            {"name": "Pied de page", "slug": "footer"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 401)

    def test_update_menu_slug_conflict(self):
        NavigationMenu.objects.create(name="Pied de page", slug="footer")
        self.client.login(username="admin", password="password")

        response = self.client.patch(
            reverse("core:navigation_menu_detail", kwargs={"slug": "header"}),
            {"slug": "footer"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)

    def test_update_menu_styling(self):
        self.client.login(username="admin", password="password")

        response = self.client.patch(
            reverse("core:navigation_menu_detail", kwargs={"slug": "header"}),
            {"background_color": "#111111", "navbar_height": 80},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        self.menu.refresh_from_db()
        self.assertEqual(self.menu.navbar_height, 80)

    def test_delete_menu_removes_items(self):
        self.client.login(username="admin", password="password")

        response = self.client.delete(reverse("core:navigation_menu_detail", kwargs={"slug": "header"}))

        self.assertEqual(response.status_code, 200)
        self.assertFalse(NavigationItem.objects.exists())

    def test_create_item(self):
        self.client.login(username="admin", password="password")

        response = self.client.post(
            reverse("core:navigation_items"),
            {"menu_slug": "header", "label": "Lunettes", "parent_id": str(self.stores.id)},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["depth"], 1)
        self.assertEqual(response.json()["order"], 1)

    def test_update_item_with_empty_label(self):
        self.client.login(username="admin", password="password")

        response = self.client.put(
            reverse("core:navigation_item_detail", kwargs={"item_id": self.stores.id}),
            {"label": ""},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)

    def test_delete_item_keeping_children(self):
        self.client.login(username="admin", password="password")

        response = self.client.delete(
            reverse("core:navigation_item_detail", kwargs={"item_id": self.stores.id})
            + "?delete_children=false"
        )

        self.assertEqual(response.status_code, 200)
        child = NavigationItem.objects.get(label="Saint-Denis")
        self.assertIsNone(child.parent_id)
        self.assertEqual(child.depth, 0)

    def test_bulk_update_requires_list(self):
        self.client.login(username="admin", password="password")

        response = self.client.put(
            reverse("core:navigation_items"), {"items": "nope"}, content_type="application/json"
        )

        self.assertEqual(response.status_code, 400)

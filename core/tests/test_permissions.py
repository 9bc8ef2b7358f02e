from django.contrib.auth.models import AnonymousUser, User
from django.test import RequestFactory, SimpleTestCase, TestCase

from core.models import UserProfile
from core.permissions import (
    ROLE_ADMIN,
    ROLE_WEBMASTER,
    WEBMASTER_DEFAULT_PERMISSIONS,
    admin_role_required,
    can_access_path,
    feature_required,
    get_user_permissions,
    get_user_role,
    has_permission,
    parse_permissions,
    user_has_feature,
)


class PermissionRulesTest(SimpleTestCase):
    def test_parse_permissions_fills_missing_features(self):
        permissions = parse_permissions({"pages": False})

        self.assertFalse(permissions["pages"])
        self.assertTrue(permissions["media"])
        self.assertFalse(permissions["apparence"])

    def test_parse_permissions_accepts_json_text(self):
        self.assertFalse(parse_permissions('{"grid": false}')["grid"])

    def test_parse_permissions_falls_back_to_defaults(self):
        self.assertEqual(parse_permissions("not json"), WEBMASTER_DEFAULT_PERMISSIONS)
        self.assertEqual(parse_permissions(None), WEBMASTER_DEFAULT_PERMISSIONS)
        self.assertEqual(parse_permissions(["pages"]), WEBMASTER_DEFAULT_PERMISSIONS)

    def test_admin_has_every_feature(self):
        self.assertTrue(has_permission(ROLE_ADMIN, {"pages": False}, "pages"))
        self.assertTrue(has_permission(ROLE_ADMIN, None, "apparence"))

    def test_webmaster_uses_flags(self):
        self.assertFalse(has_permission(ROLE_WEBMASTER, {"pages": False}, "pages"))
        self.assertTrue(has_permission(ROLE_WEBMASTER, {}, "navigation"))
        self.assertFalse(has_permission(ROLE_WEBMASTER, {}, "unknown"))

    def test_dashboard_paths(self):
        self.assertTrue(can_access_path(ROLE_ADMIN, None, "/dashboard/users"))
        self.assertFalse(can_access_path(ROLE_WEBMASTER, {}, "/dashboard/users"))
        self.assertFalse(can_access_path(ROLE_WEBMASTER, {}, "/dashboard/settings/backups"))
        self.assertFalse(can_access_path(ROLE_WEBMASTER, {"media": False}, "/dashboard/media"))
        self.assertTrue(can_access_path(ROLE_WEBMASTER, {}, "/dashboard/pages/contact"))
        self.assertTrue(can_access_path(ROLE_WEBMASTER, {}, "/dashboard"))


class UserRoleTest(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.admin = User.objects.create_superuser("admin", "admin@test.com", "password")
        self.webmaster = User.objects.create_user("webmaster", "webmaster@test.com", "password")

    def test_profiles_are_created_with_users(self):
        self.assertEqual(self.admin.profile.role, UserProfile.ROLE_ADMIN)
        self.assertEqual(self.webmaster.profile.role, UserProfile.ROLE_WEBMASTER)
        self.assertEqual(self.webmaster.profile.permissions, WEBMASTER_DEFAULT_PERMISSIONS)

    def test_roles(self):
        self.assertEqual(get_user_role(self.admin), ROLE_ADMIN)
        self.assertEqual(get_user_role(self.webmaster), ROLE_WEBMASTER)
        self.assertIsNone(get_user_role(AnonymousUser()))

    def test_profile_admin_gets_full_permissions(self):
        self.webmaster.profile.role = UserProfile.ROLE_ADMIN
        self.webmaster.profile.save()

        self.assertTrue(all(get_user_permissions(self.webmaster).values()))

    def test_user_has_feature(self):
        self.webmaster.profile.permissions = {"analytics": False}
        self.webmaster.profile.save()

        self.assertFalse(user_has_feature(self.webmaster, "analytics"))
        self.assertTrue(user_has_feature(self.webmaster, "pages"))
        self.assertFalse(user_has_feature(AnonymousUser(), "pages"))

    def test_feature_required_decorator(self):
        @feature_required("apparence")
        def view(request):
            return "ok"

        request = self.factory.get("/api/settings/")

        request.user = AnonymousUser()
        self.assertEqual(view(request).status_code, 401)

        request.user = self.webmaster
        self.assertEqual(view(request).status_code, 403)

        request.user = self.admin
        self.assertEqual(view(request), "ok")

    def test_admin_role_required_decorator(self):
        @admin_role_required
        def view(request):
            return "ok"

        request = self.factory.get("/api/users/")

        request.user = AnonymousUser()
        self.assertEqual(view(request).status_code, 401)

        request.user = self.webmaster
        self.assertEqual(view(request).status_code, 403)

        request.user = self.admin
        self.assertEqual(view(request), "ok")

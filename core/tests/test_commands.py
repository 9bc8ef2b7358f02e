from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import TestCase

from core.models import DatabaseBackup, NavigationMenu, Page, SiteSetting, UserProfile
from core.tasks import create_scheduled_backup


class SetupInitialDataCommandTest(TestCase):
    def test_creates_menu_homepage_and_settings(self):
        call_command("setup_initial_data", stdout=StringIO())

        self.assertTrue(NavigationMenu.objects.filter(slug="header").exists())
        homepage = Page.objects.get(slug="accueil")
        self.assertTrue(homepage.published)
        self.assertIsNotNone(homepage.published_at)
        self.assertEqual(SiteSetting.objects.get(key="site_name").value, "Optique de Bourbon")

    def test_is_idempotent(self):
        call_command("setup_initial_data", stdout=StringIO())
        call_command("setup_initial_data", stdout=StringIO())

        self.assertEqual(NavigationMenu.objects.count(), 1)
        self.assertEqual(Page.objects.count(), 1)

    def test_admin_password_creates_superuser(self):
        call_command("setup_initial_data", "--admin-password", "s3cret-pass", stdout=StringIO())

        admin = User.objects.get(username="admin")
        self.assertTrue(admin.is_superuser)
        self.assertEqual(admin.profile.role, UserProfile.ROLE_ADMIN)

    def test_missing_profiles_are_created(self):
        user = User.objects.create_user("legacy", "legacy@test.com", "password")
        UserProfile.objects.filter(user=user).delete()

        out = StringIO()
        call_command("setup_initial_data", stdout=out)

        self.assertTrue(UserProfile.objects.filter(user=user, role=UserProfile.ROLE_WEBMASTER).exists())
        self.assertIn("Created profile for legacy", out.getvalue())


class BackupCommandTest(TestCase):
    def test_create_backup_command(self):
        out = StringIO()

        call_command("create_backup", "--type", "MANUAL", "--name", "CLI", "--protected", stdout=out)

        backup = DatabaseBackup.objects.get()
        self.assertEqual((backup.name, backup.type, backup.is_protected), ("CLI", "MANUAL", True))
        self.assertIn("Backup 'CLI' created", out.getvalue())

    def test_scheduled_backup_is_skipped_when_recent(self):
        call_command("create_backup", stdout=StringIO())
        out = StringIO()

        call_command("create_backup", stdout=out)

        self.assertEqual(DatabaseBackup.objects.count(), 1)
        self.assertIn("Backup skipped", out.getvalue())

    def test_scheduled_backup_task(self):
        self.assertIn("created", create_scheduled_backup())
        self.assertIn("skipped", create_scheduled_backup())

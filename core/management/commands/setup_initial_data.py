from django.contrib.auth.models import User
from django.core.management.base import BaseCommand

from core.models import HOMEPAGE_SLUGS, NavigationMenu, Page, UserProfile
from core.permissions import ADMIN_PERMISSIONS, WEBMASTER_DEFAULT_PERMISSIONS
from core.utils.settings_utils import upsert_setting


class Command(BaseCommand):
    help = "Set up initial data for the Optique de Bourbon CMS"

    def add_arguments(self, parser):
        parser.add_argument(
            "--admin-password",
            default=None,
            help="Create an 'admin' superuser with this password when none exists",
        )

    def handle(self, *args, **options):
        self.stdout.write("Setting up initial data...")

        # Header menu (styling comes from the model defaults)
        menu, created = NavigationMenu.objects.get_or_create(
            slug="header",
            defaults={
                "name": "Menu principal",
                "description": "Navigation principale du site",
                "type": "header",
            },
        )
        if created:
            self.stdout.write(f"Created menu: {menu.name}")

        # Homepage
        if not Page.objects.filter(slug__in=HOMEPAGE_SLUGS, deleted_at__isnull=True).exists():
            page = Page(
                slug="accueil",
                title="Accueil",
                meta_title="Optique de Bourbon",
                show_in_nav=False,
            )
            page.mark_published()
            page.save()
            self.stdout.write("Created homepage: /accueil")

        # Public site settings
        for key, value in {
            "site_name": "Optique de Bourbon",
            "site_description": "Opticiens à La Réunion",
        }.items():
            upsert_setting(key, value)

        if options["admin_password"] and not User.objects.filter(is_superuser=True).exists():
            User.objects.create_superuser(
                username="admin",
                email="admin@optiquedebourbon.re",
                password=options["admin_password"],
            )
            self.stdout.write("Created superuser (username: admin)")

        # Profiles for users created before profiles existed
        for user in User.objects.filter(profile__isnull=True):
            role = UserProfile.ROLE_ADMIN if user.is_superuser else UserProfile.ROLE_WEBMASTER
            permissions = ADMIN_PERMISSIONS if role == UserProfile.ROLE_ADMIN else WEBMASTER_DEFAULT_PERMISSIONS
            UserProfile.objects.create(user=user, role=role, permissions=dict(permissions))
            self.stdout.write(f"Created profile for {user.username} ({role})")

        self.stdout.write(self.style.SUCCESS("Initial data setup complete!"))

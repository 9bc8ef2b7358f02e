from django.urls import path

from . import views, views_backup

app_name = "dashboard"

urlpatterns = [
    # Dashboard home
    path("api/dashboard/stats/", views.dashboard_stats_view, name="stats"),
    path("api/dashboard/me/", views.current_user_view, name="current_user"),
    # Users
    path("api/users/", views.users_view, name="users"),
    path("api/users/<int:user_id>/", views.user_detail_view, name="user_detail"),
    # Backups
    path("api/backups/", views_backup.backups_view, name="backups"),
    path("api/backups/<uuid:backup_id>/", views_backup.backup_detail_view, name="backup_detail"),
    path(
        "api/backups/<uuid:backup_id>/restore/",
        views_backup.backup_restore_view,
        name="backup_restore",
    ),
    # Site export / import
    path("api/site/export/", views_backup.site_export_view, name="site_export"),
    path("api/site/import/", views_backup.site_import_view, name="site_import"),
]

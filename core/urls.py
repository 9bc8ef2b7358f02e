from django.urls import path, re_path

from . import views, views_content, views_navigation

app_name = "core"

# Page slugs may contain "/" (e.g. "magasins/saint-denis"), so page routes use
# re_path with the most specific patterns first.
PAGE_SLUG = r"(?P<slug>[\w\-/]+?)"
UUID = r"[0-9a-f-]{36}"

urlpatterns = [
    # Pages
    path("api/pages/", views.pages_view, name="pages"),
    re_path(
        rf"^api/pages/{PAGE_SLUG}/blocks/(?P<block_id>{UUID})/$",
        views.block_detail_view,
        name="page_block_detail",
    ),
    re_path(rf"^api/pages/{PAGE_SLUG}/blocks/$", views.page_blocks_view, name="page_blocks"),
    re_path(
        rf"^api/pages/{PAGE_SLUG}/revisions/(?P<revision_id>{UUID})/restore/$",
        views.revision_restore_view,
        name="page_revision_restore",
    ),
    re_path(
        rf"^api/pages/{PAGE_SLUG}/revisions/(?P<revision_id>{UUID})/$",
        views.revision_detail_view,
        name="page_revision_detail",
    ),
    re_path(
        rf"^api/pages/{PAGE_SLUG}/revisions/$",
        views.page_revisions_view,
        name="page_revisions",
    ),
    re_path(r"^api/pages/(?P<slug>[\w\-/]+)/$", views.page_detail_view, name="page_detail"),
    path("api/blocks/definitions/", views.block_definitions_view, name="block_definitions"),
    # Navigation
    path("api/navigation/pages/", views.navigation_pages_view, name="navigation_pages"),
    path("api/navigation/menus/", views_navigation.menus_view, name="navigation_menus"),
    path(
        "api/navigation/menus/<slug:slug>/",
        views_navigation.menu_detail_view,
        name="navigation_menu_detail",
    ),
    path("api/navigation/items/", views_navigation.items_view, name="navigation_items"),
    path(
        "api/navigation/items/<uuid:item_id>/",
        views_navigation.item_detail_view,
        name="navigation_item_detail",
    ),
    # Media library
    path("api/media/", views_content.media_view, name="media"),
    path("api/media/<uuid:media_id>/", views_content.media_detail_view, name="media_detail"),
    # Homepage grid
    path("api/grid/", views_content.grid_view, name="grid"),
    # Site settings
    path("api/settings/", views_content.settings_view, name="settings"),
    path("api/settings/<str:key>/", views_content.setting_detail_view, name="setting_detail"),
    # Stores
    path("api/stores/", views_content.stores_view, name="stores"),
    path("api/stores/<str:slug>/", views_content.store_detail_view, name="store_detail"),
]

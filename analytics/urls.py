from django.urls import path

from analytics import views

app_name = "analytics"

urlpatterns = [
    path("api/analytics/track/", views.track, name="track"),
    path("api/analytics/", views.analytics_summary, name="summary"),
]

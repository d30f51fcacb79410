"""
URL configuration for connections API.

URL Structure:
    /                       GET (list), POST (send request)
    /{id}/                  DELETE
    /{id}/accept/           POST
    /{id}/reject/           POST

All URLs are prefixed with /api/v1/connections/ in the main URL configuration.
"""

from django.urls import path

from connections.views import ConnectionViewSet

app_name = "connections"

urlpatterns = [
    path(
        "",
        ConnectionViewSet.as_view({"get": "list", "post": "create"}),
        name="connection-list",
    ),
    path(
        "<uuid:pk>/",
        ConnectionViewSet.as_view({"delete": "destroy"}),
        name="connection-detail",
    ),
    path(
        "<uuid:pk>/accept/",
        ConnectionViewSet.as_view({"post": "accept"}),
        name="connection-accept",
    ),
    path(
        "<uuid:pk>/reject/",
        ConnectionViewSet.as_view({"post": "reject"}),
        name="connection-reject",
    ),
]

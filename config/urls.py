"""Root URL routing for the Academy API.

The REST surface lives under /api/ (see `api.urls`); the root path only
identifies the service.
"""
from django.contrib import admin
from django.http import HttpResponse, JsonResponse
from django.urls import include, path


def _index(request):
    return JsonResponse({"message": "Academy API", "version": "1.0.0"})


def _favicon(request):  # no icon is shipped; answer without a 404
    return HttpResponse(status=204)


urlpatterns = [
    path("", _index, name="index"),
    path("favicon.ico", _favicon),
    path("admin/", admin.site.urls),
    path("", include("api.urls")),
]

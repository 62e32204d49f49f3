"""API routes for the Academy service.

REST endpoints live under /api/ without trailing slashes; the OpenAPI
schema and interactive documentation sit beside them.
"""
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.routers import DefaultRouter

from .views import (
    CourseViewSet,
    EnrollmentViewSet,
    LessonViewSet,
    UserViewSet,
    search_all,
    search_courses,
    search_lessons,
    search_suggestions,
)

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register(r"courses", CourseViewSet, basename="courses")
router.register(r"lessons", LessonViewSet, basename="lessons")
router.register(r"enrollments", EnrollmentViewSet, basename="enrollments")
router.register(r"users", UserViewSet, basename="users")

urlpatterns = [
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/search", search_all, name="search"),
    path("api/search/courses", search_courses, name="search-courses"),
    path("api/search/lessons", search_lessons, name="search-lessons"),
    path("api/search/suggestions", search_suggestions, name="search-suggestions"),
    path("api/", include(router.urls)),
]

from django.apps import AppConfig


class CoursesConfig(AppConfig):
    """App configuration for the catalogue, lessons and enrollments."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "courses"
    verbose_name = "Course catalogue"

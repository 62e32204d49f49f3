from django.apps import AppConfig


class ApiConfig(AppConfig):
    """REST layer: serializers, viewsets, search endpoints and the error handler."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "api"
    verbose_name = "Academy API"

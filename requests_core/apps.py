# requests_core/apps.py

from django.apps import AppConfig


class RequestsCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "requests_core"
    verbose_name = "Sample requests"

    def ready(self):
        from . import signals  # noqa

from django.apps import AppConfig


class RevalidationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "revalidation"
    verbose_name = "Path Revalidation"

    def ready(self) -> None:
        # Wire CMS event and request-scope receivers
        from . import receivers  # noqa: F401

from django.db import models


class RevalidationSetting(models.Model):
    """Key/value store for endpoint settings and the revalidation audit log."""

    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField(default=None, null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]
        verbose_name = "Revalidation Setting"
        verbose_name_plural = "Revalidation Settings"

    def __str__(self):
        return self.key

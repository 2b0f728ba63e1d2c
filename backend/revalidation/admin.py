from django.contrib import admin

from .models import RevalidationSetting


@admin.register(RevalidationSetting)
class RevalidationSettingAdmin(admin.ModelAdmin):
    list_display = ["key", "updated_at"]
    search_fields = ["key"]
    readonly_fields = ["updated_at"]

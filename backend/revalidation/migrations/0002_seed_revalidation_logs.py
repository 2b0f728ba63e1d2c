from django.db import migrations

LOGS_KEY = "revalidation_logs"


def seed_logs(apps, schema_editor):
    RevalidationSetting = apps.get_model("revalidation", "RevalidationSetting")
    RevalidationSetting.objects.get_or_create(key=LOGS_KEY, defaults={"value": []})


class Migration(migrations.Migration):
    dependencies = [
        ("revalidation", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_logs, migrations.RunPython.noop),
    ]

import django.core.serializers.json
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "reference_type",
                    models.CharField(
                        choices=[("PORTAL", "Portal"), ("RESOURCE", "Resource")],
                        max_length=20,
                    ),
                ),
                ("reference_id", models.CharField(blank=True, default="", max_length=255)),
                ("event", models.CharField(max_length=100)),
                (
                    "properties",
                    models.JSONField(default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder),
                ),
                (
                    "old_value",
                    models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True),
                ),
                (
                    "new_value",
                    models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True),
                ),
                ("created_at", models.DateTimeField()),
            ],
            options={
                "verbose_name": "Audit Log",
                "verbose_name_plural": "Audit Logs",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["reference_type", "reference_id"], name="audit_reference_idx"),
                ],
            },
        ),
    ]

import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Metadata",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.CharField(max_length=255)),
                (
                    "reference_type",
                    models.CharField(
                        choices=[("DEFAULT", "Default"), ("RESOURCE", "Resource")],
                        default="DEFAULT",
                        max_length=20,
                    ),
                ),
                ("reference_id", models.CharField(max_length=255)),
                ("name", models.CharField(max_length=255)),
                (
                    "format",
                    models.CharField(
                        choices=[
                            ("STRING", "String"),
                            ("BOOLEAN", "Boolean"),
                            ("URL", "URL"),
                            ("MAIL", "Mail"),
                            ("DATE", "Date"),
                            ("NUMERIC", "Numeric"),
                        ],
                        default="STRING",
                        max_length=20,
                    ),
                ),
                ("value", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "verbose_name": "Metadata",
                "verbose_name_plural": "Metadata",
                "ordering": ["reference_type", "reference_id", "key"],
            },
        ),
        migrations.AddConstraint(
            model_name="metadata",
            constraint=models.UniqueConstraint(
                fields=("key", "reference_type", "reference_id"),
                name="unique_metadata_key_per_reference",
            ),
        ),
        migrations.AddConstraint(
            model_name="metadata",
            constraint=models.UniqueConstraint(
                django.db.models.functions.text.Lower("name"),
                condition=models.Q(("reference_type", "DEFAULT")),
                name="unique_default_metadata_name",
                violation_error_message="A default metadata with that name already exists.",
            ),
        ),
    ]

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="List",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=255)),
                ("name", models.CharField(max_length=100)),
                ("job_id", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "lists",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ListColumn",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("key", models.CharField(max_length=255)),
                (
                    "type",
                    models.CharField(
                        choices=[("text", "Text"), ("structured", "Structured")],
                        default="text",
                        max_length=32,
                    ),
                ),
                ("order", models.IntegerField()),
                ("config", models.JSONField(blank=True, null=True)),
                (
                    "list",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="columns",
                        to="lists.list",
                    ),
                ),
            ],
            options={
                "db_table": "list_columns",
                "ordering": ["order"],
            },
        ),
        migrations.CreateModel(
            name="ListRow",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("data", models.JSONField(default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "list",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rows",
                        to="lists.list",
                    ),
                ),
            ],
            options={
                "db_table": "list_rows",
            },
        ),
        migrations.AddIndex(
            model_name="list",
            index=models.Index(fields=["user_id"], name="lists_user_id_6f1c2a_idx"),
        ),
        migrations.AddIndex(
            model_name="listrow",
            index=models.Index(fields=["list", "created_at"], name="list_rows_list_id_3b9e41_idx"),
        ),
    ]

import uuid

from django.db import models


class List(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=255)
    name = models.CharField(max_length=100)
    # One list per import job. Retried imports hit this constraint instead of creating a copy.
    job_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "lists"
        indexes = [
            models.Index(fields=["user_id"], name="lists_user_id_6f1c2a_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class ListColumn(models.Model):
    class Type(models.TextChoices):
        TEXT = "text", "Text"
        STRUCTURED = "structured", "Structured"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    list = models.ForeignKey(List, related_name="columns", on_delete=models.CASCADE)
    name = models.CharField(max_length=255)
    key = models.CharField(max_length=255)
    type = models.CharField(max_length=32, choices=Type.choices, default=Type.TEXT)
    order = models.IntegerField()
    config = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "list_columns"
        ordering = ["order"]

    def __str__(self) -> str:
        return f"{self.name} [{self.key}:{self.type}]"


class ListRow(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    list = models.ForeignKey(List, related_name="rows", on_delete=models.CASCADE)
    data = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "list_rows"
        indexes = [
            models.Index(fields=["list", "created_at"], name="list_rows_list_id_3b9e41_idx"),
        ]

    def __str__(self) -> str:
        return f"ListRow {self.id} of {self.list_id}"

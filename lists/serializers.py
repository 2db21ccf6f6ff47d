from rest_framework import serializers

from .jobs import COLUMN_TYPES, MAX_LIST_NAME_LENGTH


class ColumnSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, trim_whitespace=False)
    key = serializers.CharField(max_length=255)
    type = serializers.ChoiceField(choices=COLUMN_TYPES)
    order = serializers.IntegerField()


class ObjectRefSerializer(serializers.Serializer):
    containerId = serializers.CharField(max_length=255, required=False)
    bucket = serializers.CharField(max_length=255, required=False, write_only=True)
    key = serializers.CharField(max_length=1024, trim_whitespace=False)
    contentType = serializers.CharField(required=False, allow_blank=True)
    size = serializers.IntegerField(required=False, min_value=0)

    def validate(self, attrs):
        bucket = attrs.pop("bucket", None)
        if "containerId" not in attrs:
            if bucket is None:
                raise serializers.ValidationError({"containerId": ["This field is required."]})
            attrs["containerId"] = bucket
        return attrs


class ImportJobSerializer(serializers.Serializer):
    jobId = serializers.UUIDField(format="hex_verbose")
    listName = serializers.CharField(min_length=1, max_length=MAX_LIST_NAME_LENGTH)
    firstRowIsHeader = serializers.BooleanField()
    columns = ColumnSerializer(many=True, allow_empty=False)
    objectRef = ObjectRefSerializer()
    userId = serializers.CharField(max_length=255)
    requestedAt = serializers.DateTimeField(required=False)

    def validate_columns(self, value):
        keys = [column["key"] for column in value]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise serializers.ValidationError(f"Duplicate column keys: {', '.join(duplicates)}")
        return value

    def to_job_payload(self) -> dict:
        """Validated data in the JSON shape the import task accepts."""
        data = dict(self.validated_data)
        data["jobId"] = str(data["jobId"])
        data["columns"] = [dict(column) for column in data["columns"]]
        data["objectRef"] = dict(data["objectRef"])
        if "requestedAt" in data:
            data["requestedAt"] = data["requestedAt"].isoformat()
        return data

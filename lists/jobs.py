import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ValidationError

COLUMN_TYPE_TEXT = "text"
COLUMN_TYPE_STRUCTURED = "structured"
COLUMN_TYPES = (COLUMN_TYPE_TEXT, COLUMN_TYPE_STRUCTURED)

MAX_LIST_NAME_LENGTH = 100


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    key: str
    type: str
    order: int

    @property
    def is_structured(self) -> bool:
        return self.type == COLUMN_TYPE_STRUCTURED


@dataclass(frozen=True)
class ObjectRef:
    bucket: str
    key: str
    content_type: Optional[str] = None
    size: Optional[int] = None


def _container_id(object_ref: Mapping[str, Any]) -> Any:
    # ``bucket`` is accepted as an older spelling of ``containerId``.
    if "containerId" in object_ref:
        return object_ref["containerId"]
    if "bucket" in object_ref:
        return object_ref["bucket"]
    raise KeyError("containerId")


@dataclass(frozen=True)
class ImportJob:
    """One request to import a remote CSV object into a new list.

    ``job_id`` is the idempotency key: at most one list is ever created per job id.
    """

    job_id: str
    list_name: str
    first_row_is_header: bool
    columns: Tuple[ColumnSpec, ...]
    object_ref: ObjectRef
    user_id: str
    requested_at: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.columns:
            raise ValidationError("At least one column is required.")
        keys = [column.key for column in self.columns]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate column keys: {', '.join(duplicates)}")
        for column in self.columns:
            if column.type not in COLUMN_TYPES:
                raise ValidationError(f"Unsupported column type '{column.type}' for column '{column.name}'.")
        if not self.list_name or len(self.list_name) > MAX_LIST_NAME_LENGTH:
            raise ValidationError(f"List name must be 1..{MAX_LIST_NAME_LENGTH} characters.")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ImportJob":
        """Build a job from the camelCase JSON payload accepted by the intake endpoint."""
        try:
            object_ref = payload["objectRef"]
            columns = tuple(
                ColumnSpec(
                    name=str(column["name"]),
                    key=str(column["key"]),
                    type=str(column["type"]),
                    order=int(column["order"]),
                )
                for column in payload["columns"]
            )
            return cls(
                job_id=str(uuid.UUID(str(payload["jobId"]))),
                list_name=str(payload["listName"]),
                first_row_is_header=bool(payload["firstRowIsHeader"]),
                columns=columns,
                object_ref=ObjectRef(
                    bucket=str(_container_id(object_ref)),
                    key=str(object_ref["key"]),
                    content_type=object_ref.get("contentType"),
                    size=object_ref.get("size"),
                ),
                user_id=str(payload["userId"]),
                requested_at=payload.get("requestedAt"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid import job payload: {exc}") from exc

    def to_payload(self) -> Dict[str, Any]:
        object_ref: Dict[str, Any] = {"containerId": self.object_ref.bucket, "key": self.object_ref.key}
        if self.object_ref.content_type is not None:
            object_ref["contentType"] = self.object_ref.content_type
        if self.object_ref.size is not None:
            object_ref["size"] = self.object_ref.size
        payload: Dict[str, Any] = {
            "jobId": self.job_id,
            "listName": self.list_name,
            "firstRowIsHeader": self.first_row_is_header,
            "columns": [
                {"name": column.name, "key": column.key, "type": column.type, "order": column.order}
                for column in self.columns
            ],
            "objectRef": object_ref,
            "userId": self.user_id,
        }
        if self.requested_at is not None:
            payload["requestedAt"] = self.requested_at
        return payload

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"


class FirestoreCredentials(BaseModel):
    """Project coordinates and API key for the Firestore REST API."""

    model_config = ConfigDict(extra="forbid")

    project_id: str = Field(min_length=1)
    api_key: str | None = None
    database: str = "(default)"
    base_url: str = FIRESTORE_BASE_URL

    @property
    def database_path(self) -> str:
        return f"projects/{self.project_id}/databases/{self.database}"

    def commit_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.database_path}/documents:commit"

    def document_name(self, collection: str, doc_id: str) -> str:
        return f"{self.database_path}/documents/{collection}/{doc_id}"


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a Python value as a Firestore REST ``Value``."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        stamp = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return {"timestampValue": stamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": to_firestore_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    raise TypeError(f"Unsupported Firestore value type: {type(value).__name__}")


def to_firestore_fields(payload: Mapping[str, Any]) -> dict[str, Any]:
    return {str(name): encode_value(value) for name, value in payload.items()}

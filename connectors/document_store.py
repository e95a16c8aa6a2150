from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import httpx
import structlog

from schemas.firestore_models import FirestoreCredentials, to_firestore_fields

_MASKED_FIELDS = {"email", "phone", "nino", "birthDate", "addressLine1", "addressLine2", "addressLine3", "postcode"}


class FirestoreDocumentStore:
    """Creates documents through the Firestore REST API.

    One ``documents:commit`` call per ``create``. Fields named in
    ``server_timestamp_fields`` are written with Firestore's request time
    instead of the payload value. HTTP and transport errors propagate to the
    caller unchanged.
    """

    def __init__(
        self,
        credentials: FirestoreCredentials,
        *,
        timeout_seconds: float = 10.0,
        server_timestamp_fields: Iterable[str] = ("createdAt",),
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._server_timestamps = tuple(server_timestamp_fields)
        self._logger = structlog.get_logger("firestore_document_store")
        self._client = httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create(self, collection: str, payload: Mapping[str, Any]) -> str:
        created_id = uuid4().hex
        fields = {name: value for name, value in payload.items() if name not in self._server_timestamps}
        write: dict[str, Any] = {
            "update": {
                "name": self._credentials.document_name(collection, created_id),
                "fields": to_firestore_fields(fields),
            },
            "currentDocument": {"exists": False},
        }
        transforms = [
            {"fieldPath": name, "setToServerValue": "REQUEST_TIME"}
            for name in self._server_timestamps
            if name in payload
        ]
        if transforms:
            write["updateTransforms"] = transforms

        params = {"key": self._credentials.api_key} if self._credentials.api_key else None
        resp = await self._client.post(self._credentials.commit_url(), json={"writes": [write]}, params=params)
        resp.raise_for_status()

        body = resp.json()
        if not isinstance(body, dict) or not body.get("writeResults"):
            raise RuntimeError("Firestore commit response has no write results")

        self._logger.info(
            "firestore_document_created",
            collection=collection,
            document_id=created_id,
            commit_time=body.get("commitTime"),
            payload=self._mask_payload(payload),
        )
        return created_id

    @staticmethod
    def _mask_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
        masked: dict[str, Any] = {}
        for name, value in payload.items():
            if name in _MASKED_FIELDS and isinstance(value, str):
                masked[name] = f"{value[:2]}***" if len(value) > 4 else "***"
            else:
                masked[name] = value if not hasattr(value, "isoformat") else value.isoformat()
        return masked


@dataclass
class InMemoryDocumentStore:
    """Document store kept in process memory; used when Firestore is not configured."""

    collections: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)

    async def create(self, collection: str, payload: Mapping[str, Any]) -> str:
        created_id = uuid4().hex
        self.collections.setdefault(collection, {})[created_id] = dict(payload)
        return created_id

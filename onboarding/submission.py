from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import uuid4

import structlog

from .exceptions import StoreUnavailable, SubmissionValidationFailed
from .schema import validate

DEFAULT_COLLECTION = "onboardingForms"


class DocumentStore(Protocol):
    """Create-only document store; returns the new document id."""

    async def create(self, collection: str, payload: Mapping[str, Any]) -> str:
        ...


class Submitter(Protocol):
    async def submit(self, record: Mapping[str, Any], *, correlation_id: str | None = None) -> str:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubmissionCoordinator:
    """Validates a complete record and writes it to the document store once.

    There are no retries: a store fault surfaces as ``StoreUnavailable`` and
    the caller decides whether the user may press submit again.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        collection: str = DEFAULT_COLLECTION,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.collection = collection
        self.clock = clock
        self._logger = structlog.get_logger("submission_coordinator")

    async def submit(self, record: Mapping[str, Any], *, correlation_id: str | None = None) -> str:
        correlation_id = correlation_id or str(uuid4())
        result = validate(record)
        if not result.ok:
            self._logger.warning(
                "submission_validation_failed",
                correlation_id=correlation_id,
                fields=[error.field for error in result.errors],
            )
            raise SubmissionValidationFailed(result.errors)

        payload = {**result.record, "createdAt": self.clock()}
        try:
            record_id = await self.store.create(self.collection, payload)
        except Exception as exc:
            self._logger.error(
                "submission_store_unavailable",
                correlation_id=correlation_id,
                collection=self.collection,
                error=str(exc),
            )
            raise StoreUnavailable("Failed to submit form") from exc

        if not record_id:
            self._logger.error("submission_store_empty_id", correlation_id=correlation_id, collection=self.collection)
            raise StoreUnavailable("Failed to submit form")

        self._logger.info(
            "submission_created",
            correlation_id=correlation_id,
            collection=self.collection,
            record_id=record_id,
        )
        return str(record_id)

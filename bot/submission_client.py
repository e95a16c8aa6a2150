from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import uuid4

import httpx

from onboarding.exceptions import StoreUnavailable, SubmissionValidationFailed
from onboarding.schema import FieldError


class HttpSubmissionClient:
    """Async client for the onboarding service ``POST /api/submitForm``."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout, base_url=base_url.rstrip("/"))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def submit(self, record: Mapping[str, Any], *, correlation_id: str | None = None) -> str:
        correlation_id = correlation_id or str(uuid4())
        try:
            response = await self._client.post(
                "/api/submitForm",
                json=dict(record),
                headers={"X-Correlation-ID": correlation_id},
            )
        except httpx.HTTPError as exc:
            raise StoreUnavailable("Submission service is unreachable") from exc

        if response.status_code == 400:
            raise SubmissionValidationFailed(self._field_errors(response))
        if response.is_error:
            raise StoreUnavailable(f"Submission service answered {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreUnavailable("Submission service returned invalid JSON") from exc
        form_id = payload.get("formId") if isinstance(payload, dict) else None
        if not form_id:
            raise StoreUnavailable("Submission service did not return a form id")
        return str(form_id)

    @staticmethod
    def _field_errors(response: httpx.Response) -> list[FieldError]:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        items = payload.get("errors") if isinstance(payload, dict) else None
        errors: list[FieldError] = []
        for item in items or []:
            if not isinstance(item, dict):
                continue
            errors.append(
                FieldError(
                    field=str(item.get("field", "record")),
                    message=str(item.get("message", "Invalid value")),
                    code=str(item.get("code", "value_error")),
                )
            )
        return errors

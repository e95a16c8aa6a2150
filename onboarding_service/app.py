from __future__ import annotations

from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from connectors.document_store import FirestoreDocumentStore, InMemoryDocumentStore
from onboarding.exceptions import StoreUnavailable, SubmissionValidationFailed
from onboarding.schema import FieldError
from onboarding.submission import DocumentStore, SubmissionCoordinator
from schemas.firestore_models import FirestoreCredentials

from .logging import configure_logging, mask_email, mask_sensitive
from .models import HealthResponse, SubmitFormResponse
from .settings import ServiceSettings, settings

configure_logging(settings.log_level)
logger = structlog.get_logger("onboarding_service")


def build_document_store(service_settings: ServiceSettings) -> DocumentStore:
    if not service_settings.firestore_project_id:
        logger.warning("document_store_in_memory", reason="ONBOARDING_FIRESTORE_PROJECT_ID is not set")
        return InMemoryDocumentStore()
    credentials = FirestoreCredentials(
        project_id=service_settings.firestore_project_id,
        api_key=service_settings.firestore_api_key,
        database=service_settings.firestore_database,
        base_url=service_settings.firestore_base_url,
    )
    return FirestoreDocumentStore(credentials, timeout_seconds=service_settings.store_timeout_seconds)


app = FastAPI(title="Onboarding Submissions", version="1.0.0")

coordinator = SubmissionCoordinator(build_document_store(settings), collection=settings.collection)


def _response(status_code: int, payload: SubmitFormResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload.model_dump(mode="json", by_alias=True, exclude_none=True))


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@app.post("/api/submitForm", response_model=SubmitFormResponse)
async def submit_form(request: Request) -> JSONResponse:
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
    with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
        return await _submit(request, correlation_id)


async def _submit(request: Request, correlation_id: str) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        logger.warning("submit_form_invalid_json")
        return _response(
            400,
            SubmitFormResponse(
                success=False,
                message="Validation error",
                errors=[FieldError(field="record", message="Request body must be JSON", code="json_invalid")],
            ),
        )

    if isinstance(body, dict):
        logger.info(
            "submit_form_received",
            email=mask_email(body.get("email") if isinstance(body.get("email"), str) else None),
            nino=mask_sensitive(body.get("nino") if isinstance(body.get("nino"), str) else None),
        )

    try:
        form_id = await coordinator.submit(body, correlation_id=correlation_id)
    except SubmissionValidationFailed as exc:
        return _response(400, SubmitFormResponse(success=False, message="Validation error", errors=exc.errors))
    except StoreUnavailable:
        return _response(500, SubmitFormResponse(success=False, message="Failed to submit form"))

    return _response(200, SubmitFormResponse(success=True, message="Form submitted successfully", form_id=form_id))


def run() -> None:
    import uvicorn

    uvicorn.run("onboarding_service.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

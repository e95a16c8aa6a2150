from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from onboarding.schema import FieldError


class SubmitFormResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    form_id: str | None = Field(default=None, alias="formId")
    errors: list[FieldError] | None = None


class HealthResponse(BaseModel):
    status: str = "ok"

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..config import Settings
from ..services.field_generator import format_job_description, suggest_fields
from ..utils.dependencies import get_settings
from ..utils.error_handlers import ValidationError
from ..utils.roles import author_only

router = APIRouter(tags=["AI"])


class GenerateFieldsRequest(BaseModel):
    job_description: str | None = Field(default=None, alias="jobDescription")
    hiring_domain: str | None = Field(default=None, alias="hiringDomain")

    model_config = {"populate_by_name": True}


class GenerateJobDescriptionRequest(BaseModel):
    job_description: str | None = Field(default=None, alias="jobDescription")

    model_config = {"populate_by_name": True}


@router.post("/generate-fields")
async def generate_fields(
    payload: GenerateFieldsRequest,
    settings: Settings = Depends(get_settings),
    user=Depends(author_only),
):
    if not (payload.job_description or "").strip() or not (payload.hiring_domain or "").strip():
        raise ValidationError("Job description and hiring domain are required")

    fields = await suggest_fields(
        job_description=payload.job_description,
        hiring_domain=payload.hiring_domain,
        ai=settings.ai,
    )
    return {"fields": [f.model_dump(mode="json") for f in fields]}


@router.post("/generate-job-description")
async def generate_job_description(
    payload: GenerateJobDescriptionRequest,
    settings: Settings = Depends(get_settings),
    user=Depends(author_only),
):
    raw = (payload.job_description or "").strip()
    if not raw:
        raise ValidationError("Job description is required")

    html = await format_job_description(raw_text=raw, ai=settings.ai)
    return {"job_description": html}

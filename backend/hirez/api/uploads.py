from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..services.storage import StorageGateway
from ..utils.dependencies import get_storage

router = APIRouter(tags=["Uploads"])


class UploadUrlRequest(BaseModel):
    file_type: str | None = Field(default=None, alias="fileType")

    model_config = {"populate_by_name": True}


@router.post("/upload-url")
def upload_url(payload: UploadUrlRequest, storage: StorageGateway = Depends(get_storage)):
    slot = storage.request_upload_slot(payload.file_type)
    return {
        "upload_url": slot.upload_url,
        "file_url": slot.file_url,
        "file_key": slot.file_key,
        "expires_in": slot.expires_in,
    }

import logging
import mimetypes
import time
from dataclasses import dataclass
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import StorageSettings
from ..utils.error_handlers import ConfigurationError, UploadError, ValidationError, get_error_message

logger = logging.getLogger(__name__)

FALLBACK_EXTENSION = "bin"

# Common resume / media types; anything else goes through `mimetypes`.
_KNOWN_EXTENSIONS = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
    "image/png": "png",
    "image/jpeg": "jpg",
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "video/mp4": "mp4",
}


@dataclass(frozen=True)
class UploadSlot:
    file_key: str
    upload_url: str  # signed PUT, short-lived
    file_url: str  # permanent public GET
    expires_in: int


def extension_for(file_type: str | None) -> str:
    mime = (file_type or "").split(";", 1)[0].strip().lower()
    if not mime:
        return FALLBACK_EXTENSION
    if mime in _KNOWN_EXTENSIONS:
        return _KNOWN_EXTENSIONS[mime]
    guessed = mimetypes.guess_extension(mime)
    if guessed:
        return guessed.lstrip(".")
    return FALLBACK_EXTENSION


def new_file_key(file_type: str | None) -> str:
    return f"{uuid4()}-{int(time.time() * 1000)}.{extension_for(file_type)}"


class StorageGateway:
    """Issues signed S3 upload URLs for candidate files."""

    def __init__(self, settings: StorageSettings, *, client=None):
        if not settings.configured:
            raise ConfigurationError(
                "Object storage is not configured "
                "(AWS_REGION/AWS_BUCKET_NAME/AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY)."
            )
        self.settings = settings
        self.client = client or boto3.client(
            "s3",
            region_name=settings.region,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
        )

    def public_url(self, file_key: str) -> str:
        return f"https://{self.settings.bucket}.s3.{self.settings.region}.amazonaws.com/{file_key}"

    def request_upload_slot(self, file_type) -> UploadSlot:
        if not file_type or not isinstance(file_type, str):
            raise ValidationError(get_error_message("invalid_file_type"))

        file_key = new_file_key(file_type)
        try:
            upload_url = self.client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self.settings.bucket,
                    "Key": file_key,
                    "ContentType": file_type,
                    "ACL": "public-read",
                },
                ExpiresIn=self.settings.upload_url_expires_s,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Signed upload URL failed for %s: %s", file_key, e)
            raise UploadError(get_error_message("upload_failed")) from e

        logger.info("Issued upload slot key=%s type=%s", file_key, file_type)
        return UploadSlot(
            file_key=file_key,
            upload_url=upload_url,
            file_url=self.public_url(file_key),
            expires_in=self.settings.upload_url_expires_s,
        )

import logging
from urllib.parse import unquote, urlparse

import httpx

from ..utils.error_handlers import ExtractionError

logger = logging.getLogger(__name__)


def file_key_from_location(resume_location: str) -> str:
    """Last path segment of the resume URL, which is the object key in the bucket."""
    if not resume_location or not isinstance(resume_location, str):
        raise ExtractionError("Invalid resume URL")
    path = urlparse(resume_location.strip()).path or ""
    key = unquote(path.rstrip("/").rsplit("/", 1)[-1]) if path.strip("/") else ""
    if not key:
        raise ExtractionError("Invalid resume URL")
    return key


class ResumeTextExtractor:
    """Client for the hosted resume text-extraction endpoint."""

    def __init__(
        self,
        *,
        endpoint: str,
        bucket: str,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.bucket = bucket
        self.timeout_s = timeout_s
        self.transport = transport

    async def extract_text(self, resume_location: str) -> str:
        file_key = file_key_from_location(resume_location)
        if not self.endpoint:
            raise ExtractionError("Resume extraction is not configured (RESUME_EXTRACTION_URL).")

        body = {"bucket_name": self.bucket, "file_key": file_key}
        logger.info("Requesting resume text extraction for key=%s", file_key)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.post(self.endpoint, json=body)
        except httpx.RequestError as e:
            raise ExtractionError(f"Resume parsing request failed: {type(e).__name__}") from e

        if r.status_code >= 400:
            raise ExtractionError(f"Resume Parsing API failed with status: {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise ExtractionError("Resume Parsing API returned invalid JSON") from e

        text = data.get("extracted_text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ExtractionError("Resume Parsing API returned no text")

        logger.info("Resume parsed key=%s chars=%s", file_key, len(text))
        return text

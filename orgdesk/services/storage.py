# orgdesk/services/storage.py
import re
import time
from typing import Optional

import boto3
from botocore.config import Config
from orgdesk.config import settings
import structlog

logger = structlog.get_logger()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Collapse anything outside [A-Za-z0-9._-] into underscores."""
    cleaned = _UNSAFE_CHARS.sub("_", filename.strip()).strip("_")
    return cleaned or "file"


def build_company_blob_path(company_id: str, filename: str, now_ms: Optional[int] = None) -> str:
    ts = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"companies/{company_id}/{ts}_{safe_filename(filename)}"


class S3Storage:
    """S3-compatible object storage for company files."""

    def __init__(self):
        self._s3 = None
        self.bucket = settings.S3_BUCKET_NAME

    @property
    def s3(self):
        if self._s3 is None:
            self._s3 = boto3.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL or None,
                aws_access_key_id=settings.S3_ACCESS_KEY_ID or None,
                aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY or None,
                config=Config(signature_version="s3v4"),
                region_name=settings.S3_REGION,
            )
        return self._s3

    def public_url(self, key: str) -> str:
        if settings.S3_PUBLIC_URL:
            return f"{settings.S3_PUBLIC_URL.rstrip('/')}/{key}"
        return f"s3://{self.bucket}/{key}"

    def get_presigned_upload_url(
        self, key: str, content_type: Optional[str] = None, expires_in: int = 900
    ) -> str:
        params = {"Bucket": self.bucket, "Key": key}
        if content_type:
            params["ContentType"] = content_type
        return self.s3.generate_presigned_url(
            "put_object", Params=params, ExpiresIn=expires_in
        )

    def get_presigned_url(self, key: str, expires_in: int = 3600) -> str:
        return self.s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    def delete(self, key: str):
        self.s3.delete_object(Bucket=self.bucket, Key=key)
        logger.info("storage_deleted", key=key)


storage = S3Storage()

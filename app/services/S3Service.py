"""S3 Service for storing payment proofs and event QR codes on AWS S3."""

import logging
import uuid
from typing import Optional
from urllib.parse import urlparse

import boto3
from fastapi import UploadFile
from slugify import slugify
from app.core.config import settings

logger = logging.getLogger(__name__)

s3 = boto3.client(
    "s3",
    region_name=settings.AWS_REGION,
    aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
)


def upload_file_to_s3(file: UploadFile, folder: str) -> str:
    file_ext = file.filename.split(".")[-1].lower()
    base_name = ".".join(file.filename.split(".")[:-1])
    safe_name = slugify(base_name) or "file"

    unique_filename = f"{folder}/{safe_name}-{uuid.uuid4()}.{file_ext}"

    s3.upload_fileobj(
        file.file,
        settings.AWS_S3_BUCKET,
        unique_filename,
        ExtraArgs={"ContentType": file.content_type},
    )

    return f"{settings.AWS_S3_BASE_URL}{unique_filename}"


def key_from_url(url: str) -> Optional[str]:
    """Recover the object key from a URL returned by ``upload_file_to_s3``."""
    if not url:
        return None
    if settings.AWS_S3_BASE_URL and url.startswith(settings.AWS_S3_BASE_URL):
        key = url[len(settings.AWS_S3_BASE_URL):]
    else:
        key = urlparse(url).path
    return key.lstrip("/") or None


def delete_file_from_s3(url: str) -> bool:
    key = key_from_url(url)
    if not key:
        logger.warning(f"⚠️ Cannot derive S3 key from URL: {url}")
        return False

    s3.delete_object(Bucket=settings.AWS_S3_BUCKET, Key=key)
    logger.info(f"🗑️ Deleted S3 object: {key}")
    return True

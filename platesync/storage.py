"""Object storage for church logos and profile images (Cloudflare R2 / S3)"""

import logging
import uuid
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile

from .config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_PUBLIC_URL, R2_SECRET_ACCESS_KEY

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
}


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com" if R2_ACCOUNT_ID else None,
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto" if R2_ACCOUNT_ID else None,
    )


def public_url_for(key: str) -> str:
    if R2_PUBLIC_URL:
        return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"
    return f"https://{R2_BUCKET_NAME}.r2.dev/{key}"


def key_from_url(url: Optional[str]) -> Optional[str]:
    """Recover the object key from a URL produced by public_url_for"""
    if not url:
        return None
    base = public_url_for("")
    if url.startswith(base):
        return url[len(base):]
    return None


async def read_image_upload(file: UploadFile) -> tuple[bytes, str]:
    """Validate an uploaded image and return (content, extension)"""
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=400, detail="Only image files (jpg, png, gif) are allowed"
        )

    content = await file.read()
    if len(content) > MAX_IMAGE_SIZE:
        raise HTTPException(status_code=400, detail="File too large. Maximum size is 5MB")
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    return content, ALLOWED_IMAGE_TYPES[content_type]


def upload_image(content: bytes, prefix: str, extension: str, content_type: str) -> str:
    """Upload image bytes and return the public URL"""
    key = f"{prefix}/{uuid.uuid4()}.{extension}"
    try:
        get_r2_client().put_object(
            Bucket=R2_BUCKET_NAME,
            Key=key,
            Body=content,
            ContentType=content_type,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to upload {key} to R2: {e}")
        raise HTTPException(status_code=502, detail="Failed to upload file") from e

    logger.info(f"✅ Uploaded image to R2: {key}")
    return public_url_for(key)


def delete_object(url: Optional[str]) -> None:
    """Delete a previously uploaded object; failures are logged only"""
    key = key_from_url(url)
    if not key:
        return
    try:
        get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=key)
        logger.info(f"🗑️ Deleted R2 object: {key}")
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"⚠️ Failed to delete R2 object {key}: {e}")

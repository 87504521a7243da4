"""
Upload storage for avatars and record attachments.
Stores to Cloudflare R2 when configured, otherwise to the local upload
directory served by the app at /uploads.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError
from fastapi import HTTPException, UploadFile

from .. import config
from ..security_utils import sanitize_filename

logger = logging.getLogger(__name__)

MAX_AVATAR_SIZE_BYTES = 5 * 1024 * 1024  # 5MB
MAX_ATTACHMENT_SIZE_BYTES = 10 * 1024 * 1024  # 10MB


def r2_enabled() -> bool:
    return bool(config.R2_ACCOUNT_ID and config.R2_ACCESS_KEY_ID and config.R2_SECRET_ACCESS_KEY)


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{config.R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=config.R2_ACCESS_KEY_ID,
        aws_secret_access_key=config.R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def generate_storage_name(filename: str) -> str:
    """Unique, filesystem-safe name: {timestamp}-{hex}-{filename}"""
    timestamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
    return f"{timestamp}-{uuid.uuid4().hex[:8]}-{sanitize_filename(filename)}"


async def save_upload(
    file: UploadFile,
    folder: str,
    max_bytes: int,
    image_only: bool = False,
) -> dict:
    """
    Validate and store an uploaded file.

    Returns:
        dict with 'name' (original filename), 'size_bytes' and public 'url'
    """
    content_type = file.content_type or "application/octet-stream"
    if image_only and not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image uploads are allowed")

    contents = await file.read()
    if len(contents) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds {max_bytes // (1024 * 1024)}MB limit",
        )

    original_name = file.filename or "file"
    stored_name = generate_storage_name(original_name)

    if r2_enabled():
        key = f"{folder}/{stored_name}"
        try:
            get_r2_client().put_object(
                Bucket=config.R2_BUCKET_NAME,
                Key=key,
                Body=contents,
                ContentType=content_type,
            )
        except ClientError as e:
            logger.error(f"❌ R2 upload failed for {key}: {e}")
            raise HTTPException(status_code=500, detail="Upload failed") from e
        base = config.R2_PUBLIC_URL or f"{config.BASE_URL}/uploads"
        url = f"{base}/{key}"
        logger.info(f"✅ Uploaded {original_name} to R2 as {key}")
    else:
        target_dir = Path(config.UPLOAD_DIR) / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / stored_name).write_bytes(contents)
        url = f"{config.BASE_URL}/uploads/{folder}/{stored_name}"
        logger.info(f"✅ Stored {original_name} locally at {folder}/{stored_name}")

    return {"name": original_name, "size_bytes": len(contents), "url": url}


def format_size_kb(size_bytes: int) -> str:
    return f"{round(size_bytes / 1024)} KB"

"""
Session material storage on Cloudflare R2.
Handles validation, key generation, upload, listing and presigned download URLs.
"""

import logging
import secrets
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_ENDPOINT, R2_SECRET_ACCESS_KEY
from .sanitization import safe_file_name

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 100 * 1024 * 1024  # 100MB
PRESIGNED_URL_EXPIRATION = 3600  # 1 hour
ALLOWED_MIME_TYPES = [
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/gif",
    "video/mp4",
    "video/quicktime",  # .mov
    "video/webm",
    "audio/mpeg",
    "audio/wav",
    "audio/x-wav",
    "audio/mp4",  # .m4a
]
DANGEROUS_FILENAME_CHARS = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=R2_ENDPOINT or f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def validate_session_file(filename: str, size_bytes: int, mime_type: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a session material before upload.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not filename:
        return False, "Filename is required"

    for char in DANGEROUS_FILENAME_CHARS:
        if char in filename:
            return False, f"Invalid filename - contains dangerous character '{char}'"

    if len(filename) > 255:
        return False, "Filename too long - maximum 255 characters"

    if size_bytes <= 0:
        return False, "File is empty"

    if size_bytes > MAX_FILE_SIZE_BYTES:
        return False, f"File size exceeds maximum of {MAX_FILE_SIZE_BYTES / (1024 * 1024):.0f}MB"

    if mime_type not in ALLOWED_MIME_TYPES:
        return False, "File type not supported. Allowed: PDF, images, MP4/MOV/WebM video, MP3/WAV/M4A audio"

    return True, None


def generate_session_file_key(session_id, filename: str, file_token: Optional[str] = None) -> str:
    """
    Generate the R2 key for a session material.

    Format: {session_id}/{file_token}_{filename}
    """
    token = file_token or secrets.token_hex(8)
    return f"{session_id}/{token}_{safe_file_name(filename)}"


def upload_file_to_r2(
    file_content: bytes,
    r2_key: str,
    mime_type: Optional[str],
    metadata: Optional[dict] = None,
    s3_client=None,
) -> bool:
    """
    Upload a file to the private R2 bucket.

    Returns:
        True if successful, False otherwise
    """
    try:
        s3_client = s3_client or get_r2_client()

        extra_args = {}
        if mime_type:
            extra_args["ContentType"] = mime_type
        if metadata:
            extra_args["Metadata"] = metadata

        s3_client.put_object(Bucket=R2_BUCKET_NAME, Key=r2_key, Body=file_content, **extra_args)
        logger.info(f"✅ Uploaded {r2_key} to R2 ({len(file_content)} bytes)")
        return True
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Error uploading {r2_key} to R2: {e}")
        return False


def list_r2_objects(prefix: str = "", s3_client=None) -> dict[str, int]:
    """
    List every object in the bucket under a prefix.

    Returns:
        Mapping of key -> size in bytes
    """
    s3_client = s3_client or get_r2_client()
    objects = {}
    kwargs = {"Bucket": R2_BUCKET_NAME, "MaxKeys": 1000}
    if prefix:
        kwargs["Prefix"] = prefix

    while True:
        response = s3_client.list_objects_v2(**kwargs)
        for obj in response.get("Contents", []):
            objects[obj["Key"]] = obj.get("Size", 0)
        if not response.get("IsTruncated"):
            break
        kwargs["ContinuationToken"] = response["NextContinuationToken"]

    return objects


def generate_presigned_url(r2_key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> Optional[str]:
    """
    Generate a presigned URL for private file access.

    Returns:
        Presigned URL or None if error
    """
    try:
        s3_client = get_r2_client()
        return s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": R2_BUCKET_NAME, "Key": r2_key},
            ExpiresIn=expiration,
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Failed to generate presigned URL for key {r2_key}: {e}")
        return None


def delete_file_from_r2(r2_key: str) -> bool:
    """
    Delete a file from R2.

    Returns:
        True if successful, False otherwise
    """
    try:
        s3_client = get_r2_client()
        s3_client.delete_object(Bucket=R2_BUCKET_NAME, Key=r2_key)
        return True
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Error deleting {r2_key} from R2: {e}")
        return False

# Overview: Service-layer operations for object storage; uploads and deletes files in the S3 bucket.

from __future__ import annotations

import os
import uuid
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from flask import current_app

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

# Payment proofs and shipping bills may also arrive as PDFs
ALLOWED_DOCUMENT_TYPES = {**ALLOWED_IMAGE_TYPES, "application/pdf": ".pdf"}


class StorageError(Exception):
    """Raised when a file cannot be stored or removed."""
    pass


class UnsupportedFileError(StorageError):
    """Raised for files the API refuses to store (type or size)."""
    pass


def _client():
    cfg = current_app.config
    return boto3.client(
        "s3",
        aws_access_key_id=cfg.get("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=cfg.get("AWS_SECRET_ACCESS_KEY"),
        region_name=cfg.get("AWS_REGION"),
    )


def _bucket() -> str:
    bucket = current_app.config.get("S3_BUCKET_NAME")
    if not bucket:
        raise StorageError("Object storage is not configured")
    return bucket


def _public_url(key: str) -> str:
    base_url = current_app.config.get("S3_BASE_URL")
    if not base_url:
        bucket = _bucket()
        region = current_app.config.get("AWS_REGION") or "us-east-1"
        base_url = f"https://{bucket}.s3.{region}.amazonaws.com"
    return f"{base_url.rstrip('/')}/{key}"


def _file_size(file) -> int:
    stream = file.stream
    pos = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size


def check_upload(file, allowed_types: dict[str, str] = ALLOWED_IMAGE_TYPES) -> str:
    """
    Validate an incoming werkzeug FileStorage and return the extension to store it under.
    """
    if file is None or not file.filename:
        raise UnsupportedFileError("No file uploaded")
    mimetype = (file.mimetype or "").lower()
    if mimetype not in allowed_types:
        allowed = ", ".join(sorted(allowed_types))
        raise UnsupportedFileError(f"Unsupported file type {mimetype or 'unknown'}; allowed: {allowed}")
    if _file_size(file) > current_app.config["MAX_IMAGE_BYTES"]:
        limit_mb = current_app.config["MAX_IMAGE_BYTES"] // (1024 * 1024)
        raise UnsupportedFileError(f"File exceeds {limit_mb} MB limit")
    return allowed_types[mimetype]


def upload_file(file, folder: str, allowed_types: dict[str, str] = ALLOWED_IMAGE_TYPES) -> dict:
    """
    Store file under folder/<random name> and return {"url", "key"}.
    """
    extension = check_upload(file, allowed_types)
    bucket = _bucket()
    key = f"{folder}/{uuid.uuid4().hex}{extension}"

    try:
        file.stream.seek(0)
        _client().upload_fileobj(
            file.stream,
            bucket,
            key,
            ExtraArgs={"ContentType": file.mimetype},
        )
    except NoCredentialsError:
        raise StorageError("AWS credentials not found. Check environment variables.")
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"Upload failed: {e}")

    return {"url": _public_url(key), "key": key}


def upload_image(file, folder: str) -> str:
    return upload_file(file, folder)["url"]


def upload_document(file, folder: str) -> str:
    return upload_file(file, folder, ALLOWED_DOCUMENT_TYPES)["url"]


def delete_file(url: str) -> None:
    """Delete the object a previously returned URL points at."""
    bucket = _bucket()
    key = urlparse(url).path.lstrip("/")
    if not key:
        raise StorageError(f"Cannot derive object key from {url!r}")
    try:
        _client().delete_object(Bucket=bucket, Key=key)
    except NoCredentialsError:
        raise StorageError("AWS credentials not found. Check environment variables.")
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"Delete failed: {e}")

"""
AttachmentStorageService for chat file uploads.

Provides:
- Upload of attachment bytes to the default storage
- Public URL lookup for a stored path
- Temporary (time-limited) URLs for private buckets
- Signed-token resolution for the filesystem download endpoint

Storage layout:
    chat-attachments/<user_id>/<random>.<ext>

Temporary URLs are presigned when the storage is S3 (django-storages);
otherwise a TimestampSigner token pointing at the chat download view.
"""

from __future__ import annotations

import mimetypes
import os
import secrets
from typing import TYPE_CHECKING
from urllib.parse import quote

from django.core import signing
from django.core.files.storage import default_storage
from django.http import FileResponse
from django.urls import reverse

from chat.constants import ATTACHMENT_CONFIG
from chat.exceptions import TransientError
from core.services import BaseService

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile

    from chat.models import MessageAttachment


class AttachmentStorageService(BaseService):
    """
    Storage-agnostic access to chat attachment files.

    Usage:
        path = AttachmentStorageService.build_path(user.id, "notes.pdf")
        AttachmentStorageService.upload(path, upload, "application/pdf")

        url = AttachmentStorageService.create_temporary_url(path)
    """

    @classmethod
    def is_s3_storage(cls) -> bool:
        """S3Boto3Storage exposes a 'bucket' attribute; FileSystemStorage does not."""
        return hasattr(default_storage, "bucket")

    @classmethod
    def build_path(cls, user_id, filename: str) -> str:
        """
        Build a collision-free storage path for a user's upload.

        The original filename is kept only for its extension.
        """
        ext = os.path.splitext(filename)[1].lower().lstrip(".")
        if not ext:
            ext = "bin"
        token = secrets.token_hex(16)
        return f"{ATTACHMENT_CONFIG.STORAGE_PREFIX}/{user_id}/{token}.{ext}"

    @classmethod
    def upload(cls, path: str, upload: "UploadedFile", content_type: str) -> str:
        """
        Write an uploaded file to storage.

        Returns:
            The path the storage actually saved to

        Raises:
            TransientError: The storage backend failed
        """
        try:
            saved_path = default_storage.save(path, upload)
        except OSError as e:
            cls.get_logger().error(f"Attachment upload failed for {path}: {e}")
            raise TransientError("File storage is unavailable") from e

        cls.get_logger().info(f"Stored attachment {saved_path} ({content_type})")
        return saved_path

    @classmethod
    def delete(cls, path: str) -> None:
        """Remove a stored file; missing files are ignored."""
        try:
            default_storage.delete(path)
        except OSError as e:
            cls.get_logger().warning(f"Could not delete attachment {path}: {e}")

    @classmethod
    def get_public_url(cls, path: str) -> str:
        return default_storage.url(path)

    @classmethod
    def create_temporary_url(cls, path: str, ttl_seconds: int | None = None) -> str:
        """
        Get a URL that grants read access to path for ttl_seconds.

        S3 storage: presigned GET URL.
        Other storage: signed token for the chat download endpoint.
        """
        ttl = ttl_seconds or ATTACHMENT_CONFIG.SIGNED_URL_TTL_SECONDS

        if cls.is_s3_storage():
            client = default_storage.connection.meta.client
            return client.generate_presigned_url(
                "get_object",
                Params={"Bucket": default_storage.bucket_name, "Key": path},
                ExpiresIn=ttl,
            )

        token = signing.dumps(
            {"path": path, "ttl": ttl}, salt=ATTACHMENT_CONFIG.SIGNING_SALT
        )
        return reverse("chat:attachment-download", kwargs={"token": token})

    @classmethod
    def resolve_download_token(cls, token: str) -> str | None:
        """
        Return the storage path encoded in a download token.

        Returns None when the token is tampered with or expired.
        """
        try:
            payload = signing.loads(token, salt=ATTACHMENT_CONFIG.SIGNING_SALT)
        except signing.BadSignature:
            return None

        # Re-check with the TTL embedded at signing time
        try:
            signing.loads(
                token,
                salt=ATTACHMENT_CONFIG.SIGNING_SALT,
                max_age=payload.get("ttl", ATTACHMENT_CONFIG.SIGNED_URL_TTL_SECONDS),
            )
        except signing.SignatureExpired:
            return None

        return payload.get("path")

    @classmethod
    def serve_file_response(cls, attachment: "MessageAttachment") -> FileResponse:
        """
        Stream an attachment from storage.

        Raises:
            FileNotFoundError: The file is missing from storage
        """
        if not default_storage.exists(attachment.storage_path):
            raise FileNotFoundError(f"File not found: {attachment.storage_path}")

        content_type = (
            attachment.content_type
            or mimetypes.guess_type(attachment.original_filename)[0]
            or "application/octet-stream"
        )
        response = FileResponse(
            default_storage.open(attachment.storage_path, "rb"),
            content_type=content_type,
        )
        filename = quote(attachment.original_filename, safe="")
        disposition = "inline" if attachment.is_image else "attachment"
        response["Content-Disposition"] = f'{disposition}; filename="{filename}"'
        return response

"""File attachment validation, encoding and staging."""
from __future__ import annotations

import base64
import mimetypes
from pathlib import Path
from typing import Optional, Tuple

from .errors import AttachmentValidationError
from .notifications import NotificationCenter
from .types import Attachment

ALLOWED_MIME_TYPES: Tuple[str, ...] = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
    "application/pdf",
    "text/plain",
)

ALLOWED_EXTENSIONS: Tuple[str, ...] = ("jpg", "jpeg", "png", "webp", "gif", "pdf", "txt")


def validate_attachment(mime_type: str, size_bytes: int, max_mb: int) -> None:
    """Raise AttachmentValidationError when the file may not be staged."""
    if mime_type not in ALLOWED_MIME_TYPES:
        raise AttachmentValidationError("Loại tệp không được hỗ trợ. Chỉ cho phép ảnh, PDF, text.")
    if size_bytes > max_mb * 1024 * 1024:
        raise AttachmentValidationError(f"Kích thước tệp không được vượt quá {max_mb}MB.")


def encode_attachment(source_file: str, mime_type: str, data: bytes) -> Attachment:
    return Attachment(
        source_file=source_file,
        mime_type=mime_type,
        size_bytes=len(data),
        base64_payload=base64.b64encode(data).decode("ascii"),
    )


def decode_payload(attachment: Attachment) -> bytes:
    return base64.b64decode(attachment.base64_payload)


def guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


class AttachmentStager:
    """Holds at most one validated attachment for the next outgoing message."""

    def __init__(self, notifier: NotificationCenter, max_mb: int = 10) -> None:
        self.notifier = notifier
        self.max_mb = max_mb
        self.staged: Optional[Attachment] = None

    def stage(self, source_file: str, mime_type: str, data: bytes) -> Optional[Attachment]:
        """Validate then encode. Returns None when nothing new was staged."""
        if self.staged is not None:
            return None
        try:
            validate_attachment(mime_type, len(data), self.max_mb)
        except AttachmentValidationError as exc:
            self.notifier.notify(str(exc), "error")
            return None
        self.staged = encode_attachment(source_file, mime_type, data)
        return self.staged

    def stage_path(self, path: Path) -> Optional[Attachment]:
        """Stage a file from disk (CLI entry point)."""
        if not path.is_file():
            self.notifier.notify(f"Không tìm thấy tệp: {path}", "error")
            return None
        return self.stage(path.name, guess_mime_type(path), path.read_bytes())

    def clear(self) -> None:
        self.staged = None

    def consume(self) -> Optional[Attachment]:
        """Hand the staged attachment to a send and empty the slot."""
        attachment, self.staged = self.staged, None
        return attachment

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

SUPPORTED_DOCUMENT_EXTENSIONS = {".pdf", ".csv", ".txt"}
SUPPORTED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024


class AttachmentError(ValueError):
    pass


class UnsupportedAttachmentError(AttachmentError):
    pass


class EmptyAttachmentError(AttachmentError):
    pass


class AttachmentTooLargeError(AttachmentError):
    pass


@dataclass(frozen=True)
class Attachment:
    filename: str
    mime_type: str
    data: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def transcript_marker(self) -> Dict[str, str]:
        return {"type": "file", "content": self.filename}


def encode_attachment(
    filename: str,
    content_bytes: bytes,
    mime_type: str = "",
    max_bytes: int = MAX_ATTACHMENT_BYTES,
) -> Attachment:
    name = Path((filename or "").strip()).name
    extension = Path(name).suffix.lower()
    if extension not in SUPPORTED_DOCUMENT_EXTENSIONS | SUPPORTED_IMAGE_EXTENSIONS:
        raise UnsupportedAttachmentError(
            f"Unsupported attachment type: {extension or '(no extension)'}"
        )
    if not content_bytes:
        raise EmptyAttachmentError("Attachment is empty.")
    if len(content_bytes) > max_bytes:
        raise AttachmentTooLargeError(
            f"Attachment is {len(content_bytes)} bytes; the limit is {max_bytes} bytes."
        )

    resolved_mime = (mime_type or "").strip() or mimetypes.guess_type(name)[0] or "application/octet-stream"
    return Attachment(
        filename=name,
        mime_type=resolved_mime,
        data=base64.b64encode(content_bytes).decode("ascii"),
    )


@dataclass
class UploadSlot:
    """Uploader state for the chat box; each sent file moves the widget to a fresh key."""

    version: int = 0

    @property
    def widget_key(self) -> str:
        return f"chat_upload_{self.version}"

    def consume(self) -> None:
        self.version += 1

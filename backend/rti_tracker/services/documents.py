"""Request attachment / response document intake."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath

from fastapi import UploadFile

from ..config import settings
from ..domain_errors import ValidationFailed

_CHUNK_SIZE = 1024 * 1024  # 1MB

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


@dataclass(frozen=True)
class UploadedDocument:
    filename: str
    content: bytes


def _validate_filename(filename: str | None) -> str:
    if not filename:
        raise ValidationFailed("DOCUMENT_FILENAME_REQUIRED", "Filename is required")

    # Browsers on some platforms send full client paths.
    name = PurePath(filename.replace("\\", "/")).name.strip()
    if not name or "." not in name:
        raise ValidationFailed("DOCUMENT_EXTENSION_REQUIRED", "File extension is required")

    ext = name.rsplit(".", 1)[-1].lower()
    if ext not in settings.allowed_extensions_list:
        raise ValidationFailed(
            "DOCUMENT_TYPE_NOT_ALLOWED",
            f"File type not allowed. Allowed: {settings.ALLOWED_EXTENSIONS}",
        )
    return name


def read_upload(file: UploadFile | None) -> UploadedDocument | None:
    """Validate and read an optional multipart upload into memory, size-limited."""
    if file is None or not file.filename:
        return None

    filename = _validate_filename(file.filename)
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = file.file.read(_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.MAX_UPLOAD_SIZE:
            raise ValidationFailed(
                "DOCUMENT_TOO_LARGE",
                f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB",
            )
        chunks.append(chunk)
    if total == 0:
        raise ValidationFailed("DOCUMENT_EMPTY", "Uploaded file is empty")
    return UploadedDocument(filename=filename, content=b"".join(chunks))


def content_type_for(filename: str | None) -> str:
    if filename and "." in filename:
        return CONTENT_TYPES.get(filename.rsplit(".", 1)[-1].lower(), "application/octet-stream")
    return "application/octet-stream"

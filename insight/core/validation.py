"""Upload validation: file type and size checks."""

import mimetypes
from typing import Iterable, Optional

from ..config import ALLOWED_MIME_TYPES, MAX_BATCH_FILES, MAX_FILE_SIZE

# Content types browsers send when they don't know better
GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}

mimetypes.add_type("image/heic", ".heic")
mimetypes.add_type("image/webp", ".webp")


class UploadValidationError(ValueError):
    """Raised when an uploaded file is rejected."""
    pass


def resolve_content_type(filename: Optional[str], content_type: Optional[str]) -> str:
    """Return the declared content type, or a guess from the filename."""
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type not in GENERIC_CONTENT_TYPES:
        return content_type
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or "application/octet-stream"


def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    max_size: int = MAX_FILE_SIZE,
) -> str:
    """Check a single upload.

    Returns:
        The resolved content type

    Raises:
        UploadValidationError: If the file is missing, of the wrong type, or too large
    """
    if not filename and size == 0:
        raise UploadValidationError("No file provided")

    resolved = resolve_content_type(filename, content_type)
    if resolved not in ALLOWED_MIME_TYPES:
        raise UploadValidationError("Invalid file type. Allowed: JPEG, PNG, WEBP, HEIC")

    if size == 0:
        raise UploadValidationError("No file provided")
    if size > max_size:
        raise UploadValidationError(f"File size exceeds {max_size // (1024 * 1024)}MB limit")

    return resolved


def validate_batch(
    files: Iterable[tuple[str, Optional[str], int]],
    max_files: int = MAX_BATCH_FILES,
    max_size: int = MAX_FILE_SIZE,
) -> list[str]:
    """Check every (filename, content_type, size) triple of a batch upload.

    Returns:
        Resolved content types, in input order
    """
    files = list(files)
    if not files:
        raise UploadValidationError("No files provided")
    if len(files) > max_files:
        raise UploadValidationError(f"Maximum {max_files} files allowed per batch")

    resolved = []
    for filename, content_type, size in files:
        content = resolve_content_type(filename, content_type)
        if content not in ALLOWED_MIME_TYPES:
            raise UploadValidationError(
                f"Invalid file type: {filename}. Allowed: JPEG, PNG, WEBP, HEIC"
            )
        if size > max_size:
            raise UploadValidationError(
                f"File too large: {filename}. Maximum {max_size // (1024 * 1024)}MB"
            )
        resolved.append(content)
    return resolved

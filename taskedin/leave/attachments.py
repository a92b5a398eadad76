"""Leave attachment validation and local-disk storage.

Files are stored under ``<UPLOAD_DIR>/leaves`` with a random name; the
returned path is what a leave request records in ``attachment_path``.
"""

from __future__ import annotations

import logging
import os
import re
import uuid
from typing import Optional

from taskedin.common.constants import ALLOWED_ATTACHMENT_EXTENSIONS
from taskedin.common.exceptions import ValidationException
from taskedin.config import settings

logger = logging.getLogger(__name__)

STORED_PATH_PREFIX = "/uploads/leaves/"

_STORED_NAME = re.compile(r"[0-9a-f]{32}\.([a-z]+)")


def validate_attachment(
    filename: Optional[str],
    size: int,
    *,
    max_bytes: Optional[int] = None,
) -> str:
    """Return the normalised extension, or raise ValidationException."""
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    ext = os.path.splitext(filename or "")[1].lower().lstrip(".")

    errors: dict[str, list[str]] = {}
    if size == 0:
        errors.setdefault("file", []).append("File is empty.")
    if size > limit:
        errors.setdefault("file", []).append(
            f"File size exceeds the {limit // (1024 * 1024)}MB limit."
        )
    if ext not in ALLOWED_ATTACHMENT_EXTENSIONS:
        errors.setdefault("file", []).append(
            "Invalid file type. Allowed: "
            + ", ".join(sorted(ALLOWED_ATTACHMENT_EXTENSIONS))
            + "."
        )
    if errors:
        raise ValidationException(errors)
    return ext


class LocalAttachmentStore:
    """Writes attachments to disk and hands back a public path."""

    def __init__(self, base_dir: Optional[str] = None) -> None:
        self.base_dir = os.path.join(base_dir or settings.UPLOAD_DIR, "leaves")

    def save(self, filename: Optional[str], content: bytes) -> str:
        ext = validate_attachment(filename, len(content))

        os.makedirs(self.base_dir, exist_ok=True)
        # Random name only; the client filename never reaches the filesystem
        safe_name = f"{uuid.uuid4().hex}.{ext}"
        with open(os.path.join(self.base_dir, safe_name), "wb") as f:
            f.write(content)

        logger.info("Stored leave attachment %s (%d bytes)", safe_name, len(content))
        return f"{STORED_PATH_PREFIX}{safe_name}"


def validate_stored_path(path: str) -> str:
    """Accept only a path in the form ``LocalAttachmentStore.save`` returns."""
    name = path[len(STORED_PATH_PREFIX):] if path.startswith(STORED_PATH_PREFIX) else ""
    match = _STORED_NAME.fullmatch(name)
    if match is None or match.group(1) not in ALLOWED_ATTACHMENT_EXTENSIONS:
        raise ValidationException(
            {"attachment_path": ["Attachment must be uploaded via /attachments first."]}
        )
    return path

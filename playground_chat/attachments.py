"""Turn image files into data URIs the conversation store can attach."""

from __future__ import annotations

import base64
import mimetypes
from pathlib import Path

from .exceptions import AttachmentError

# Image file extensions accepted for vision attachments
IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tiff", ".tif"}
)

DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024


def validate_image(path: str, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> Path:
    """Resolve ``path`` and check existence, type and size.

    Raises:
        AttachmentError: with a message suitable for showing to the operator.
    """
    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        raise AttachmentError(f"Image not found: {path}")
    if not resolved.is_file():
        raise AttachmentError(f"Not a file: {path}")
    if resolved.suffix.lower() not in IMAGE_EXTENSIONS:
        exts = ", ".join(sorted(IMAGE_EXTENSIONS))
        raise AttachmentError(f"Invalid image type. Allowed: {exts}")
    if resolved.stat().st_size > max_bytes:
        max_mb = max_bytes / (1024 * 1024)
        raise AttachmentError(f"Image too large (max {max_mb:.1f}MB)")
    return resolved


def encode_image(path: str, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> str:
    """Return a ``data:<mime>;base64,...`` URI for a validated image file."""
    resolved = validate_image(path, max_bytes=max_bytes)
    mime_type = mimetypes.guess_type(resolved.name)[0] or "application/octet-stream"
    try:
        raw = resolved.read_bytes()
    except OSError as exc:
        raise AttachmentError(f"Unable to read image {path}: {exc}") from exc
    encoded = base64.b64encode(raw).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"

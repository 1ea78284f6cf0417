"""
Upload validation helpers: MIME allow-list, content sniffing, folder names.
"""

import re
from pathlib import PurePosixPath

# Allowed MIME types and the extension used when the original name has none
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}

DOCUMENT_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

DEFAULT_FOLDERS = ["profiles", "documents", "activities", "general"]

# libmagic reports Office containers by their generic format
_SNIFFED_ALIASES = {
    "application/zip": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/cdfv2": "application/msword",
    "application/x-ole-storage": "application/msword",
}

_FOLDER_INVALID_CHARS = re.compile(r"[^a-z0-9_-]+")


def normalize_mime_type(mime_type: str) -> str:
    """Lowercase and strip parameters, e.g. 'Image/PNG; q=1' -> 'image/png'."""
    return mime_type.split(";", 1)[0].strip().lower()


def is_allowed_mime_type(mime_type: str) -> bool:
    return normalize_mime_type(mime_type) in ALLOWED_MIME_TYPES


def detect_mime_type(content: bytes) -> str:
    """
    Detect the MIME type from the file content using libmagic.

    Args:
        content: File bytes

    Returns:
        Detected MIME type
    """
    import magic

    return magic.from_buffer(content, mime=True)


def content_matches(declared_type: str, detected_type: str) -> bool:
    """
    Check a sniffed MIME type against the declared one.

    Both sides are compared after normalization; jpg/jpeg are the same type
    and Office containers detected generically count as their Office type.
    """
    declared = normalize_mime_type(declared_type).replace("image/jpg", "image/jpeg")
    detected = normalize_mime_type(detected_type).replace("image/jpg", "image/jpeg")
    detected = _SNIFFED_ALIASES.get(detected, detected)
    return declared == detected


def file_extension(original_name: str, mime_type: str) -> str:
    """
    Extension for the stored file.

    Keeps the original extension when present, otherwise derives it from the
    MIME type.
    """
    suffix = PurePosixPath(original_name.replace("\\", "/")).suffix.lower()
    if suffix and re.fullmatch(r"\.[a-z0-9]{1,8}", suffix):
        return suffix
    return ALLOWED_MIME_TYPES.get(normalize_mime_type(mime_type), "")


def sanitize_folder(folder: str | None) -> str:
    """
    Reduce a folder name to a single safe path segment.

    Lowercased, anything outside [a-z0-9_-] collapses to '-', empty means
    'general'.
    """
    if not folder:
        return "general"
    cleaned = _FOLDER_INVALID_CHARS.sub("-", folder.strip().lower()).strip("-")
    return cleaned or "general"


def file_type_bucket(mime_type: str) -> str:
    """Group a MIME type into 'images', 'documents' or 'others'."""
    mime_type = normalize_mime_type(mime_type)
    if mime_type.startswith("image/"):
        return "images"
    if mime_type in DOCUMENT_MIME_TYPES:
        return "documents"
    return "others"

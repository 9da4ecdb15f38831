import logging
from pathlib import Path

from ..config import MIN_PASSWORD_LENGTH, MAX_DOCUMENT_BYTES

logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_EXTENSIONS = {'.pdf', '.jpg', '.jpeg', '.png', '.bmp', '.gif', '.webp', '.heic'}


def validate_password_pair(password: str, confirm_password: str) -> tuple[bool, str]:
    """
    Local checks run before any account is created.
    Returns (is_valid, error_message)
    """
    if password != confirm_password:
        logger.warning("Signup validation failed: passwords do not match")
        return False, "Passwords do not match"

    if len(password or "") < MIN_PASSWORD_LENGTH:
        logger.warning(f"Signup validation failed: password shorter than {MIN_PASSWORD_LENGTH}")
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    return True, ""


def validate_document_upload(filename: str, content_type: str, size: int) -> bool:
    """
    Whether the file looks like an image or PDF of an ID document.
    Both checks are advisory: the result and any warning are only logged, the file is still accepted.
    """
    if size > MAX_DOCUMENT_BYTES:
        logger.warning(f"ID document larger than advised: {size} bytes (advised max: {MAX_DOCUMENT_BYTES})")

    content_type = (content_type or "").lower()
    if content_type.startswith("image/") or content_type == "application/pdf":
        return True

    suffix = Path(filename or "").suffix.lower()
    looks_valid = suffix in ALLOWED_DOCUMENT_EXTENSIONS
    if not looks_valid:
        logger.warning(f"ID document is not an image or PDF: {content_type or 'unknown'} ({filename})")
    return looks_valid

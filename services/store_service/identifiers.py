"""Shape check for Bitable record ids and drive file tokens taken from callers."""

import re

from services.store_service.errors import ValidationError

_IDENTIFIER = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def require_identifier(value: str, label: str) -> str:
    """Return ``value`` unchanged, or raise ``ValidationError`` naming ``label``."""
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise ValidationError(f"Invalid {label}")
    return value

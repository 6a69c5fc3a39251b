"""Input checks shared by services and endpoints."""

import re
from datetime import date

from .errors import ValidationError

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def ensure_identifier(value: str, field: str = "id") -> str:
    """Return ``value`` if it is a well-formed identifier, else raise 400."""
    if not isinstance(value, str) or not _UUID_RE.match(value):
        raise ValidationError(f"Invalid {field}", details=[{"field": field, "message": "must be a UUID"}])
    return value.lower()


def parse_reference_month(value: str) -> date:
    """Parse ``YYYY-MM`` into the first day of that month."""
    match = _MONTH_RE.match(value or "")
    if not match:
        raise ValidationError(
            "Reference month must be in the format YYYY-MM",
            details=[{"field": "reference_month", "message": "expected YYYY-MM"}],
        )
    year, month = int(match.group(1)), int(match.group(2))
    if year < 1:
        raise ValidationError(
            "Reference month must be in the format YYYY-MM",
            details=[{"field": "reference_month", "message": "year must be 0001 or later"}],
        )
    if not 1 <= month <= 12:
        raise ValidationError(
            "Reference month must be in the format YYYY-MM",
            details=[{"field": "reference_month", "message": "month must be 01-12"}],
        )
    return date(year, month, 1)

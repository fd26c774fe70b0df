"""Field validation helpers shared by the domain services."""

from typing import Optional

from ledgerly.domain.errors import ValidationError


def require_text(value: Optional[str], field: str, max_length: int) -> str:
    """Strip a required text field and check its length.

    Raises:
        ValidationError: If the value is empty or too long
    """
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} cannot be empty")
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def optional_text(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    """Strip an optional text field; blank becomes None.

    Raises:
        ValidationError: If the value is too long
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text

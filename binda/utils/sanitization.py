import re
from typing import Optional


def clean_text_input(value: Optional[str], max_length: int = 500) -> Optional[str]:
    """
    Strip free-text input (notes, reasons, names) and drop control characters.

    Returns None for empty input.

    Raises:
        ValueError: If input exceeds max_length
    """
    if value is None:
        return None

    value = str(value).strip()
    if not value:
        return None

    if len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    # Remove null bytes and other control characters (newlines and tabs are kept)
    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", value)

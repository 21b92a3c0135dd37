import html
import re
from typing import Optional


def sanitize_optional_text(value: Optional[str], max_length: int = 500) -> Optional[str]:
    """
    Trim, validate and escape free text such as booking notes or day-off reasons.
    Blank input becomes None.

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

    # Strip control characters before escaping
    value = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", value)
    return html.escape(value, quote=True)

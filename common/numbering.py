"""Document number series: ``<PREFIX>-<yy>-<nnnn>``."""

import re
from datetime import date

from django.conf import settings
from django.utils import timezone

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def financial_year_code(today: date | None = None) -> str:
    """Two-digit year code, taken from FINANCIAL_YEAR_START when configured."""
    start = getattr(settings, "FINANCIAL_YEAR_START", None)
    if start:
        year = date.fromisoformat(str(start)).year
    else:
        year = (today or timezone.localdate()).year
    return str(year)[-2:]


def next_document_number(existing, prefix: str, year_code: str) -> str:
    """Return the number following the highest trailing number in ``existing``."""
    highest = 0
    for number in existing:
        match = _TRAILING_DIGITS.search(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-{year_code}-{highest + 1:04d}"

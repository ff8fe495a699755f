"""Split a preset date into day/month/year and route the parts to sub-inputs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from .synonyms import DAY_HINTS, MONTH_HINTS, YEAR_HINTS

_SEPARATORS = re.compile(r"[-/.]")


@dataclass(frozen=True)
class DateParts:
    day: str
    month: str
    year: str

    @property
    def iso(self) -> str:
        return f"{self.year}-{self.month.zfill(2)}-{self.day.zfill(2)}"

    def value_for(self, slot: str) -> str:
        if slot == "composite":
            return self.iso
        return getattr(self, slot)


def split_date(value: str) -> Optional[DateParts]:
    """Accept YYYY-MM-DD or DD-MM-YYYY with -, / or . separators; anything else is None.

    No range validation: "2024-13-01" still splits as year-month-day.
    """
    parts: List[str] = _SEPARATORS.split((value or "").strip())
    if len(parts) != 3:
        return None
    if len(parts[0]) == 4:
        year, month, day = parts
    elif len(parts[2]) == 4:
        day, month, year = parts
    else:
        return None
    return DateParts(day=day, month=month, year=year)


def classify_date_input(aria_label: str, placeholder: str, input_type: str) -> Optional[str]:
    """Return "day", "month", "year", "composite" or None for an input inside a date widget.

    A native date input always takes the whole YYYY-MM-DD value, whatever its label says.
    """
    if (input_type or "").lower() == "date":
        return "composite"
    aria = (aria_label or "").lower()
    hint = (placeholder or "").lower()
    if any(token in aria for token in DAY_HINTS):
        return "day"
    if any(token in aria for token in MONTH_HINTS):
        return "month"
    if any(token in aria for token in YEAR_HINTS):
        return "year"
    if "dd" in hint:
        return "day"
    if "mm" in hint:
        return "month"
    if "yyyy" in hint:
        return "year"
    return None


def looks_like_date_widget(slots: List[Optional[str]]) -> bool:
    """A native date input, or three or more inputs tagged as day/month/year."""
    if "composite" in slots:
        return True
    return sum(1 for slot in slots if slot in {"day", "month", "year"}) >= 3

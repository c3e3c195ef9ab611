"""Offer recurrence parsing and due-date calculation.

Providers describe billing recurrence in many shapes: ISO-8601 durations
(``P3M``), Portuguese or English keywords (``trimestral``, ``monthly``),
``"6 meses"``, a bare number of months, or objects such as
``{"interval": "month", "interval_count": 3}``. Everything normalizes to a
:class:`Recurrence`; anything unrecognized means one month.
"""

from __future__ import annotations

import enum
import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

DEFAULT_QUANTITY = 1


class RecurrencePeriod(enum.StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


DAYS_PER_PERIOD: dict[RecurrencePeriod, int] = {
    RecurrencePeriod.DAY: 1,
    RecurrencePeriod.WEEK: 7,
    RecurrencePeriod.MONTH: 30,
    RecurrencePeriod.YEAR: 365,
}


@dataclass(frozen=True)
class Recurrence:
    """A normalized billing recurrence: *multiplier* units of *period*."""

    period: RecurrencePeriod = RecurrencePeriod.MONTH
    multiplier: int = 1

    @property
    def days(self) -> int:
        return DAYS_PER_PERIOD[self.period] * self.multiplier

    @property
    def duration_months(self) -> int:
        """Bucket into the plan catalog's durations (1, 3, 6 or 12 months)."""
        if self.period is RecurrencePeriod.YEAR:
            return 12
        if self.period is not RecurrencePeriod.MONTH:
            return 1
        for bucket in (1, 3, 6):
            if self.multiplier <= bucket:
                return bucket
        return 12

    @property
    def label(self) -> str:
        """Human-readable offer name for action summaries."""
        if self.period is RecurrencePeriod.YEAR:
            return "Annual" if self.multiplier == 1 else f"{self.multiplier} years"
        if self.period is RecurrencePeriod.MONTH:
            labels = {1: "Monthly", 3: "Quarterly", 6: "Semiannual"}
            return labels.get(self.duration_months, "Annual")
        return "—"


MONTHLY = Recurrence()

_ISO_DURATION = re.compile(r"^P(?:(\d+)Y)?(?:(\d+)M)?(?:(\d+)W)?(?:(\d+)D)?$")
_LEADING_INT = re.compile(r"^\s*(-?\d+)")
_FIRST_INT = re.compile(r"(\d+)")
_N_MONTHS = re.compile(r"(\d+)\s*(meses?|months?)")

# Order matters: the first matching pattern wins.
_KEYWORDS: list[tuple[re.Pattern[str], Recurrence]] = [
    (
        re.compile(r"\b(mensal|m[eê]s|por m[eê]s|1 m[eê]s)\b"),
        Recurrence(RecurrencePeriod.MONTH, 1),
    ),
    (re.compile(r"\b(trimestral|trimestre|3 meses)\b"), Recurrence(RecurrencePeriod.MONTH, 3)),
    (re.compile(r"\b(semestral|semestre|6 meses)\b"), Recurrence(RecurrencePeriod.MONTH, 6)),
    (re.compile(r"\b(anual|ano|anos?)\b"), Recurrence(RecurrencePeriod.YEAR, 1)),
    (re.compile(r"\b(12 meses)\b"), Recurrence(RecurrencePeriod.MONTH, 12)),
    (re.compile(r"\b(semanal|semana)\b"), Recurrence(RecurrencePeriod.WEEK, 1)),
    (re.compile(r"\b(di[aá]rio|dia)\b"), Recurrence(RecurrencePeriod.DAY, 1)),
    (re.compile(r"\b(monthly|month)\b"), Recurrence(RecurrencePeriod.MONTH, 1)),
    (re.compile(r"\b(quarterly|quarter)\b"), Recurrence(RecurrencePeriod.MONTH, 3)),
    (
        re.compile(r"\b(semiannual|biannual|semi-annual|bi-annual)\b"),
        Recurrence(RecurrencePeriod.MONTH, 6),
    ),
    (re.compile(r"\b(yearly|annual|years?)\b"), Recurrence(RecurrencePeriod.YEAR, 1)),
    (re.compile(r"\b(weekly|week)\b"), Recurrence(RecurrencePeriod.WEEK, 1)),
    (re.compile(r"\b(daily|day)\b"), Recurrence(RecurrencePeriod.DAY, 1)),
]


def _leading_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _parse_iso_duration(text: str) -> Recurrence | None:
    match = _ISO_DURATION.match(text.strip().upper())
    if not match:
        return None
    years, months, weeks, days = (int(g) if g else 0 for g in match.groups())
    for amount, period in (
        (years, RecurrencePeriod.YEAR),
        (months, RecurrencePeriod.MONTH),
        (weeks, RecurrencePeriod.WEEK),
        (days, RecurrencePeriod.DAY),
    ):
        if amount > 0:
            return Recurrence(period, amount)
    return None


def _parse_keywords(text: str) -> Recurrence | None:
    lower = text.strip().lower()
    if not lower:
        return None
    for pattern, recurrence in _KEYWORDS:
        if pattern.search(lower):
            return recurrence
    match = _N_MONTHS.search(lower)
    if match and 1 <= int(match.group(1)) <= 12:
        return Recurrence(RecurrencePeriod.MONTH, int(match.group(1)))
    return None


def _parse_object(obj: dict[str, Any]) -> Recurrence | None:
    interval = obj.get("interval") or obj.get("frequency") or obj.get("period") or ""
    count_keys = ("interval_count", "intervalCount", "count", "multiplier")
    count = next((obj[k] for k in count_keys if obj.get(k) is not None), 1)
    parsed_count = _leading_int(count)
    multiplier = parsed_count if parsed_count is not None and parsed_count >= 1 else 1

    unit = str(interval).strip().lower()
    if "day" in unit or unit == "d":
        return Recurrence(RecurrencePeriod.DAY, multiplier)
    if "week" in unit or unit == "w":
        return Recurrence(RecurrencePeriod.WEEK, multiplier)
    if "month" in unit or unit == "m":
        return Recurrence(RecurrencePeriod.MONTH, multiplier)
    if "year" in unit or unit == "y" or "annual" in unit:
        return Recurrence(RecurrencePeriod.YEAR, multiplier)

    billing_period = obj.get("billing_period") or obj.get("billingPeriod")
    if billing_period:
        return _parse_iso_duration(str(billing_period))

    recurrence = obj.get("recurrence") or obj.get("recurrence_type")
    if recurrence:
        return parse_recurrence(recurrence)
    return None


def parse_recurrence(data: str | dict[str, Any] | None) -> Recurrence:
    """Parse a recurrence from a mapped offer value.

    Args:
        data: A string such as ``"trimestral"``, ``"3 months"`` or ``"P3M"``,
            or an object with ``interval``/``interval_count``,
            ``billing_period`` or ``recurrence`` keys.

    Returns:
        The detected recurrence, or one month when nothing matches.
    """
    if data is None:
        return MONTHLY
    if isinstance(data, dict):
        return _parse_object(data) or MONTHLY

    text = str(data).strip()
    if not text:
        return MONTHLY

    detected = _parse_iso_duration(text) or _parse_keywords(text)
    if detected is not None:
        return detected

    number = _FIRST_INT.search(text)
    if number and int(number.group(1)) >= 1:
        return Recurrence(RecurrencePeriod.MONTH, int(number.group(1)))
    return MONTHLY


def parse_offer(raw: str | None) -> Recurrence | None:
    """Parse a resolved offer string; returns None when no offer was mapped.

    Offers that look like JSON objects (a mapped path pointing at an object)
    are decoded first.
    """
    if raw is None or not raw.strip():
        return None
    text = raw.strip()
    if text.startswith("{"):
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, dict):
            return parse_recurrence(decoded)
    return parse_recurrence(text)


def parse_quantity(raw: str | None) -> int:
    """Parse the mapped quantity; missing, invalid or < 1 means 1."""
    if raw is None:
        return DEFAULT_QUANTITY
    value = _leading_int(raw)
    if value is None or value < 1:
        return DEFAULT_QUANTITY
    return value


def recurrence_to_days(recurrence: Recurrence, quantity: int = DEFAULT_QUANTITY) -> int:
    """Total days covered: days per period × multiplier × quantity."""
    return recurrence.days * max(quantity, 1)


def due_date_for(offer: str | None, quantity: int, now: datetime) -> datetime | None:
    """Compute the account due date from the offer, or None without an offer."""
    recurrence = parse_offer(offer)
    if recurrence is None:
        return None
    total_days = recurrence_to_days(recurrence, quantity)
    if total_days <= 0:
        return None
    return now + timedelta(days=total_days)

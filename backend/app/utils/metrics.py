"""
Percentage, rounding and ordering helpers shared by the attendance, marks and
performance services.

All percentages leaving the API are clamped to [0, 100]; a zero denominator
yields 0 instead of an error or NaN.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence, Tuple, Union
from datetime import date

from app.models.marks_management import EXAM_TYPE_ORDER

Number = Union[int, float, Decimal]

SUNDAY = 6  # date.weekday()


def round_half_up(value: Number, digits: int = 0) -> float:
    """Round like a spreadsheet does (2.5 -> 3), not banker's rounding"""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def clamp_percentage(value: Optional[Number]) -> float:
    if value is None:
        return 0.0
    return float(min(max(value, 0), 100))


def percentage(part: Optional[Number], whole: Optional[Number], digits: int = 1) -> float:
    """100 * part / whole rounded to ``digits`` and clamped to [0, 100]"""
    if not whole or part is None:
        return 0.0
    return clamp_percentage(round_half_up(100 * Decimal(str(part)) / Decimal(str(whole)), digits))


def score_percentage(score_sum: Optional[Number], total_sum: Optional[Number]) -> float:
    """Score percentage: one decimal place"""
    return percentage(score_sum, total_sum, digits=1)


def attendance_rate(present: Optional[Number], total: Optional[Number]) -> float:
    """Attendance rate with one decimal place (class tables, summaries)"""
    return percentage(present, total, digits=1)


def attendance_percent(present: Optional[Number], total: Optional[Number]) -> int:
    """Whole-number attendance percentage (student dashboards)"""
    return int(percentage(present, total, digits=0))


def average(values: Sequence[Number], digits: int = 1) -> float:
    if not values:
        return 0.0
    return round_half_up(sum(Decimal(str(v)) for v in values) / len(values), digits)


def is_sunday(day: date) -> bool:
    return day.weekday() == SUNDAY


def exam_type_sort_key(exam_type: str) -> Tuple[int, str]:
    """internal, midterm, final first; everything else alphabetically after them"""
    normalized = (exam_type or "").lower()
    if normalized in EXAM_TYPE_ORDER:
        return EXAM_TYPE_ORDER.index(normalized), ""
    return len(EXAM_TYPE_ORDER), normalized


def order_exam_types(exam_types: Iterable[str]) -> List[str]:
    return sorted(exam_types, key=exam_type_sort_key)

"""Commission week and bonus week windowing"""
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from .models import DateRange, Sale, WeekBucket
from config import BONUS_WEEK_OFFSET_DAYS, COMMISSION_WEEK_START_WEEKDAY, REPORT_TIMEZONE

DateLike = Union[date, datetime]

ISO_DATE_PATTERN = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})$')
MDY_DATE_PATTERN = re.compile(r'^(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})$')

END_OF_DAY = time(23, 59, 59, 999000)


def parse_sale_date(value: Any) -> Optional[date]:
    """
    Parse a stored sale date.

    Accepts date objects, ISO dates (``2024-06-07``, optionally followed by a
    time part) and US dates (``6/7/2024``, ``06-07-24``). Two-digit years of
    70 and above are 19xx, the rest 20xx.

    Returns None when the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    primary = re.split(r'[T ]', text)[0]

    iso_match = ISO_DATE_PATTERN.match(primary)
    if iso_match:
        year, month, day = (int(part) for part in iso_match.groups())
        return _safe_date(year, month, day)

    mdy_match = MDY_DATE_PATTERN.match(primary)
    if mdy_match:
        month_str, day_str, year_str = mdy_match.groups()
        year = int(year_str)
        if len(year_str) == 2:
            year += 1900 if year >= 70 else 2000
        return _safe_date(year, int(month_str), int(day_str))

    return None


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def _start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def _end_of_day(value: date) -> datetime:
    return datetime.combine(value, END_OF_DAY)


def commission_week_start(value: DateLike) -> datetime:
    """Most recent Friday at or before ``value``, at midnight."""
    day = _as_date(value)
    diff = (day.weekday() - COMMISSION_WEEK_START_WEEKDAY) % 7
    return _start_of_day(day - timedelta(days=diff))


def commission_week_range(value: DateLike) -> DateRange:
    """Friday 00:00 through the following Thursday 23:59:59.999."""
    start = commission_week_start(value)
    return DateRange(start=start, end=_end_of_day(start.date() + timedelta(days=6)))


def bonus_week_range(commission_start: DateLike) -> DateRange:
    """
    Bonus accounting week for a commission week.

    Starts 4 days before the commission week start (the Monday before a
    Friday) and runs 7 days, so it straddles two commission weeks.
    """
    monday = _as_date(commission_start) - timedelta(days=BONUS_WEEK_OFFSET_DAYS)
    return DateRange(
        start=_start_of_day(monday),
        end=_end_of_day(monday + timedelta(days=6)),
    )


def format_date_key(value: DateLike) -> str:
    return _as_date(value).isoformat()


def format_display_date(value: DateLike) -> str:
    return _as_date(value).strftime('%m/%d/%Y')


def week_key(value: DateLike) -> str:
    """Grouping and persistence key: ISO date of the commission week start."""
    return format_date_key(commission_week_start(value))


def format_week_label(start: DateLike, end: DateLike) -> str:
    def _label(value: date) -> str:
        return f"{value:%b} {value.day}, {value.year}"
    return f"{_label(_as_date(start))} → {_label(_as_date(end))}"


def today_in_report_timezone() -> date:
    return datetime.now(ZoneInfo(REPORT_TIMEZONE)).date()


def build_week_buckets(sales: Iterable[Sale], anchor: Optional[DateLike] = None) -> List[WeekBucket]:
    """
    Group sales by commission week, most recent week first.

    The week containing ``anchor`` is always present, even with no sales,
    so the current week can be selected before anything has sold.
    """
    grouped = {}
    for sale in sales:
        sale_date = parse_sale_date(sale.sale_date)
        if sale_date is None:
            continue
        grouped.setdefault(week_key(sale_date), []).append(sale)

    if anchor is not None:
        grouped.setdefault(week_key(anchor), [])

    buckets = []
    for key, bucket_sales in grouped.items():
        week = commission_week_range(date.fromisoformat(key))
        buckets.append(WeekBucket(
            key=key,
            start=week.start,
            end=week.end,
            label=format_week_label(week.start, week.end),
            sales=tuple(bucket_sales),
        ))

    return sorted(buckets, key=lambda bucket: bucket.start, reverse=True)


def find_week_bucket(buckets: List[WeekBucket], key: Optional[str] = None) -> Optional[WeekBucket]:
    """Bucket for ``key``; the most recent bucket when no key is given."""
    if not key:
        return buckets[0] if buckets else None
    for bucket in buckets:
        if bucket.key == key:
            return bucket
    return None

"""Tests for commission and bonus week windows"""
import sys
from datetime import date, datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from commission_report.date_windows import (
    bonus_week_range,
    build_week_buckets,
    commission_week_range,
    commission_week_start,
    find_week_bucket,
    format_display_date,
    format_week_label,
    parse_sale_date,
    week_key,
)
from commission_report.models import Sale


class TestParseSaleDate:
    def test_iso(self):
        assert parse_sale_date("2024-06-07") == date(2024, 6, 7)
        assert parse_sale_date("2024-6-7") == date(2024, 6, 7)

    def test_iso_with_time(self):
        assert parse_sale_date("2024-06-07T10:30:00Z") == date(2024, 6, 7)
        assert parse_sale_date("2024-06-07 10:30") == date(2024, 6, 7)

    def test_us_format(self):
        assert parse_sale_date("6/7/2024") == date(2024, 6, 7)
        assert parse_sale_date("06-07-24") == date(2024, 6, 7)
        assert parse_sale_date("1/2/85") == date(1985, 1, 2)

    def test_date_objects(self):
        assert parse_sale_date(date(2024, 6, 7)) == date(2024, 6, 7)
        assert parse_sale_date(datetime(2024, 6, 7, 18, 0)) == date(2024, 6, 7)

    def test_invalid(self):
        assert parse_sale_date(None) is None
        assert parse_sale_date("") is None
        assert parse_sale_date("not a date") is None
        assert parse_sale_date("2024-02-30") is None


class TestCommissionWeek:
    """Commission weeks run Friday through Thursday"""

    def test_friday_starts_week(self):
        # 2024-06-07 is a Friday
        assert commission_week_start(date(2024, 6, 7)) == datetime(2024, 6, 7)

    def test_thursday_belongs_to_previous_friday(self):
        assert commission_week_start(date(2024, 6, 13)) == datetime(2024, 6, 7)
        assert commission_week_start(date(2024, 6, 14)) == datetime(2024, 6, 14)

    def test_range_bounds(self):
        week = commission_week_range(date(2024, 6, 10))
        assert week.start == datetime(2024, 6, 7)
        assert week.end == datetime(2024, 6, 13, 23, 59, 59, 999000)

    def test_week_key_stable_across_week(self):
        keys = {
            week_key(datetime(2024, 6, 7, 0, 0)),
            week_key(date(2024, 6, 10)),
            week_key(datetime(2024, 6, 13, 23, 59, 59)),
        }
        assert keys == {"2024-06-07"}
        assert week_key(date(2024, 6, 14)) == "2024-06-14"


class TestBonusWeek:
    def test_starts_monday_before_commission_week(self):
        bonus = bonus_week_range(datetime(2024, 6, 7))
        assert bonus.start == datetime(2024, 6, 3)
        assert bonus.end == datetime(2024, 6, 9, 23, 59, 59, 999000)


class TestFormatting:
    def test_display_date(self):
        assert format_display_date(date(2024, 6, 7)) == "06/07/2024"

    def test_week_label(self):
        assert format_week_label(date(2024, 6, 7), date(2024, 6, 13)) == "Jun 7, 2024 → Jun 13, 2024"


class TestWeekBuckets:
    def setup_method(self):
        self.sales = [
            Sale(sale_id="1", sale_date="2024-06-07"),
            Sale(sale_id="2", sale_date="6/10/2024"),
            Sale(sale_id="3", sale_date="2024-05-31"),
            Sale(sale_id="4", sale_date="garbage"),
        ]

    def test_groups_newest_first(self):
        buckets = build_week_buckets(self.sales)
        assert [bucket.key for bucket in buckets] == ["2024-06-07", "2024-05-31"]
        assert [sale.sale_id for sale in buckets[0].sales] == ["1", "2"]
        assert buckets[0].label == "Jun 7, 2024 → Jun 13, 2024"

    def test_anchor_week_always_present(self):
        # 2024-06-20 is a Thursday in the week starting 2024-06-14
        buckets = build_week_buckets(self.sales, anchor=date(2024, 6, 20))
        assert [bucket.key for bucket in buckets] == ["2024-06-14", "2024-06-07", "2024-05-31"]
        assert buckets[0].sales == ()

    def test_find_bucket(self):
        buckets = build_week_buckets(self.sales)
        assert find_week_bucket(buckets).key == "2024-06-07"
        assert find_week_bucket(buckets, "2024-05-31").key == "2024-05-31"
        assert find_week_bucket(buckets, "1999-01-01") is None
        assert find_week_bucket([]) is None

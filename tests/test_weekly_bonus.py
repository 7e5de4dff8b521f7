"""Tests for the weekly sales volume bonus"""
import sys
from datetime import date, datetime, timezone
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from commission_report.date_windows import bonus_week_range
from commission_report.models import Sale, SplitEntry
from commission_report.weekly_bonus import (
    compute_weekly_bonus,
    counts_toward_bonus,
    deal_id,
    sale_type_category,
)


def make_sales(count, salesperson="Alex", sale_date="2024-06-04", sale_type="Sale"):
    return [
        Sale(sale_id=f"{salesperson}-{i}", sale_date=sale_date, salesperson=salesperson, sale_type=sale_type)
        for i in range(count)
    ]


class TestWeeklyBonus:
    """Bonus week for the commission week of Fri 2024-06-07 is Mon 06-03 through Sun 06-09"""

    def setup_method(self):
        self.bonus_range = bonus_week_range(date(2024, 6, 7))

    def test_five_deals_pay_nothing(self):
        result = compute_weekly_bonus(make_sales(5), self.bonus_range)
        assert result.global_stats.count == 5
        assert result.global_stats.over == 0
        assert result.global_stats.bonus == 0

    def test_sixth_deal_pays_fifty(self):
        result = compute_weekly_bonus(make_sales(6), self.bonus_range)
        assert result.global_stats.over == 1
        assert result.global_stats.bonus == 50
        assert result.for_salesperson("Alex").bonus == 50

    def test_global_bonus_counts_union_of_deals(self):
        sales = make_sales(4, "Alex") + make_sales(4, "Sam")
        result = compute_weekly_bonus(sales, self.bonus_range)
        assert result.for_salesperson("Alex").bonus == 0
        assert result.for_salesperson("Sam").bonus == 0
        assert result.global_stats.count == 8
        assert result.global_stats.bonus == 150

    def test_split_deal_counts_once_overall(self):
        sale = Sale(
            sale_id="S1",
            sale_date="2024-06-05",
            salesperson="Alex",
            salesperson_split=[SplitEntry("Alex", 50), SplitEntry("Sam", 50)],
        )
        result = compute_weekly_bonus([sale], self.bonus_range)
        assert result.global_stats.count == 1
        assert result.for_salesperson("Alex").count == 1
        assert result.for_salesperson("Sam").count == 1

    def test_duplicate_deal_ids_deduplicated(self):
        sales = [
            Sale(account_number="1001", sale_date="2024-06-04", salesperson="Alex"),
            Sale(account_number="1001", sale_date="2024-06-05", salesperson="Alex"),
        ]
        result = compute_weekly_bonus(sales, self.bonus_range)
        assert result.global_stats.count == 1

    def test_excluded_sale_types(self):
        sales = (
            make_sales(1, sale_type="Name Change")
            + make_sales(1, "Sam", sale_type="lease")
            + make_sales(1, "Pat", sale_type="Cash")
            + make_sales(1, "Lee", sale_type="Trade In")
            + make_sales(1, "Kim", sale_type=None)
        )
        result = compute_weekly_bonus(sales, self.bonus_range)
        assert result.global_stats.deals == {"Lee-0", "Kim-0"}

    def test_outside_bonus_week_ignored(self):
        sales = make_sales(3, sale_date="2024-06-02") + make_sales(3, "Sam", sale_date="2024-06-10")
        result = compute_weekly_bonus(sales, self.bonus_range)
        assert result.global_stats.count == 0

    def test_unknown_salesperson_has_empty_stats(self):
        result = compute_weekly_bonus([], self.bonus_range)
        assert result.for_salesperson("Nobody").count == 0


class TestDealHelpers:
    def test_deal_id_prefers_sale_id(self):
        sale = Sale(sale_id="S1", account_number="1001", vin="VIN1")
        assert deal_id(sale, date(2024, 6, 4)) == "S1"

    def test_deal_id_falls_back_to_date(self):
        expected = int(datetime(2024, 6, 4, tzinfo=timezone.utc).timestamp() * 1000)
        assert deal_id(Sale(), date(2024, 6, 4)) == f"{expected}-"

    def test_counts_toward_bonus(self):
        assert counts_toward_bonus("Sale")
        assert counts_toward_bonus("trade-in")
        assert counts_toward_bonus("")
        assert not counts_toward_bonus("name-change")
        assert not counts_toward_bonus("Cash Sale")

    def test_sale_type_category(self):
        assert sale_type_category("Cash Sale") == "cash"
        assert sale_type_category("trade-in") == "trade"
        assert sale_type_category("Name Change") == "namechange"
        assert sale_type_category(None) == "sale"
        assert sale_type_category("lease") == "other"

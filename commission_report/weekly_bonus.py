"""Weekly sales volume bonus

Every distinct deal in the bonus week counts once, no matter how many
salespeople shared it. Each deal past the fifth pays a flat bonus:

    over  = max(deals - 5, 0)
    bonus = over * $50

The dealership-wide figure (paid to Key) is computed the same way over the
union of all deals, not by adding up individual bonuses.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Set

from .date_windows import parse_sale_date
from .models import DateRange, Sale
from .splits import normalize_name
from config import (
    BONUS_SALE_TYPES,
    NAME_CHANGE_SALE_TYPES,
    WEEKLY_BONUS_PER_DEAL,
    WEEKLY_BONUS_THRESHOLD,
)


SALE_TYPE_LABELS = {
    'sale': 'Sale',
    'cash': 'Cash Sale',
    'trade': 'Trade-In',
    'namechange': 'Name Change',
    'other': 'Other',
}


def normalize_sale_type(value: Optional[str]) -> str:
    if not value:
        return ''
    return re.sub(r'\s+', '', value.lower())


def sale_type_category(value: Optional[str]) -> str:
    """Bucket a stored sale type into sale, cash, trade, namechange or other."""
    normalized = normalize_sale_type(value)
    if normalized in ('cashsale', 'cash'):
        return 'cash'
    if normalized in ('trade', 'tradein', 'trade-in'):
        return 'trade'
    if normalized in NAME_CHANGE_SALE_TYPES:
        return 'namechange'
    if normalized in ('sale', ''):
        return 'sale'
    return 'other'


@dataclass
class WeeklyBonusStats:
    deals: Set[str] = field(default_factory=set)
    count: int = 0
    over: int = 0
    bonus: float = 0

    def finalize(self) -> 'WeeklyBonusStats':
        self.count = len(self.deals)
        self.over = max(self.count - WEEKLY_BONUS_THRESHOLD, 0)
        self.bonus = self.over * WEEKLY_BONUS_PER_DEAL
        return self


@dataclass
class WeeklyBonusBreakdown:
    per_salesperson: Dict[str, WeeklyBonusStats]
    global_stats: WeeklyBonusStats

    def for_salesperson(self, name: str) -> WeeklyBonusStats:
        return self.per_salesperson.get(name) or WeeklyBonusStats()


def counts_toward_bonus(sale_type: Optional[str]) -> bool:
    normalized = normalize_sale_type(sale_type)
    if normalized in NAME_CHANGE_SALE_TYPES:
        return False
    # Unknown types are dropped rather than counted
    return not normalized or normalized in BONUS_SALE_TYPES


def deal_id(sale: Sale, sale_date) -> str:
    """First available identifier: sale id, account, stock number, VIN."""
    for candidate in (sale.sale_id, sale.account_number, sale.stock_number, sale.vin):
        if candidate:
            return candidate
    epoch_ms = int(datetime(sale_date.year, sale_date.month, sale_date.day,
                            tzinfo=timezone.utc).timestamp() * 1000)
    return f"{epoch_ms}-{sale.sale_id or ''}"


def compute_weekly_bonus(sales: Iterable[Sale], bonus_range: DateRange) -> WeeklyBonusBreakdown:
    """
    Count distinct deals per salesperson and overall within the bonus week.

    Args:
        sales: Full sale history (the bonus week can reach into the
            previous commission week)
        bonus_range: Inclusive bonus week bounds

    Returns:
        WeeklyBonusBreakdown with per-salesperson and global stats
    """
    per_salesperson: Dict[str, WeeklyBonusStats] = {}
    global_stats = WeeklyBonusStats()
    start = bonus_range.start.date()
    end = bonus_range.end.date()

    for sale in sales:
        sale_date = parse_sale_date(sale.sale_date)
        if sale_date is None or sale_date < start or sale_date > end:
            continue
        if not counts_toward_bonus(sale.sale_type):
            continue

        deal = deal_id(sale, sale_date)
        global_stats.deals.add(deal)

        if sale.salesperson_split:
            participants = {normalize_name(split.name) for split in sale.salesperson_split}
        else:
            participants = {normalize_name(sale.salesperson)}

        for name in participants:
            per_salesperson.setdefault(name, WeeklyBonusStats()).deals.add(deal)

    for stats in per_salesperson.values():
        stats.finalize()

    return WeeklyBonusBreakdown(per_salesperson=per_salesperson, global_stats=global_stats.finalize())

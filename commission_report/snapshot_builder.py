"""Builds commission report snapshots for a commission week"""
import re
from dataclasses import replace
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .calculator import apply_commission_override, calculate_base_commission, round_half_up
from .date_windows import (
    DateLike,
    bonus_week_range,
    format_date_key,
    format_display_date,
    parse_sale_date,
)
from .models import (
    CommissionReportRow,
    CommissionReportSnapshot,
    CommissionSalespersonSnapshot,
    ReportTotals,
    Sale,
)
from .splits import default_split_note, normalize_name, normalize_splits, resolve_row_note
from .weekly_bonus import SALE_TYPE_LABELS, compute_weekly_bonus, sale_type_category
from config import HOUSE_SALESPERSON

# Sale types whose commission is entered by hand when manual entries are in use
MANUAL_COMMISSION_CATEGORIES = ('cash', 'trade', 'namechange')

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def sale_key(sale: Sale) -> str:
    """Stable identifier for a sale, used to key report rows and notes."""
    parts = [sale.sale_date, sale.account_number, sale.sale_id, sale.vin, sale.vin_last4]
    return '|'.join(str(part) for part in parts if part)


def row_key(sale: Sale, participant: str) -> str:
    return f"{sale_key(sale)}|{participant}"


def _leading_int(value: str) -> Optional[int]:
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def compare_account_numbers(a: str, b: str) -> int:
    """Numeric accounts ascending, numeric before non-numeric, else text order."""
    if a == b:
        return 0
    num_a = _leading_int(a)
    num_b = _leading_int(b)
    if num_a is not None and num_b is not None and num_a != num_b:
        return -1 if num_a < num_b else 1
    if num_a is not None and num_b is None:
        return -1
    if num_a is None and num_b is not None:
        return 1
    return -1 if a < b else 1


def _compare_sales(a: Sale, b: Sale) -> int:
    by_account = compare_account_numbers(a.account_number or '', b.account_number or '')
    if by_account:
        return by_account
    date_a = parse_sale_date(a.sale_date)
    date_b = parse_sale_date(b.sale_date)
    ord_a = date_a.toordinal() if date_a else 0
    ord_b = date_b.toordinal() if date_b else 0
    return (ord_a > ord_b) - (ord_a < ord_b)


def _compare_rows(a: CommissionReportRow, b: CommissionReportRow) -> int:
    by_account = compare_account_numbers(a.account_number, b.account_number)
    if by_account:
        return by_account
    return (a.sale_date > b.sale_date) - (a.sale_date < b.sale_date)


def sort_sales(sales: Iterable[Sale]) -> List[Sale]:
    return sorted(sales, key=cmp_to_key(_compare_sales))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_house(name: str) -> bool:
    return name.lower() == HOUSE_SALESPERSON.lower()


def _house_entry(mapping: Mapping[str, Any], preferred: Optional[str] = None) -> Any:
    """Look up the house salesperson in a name-keyed map, ignoring case."""
    if preferred is not None and preferred in mapping:
        return mapping[preferred]
    if HOUSE_SALESPERSON in mapping:
        return mapping[HOUSE_SALESPERSON]
    for name, value in mapping.items():
        if _is_house(name):
            return value
    return None


def _build_rows(sale: Sale, notes: Mapping[str, str],
                manual_commissions: Optional[Mapping[str, float]]) -> List[CommissionReportRow]:
    sale_date = parse_sale_date(sale.sale_date)
    if sale_date is None:
        return []

    true_down_payment = sale.true_down_payment
    splits = normalize_splits(sale.salesperson_split, sale.salesperson)
    is_split = len(splits) > 1
    default_note = default_split_note(splits)
    category = sale_type_category(sale.sale_type)
    manual_entry = manual_commissions is not None and category in MANUAL_COMMISSION_CATEGORIES
    base_commission = calculate_base_commission(true_down_payment)

    rows = []
    for split in splits:
        key = row_key(sale, split.name)
        manual_note = notes.get(key, '')
        commission_before_override = base_commission * (max(0.0, split.share) / 100)
        result = apply_commission_override(commission_before_override, manual_note or None)

        if manual_entry:
            manual_value = manual_commissions.get(key)
            adjusted = float(manual_value) if _is_number(manual_value) else 0.0
            details = f"{SALE_TYPE_LABELS[category]} manual entry"
        else:
            adjusted = result.amount
            details = f"Split share {round_half_up(split.share, 2):.2f}%" if is_split else result.details

        rows.append(CommissionReportRow(
            key=key,
            sequence=0,
            sale_id=sale.sale_id or key,
            sale_date=format_date_key(sale_date),
            sale_date_display=format_display_date(sale_date),
            account_number=sale.account_number or sale.sale_id or '',
            salesperson=split.name,
            vehicle=sale.vehicle,
            vin_last4=sale.display_vin_last4,
            true_down_payment=true_down_payment,
            base_commission=commission_before_override,
            adjusted_commission=max(0.0, adjusted),
            # A shared sale is itself an override of the default payout
            override_applied=manual_entry or result.override_applied or is_split,
            override_details=details,
            notes=resolve_row_note(manual_note, default_note),
            sale_type=sale.sale_type or '',
        ))
    return rows


def build_snapshot(
    sales: Sequence[Sale],
    notes: Optional[Mapping[str, str]],
    start: DateLike,
    end: DateLike,
    collections_selections: Optional[Mapping[str, Any]] = None,
    collections_locks: Optional[Mapping[str, bool]] = None,
    all_sales: Optional[Sequence[Sale]] = None,
    manual_commissions: Optional[Mapping[str, float]] = None,
    generated_at: Optional[str] = None,
) -> CommissionReportSnapshot:
    """
    Build the commission statement for one commission week.

    Args:
        sales: Sales in the commission week
        notes: Manual row notes keyed by row key
        start: Commission week start (Friday)
        end: Commission week end (Thursday)
        collections_selections: Collections bonus selection by salesperson
        collections_locks: Collections bonus lock flag by salesperson
        all_sales: Full sale history for the weekly bonus lookback;
            defaults to ``sales``
        manual_commissions: Hand-entered commissions by row key for cash,
            trade and name change sales; None computes every row normally
        generated_at: Timestamp to stamp on the snapshot; defaults to now

    Returns:
        A new CommissionReportSnapshot. Inputs are never modified.
    """
    notes = notes or {}
    selections = {normalize_name(name): value for name, value in (collections_selections or {}).items()}
    locks = {normalize_name(name): bool(value) for name, value in (collections_locks or {}).items()}

    bonus_range = bonus_week_range(start)
    weekly_bonus = compute_weekly_bonus(all_sales if all_sales is not None else sales, bonus_range)

    rows_by_salesperson: Dict[str, List[CommissionReportRow]] = {}
    for sale in sort_sales(sales):
        for row in _build_rows(sale, notes, manual_commissions):
            rows_by_salesperson.setdefault(row.salesperson, []).append(row)

    salespeople = []
    for name, rows in rows_by_salesperson.items():
        ordered = sorted(rows, key=cmp_to_key(_compare_rows))
        numbered = tuple(
            replace(row, sequence=index)
            for index, row in enumerate(ordered, 1)
        )
        total = sum(row.adjusted_commission for row in numbered)

        if _is_house(name):
            selection = _house_entry(selections, name)
            stats = weekly_bonus.global_stats
            salespeople.append(CommissionSalespersonSnapshot(
                salesperson=name,
                rows=numbered,
                total_adjusted_commission=total,
                collections_bonus=selection if _is_number(selection) else None,
                weekly_sales_count=stats.count,
                weekly_sales_count_over_threshold=stats.over,
                weekly_sales_bonus=stats.bonus,
            ))
        else:
            salespeople.append(CommissionSalespersonSnapshot(
                salesperson=name,
                rows=numbered,
                total_adjusted_commission=total,
            ))

    salespeople.sort(key=lambda person: (not person.is_house, person.salesperson.lower(), person.salesperson))

    house = next((person for person in salespeople if person.is_house), None)
    house_selection = _house_entry(selections)
    house_locked = bool(_house_entry(locks))
    totals = ReportTotals(
        total_commission=house.total_adjusted_commission if house else 0.0,
        collections_bonus=house_selection if _is_number(house_selection) else 0.0,
        bonus_weekly_sales_count=house.weekly_sales_count if house else 0,
        bonus_weekly_sales_over_threshold=house.weekly_sales_count_over_threshold if house else 0,
        bonus_weekly_sales_dollars=house.weekly_sales_bonus if house else 0.0,
        collections_complete=_is_number(house_selection) and house_locked,
    )

    return CommissionReportSnapshot(
        period_start=format_date_key(start),
        period_end=format_date_key(end),
        generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
        salespeople=tuple(salespeople),
        totals=totals,
    )

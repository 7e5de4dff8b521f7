"""Data models for Dealership Commission Reports"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Tuple, Dict, Any

from config import HOUSE_SALESPERSON


def to_float(value: Any) -> Optional[float]:
    """Coerce a stored numeric value, treating blanks as missing."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = str(value).strip().replace('$', '').replace(',', '')
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


# Stored records come from the remote store in camelCase
_SALE_FIELD_ALIASES = {
    'saleId': 'sale_id',
    'saleDate': 'sale_date',
    'salespersonSplit': 'salesperson_split',
    'salePrice': 'sale_price',
    'saleDownPayment': 'sale_down_payment',
    'downPayment': 'down_payment',
    'saleType': 'sale_type',
    'stockNumber': 'stock_number',
    'accountNumber': 'account_number',
    'vinLast4': 'vin_last4',
}


@dataclass
class SplitEntry:
    """One raw salesperson split entry as stored on a sale"""
    name: str = ""
    share: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SplitEntry':
        return cls(name=str(data.get('name') or ''), share=to_float(data.get('share')))


@dataclass
class Sale:
    """A completed vehicle sale (read-only to the commission engine)"""
    sale_id: str = ""
    sale_date: str = ""  # As stored; may be malformed
    salesperson: Optional[str] = None
    salesperson_split: List[SplitEntry] = field(default_factory=list)
    sale_price: Optional[float] = None
    sale_down_payment: Optional[float] = None
    down_payment: Optional[float] = None
    sale_type: Optional[str] = None
    stock_number: Optional[str] = None
    account_number: Optional[str] = None
    vin: Optional[str] = None
    vin_last4: Optional[str] = None
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None

    @property
    def true_down_payment(self) -> float:
        """Sale down payment, falling back to down payment, then sale price."""
        for value in (self.sale_down_payment, self.down_payment, self.sale_price):
            if value is not None:
                return float(value)
        return 0.0

    @property
    def vehicle(self) -> str:
        parts = [self.year, self.make, self.model]
        return ' '.join(str(part) for part in parts if part)

    @property
    def display_vin_last4(self) -> str:
        """Last four VIN characters, zero padded."""
        if self.vin_last4:
            raw = str(self.vin_last4)
        elif self.vin and len(self.vin) >= 4:
            raw = self.vin[-4:]
        else:
            raw = ''
        return raw.rjust(4, '0')[-4:] if raw else ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sale':
        record = {_SALE_FIELD_ALIASES.get(key, key): value for key, value in data.items()}

        splits = record.get('salesperson_split') or []
        year = to_float(record.get('year'))

        return cls(
            sale_id=_to_text(record.get('sale_id')) or '',
            sale_date=_to_text(record.get('sale_date')) or '',
            salesperson=_to_text(record.get('salesperson')),
            salesperson_split=[
                s if isinstance(s, SplitEntry) else SplitEntry.from_dict(s) for s in splits
            ],
            sale_price=to_float(record.get('sale_price')),
            sale_down_payment=to_float(record.get('sale_down_payment')),
            down_payment=to_float(record.get('down_payment')),
            sale_type=_to_text(record.get('sale_type')),
            stock_number=_to_text(record.get('stock_number')),
            account_number=_to_text(record.get('account_number')),
            vin=_to_text(record.get('vin')),
            vin_last4=_to_text(record.get('vin_last4')),
            year=int(year) if year is not None else None,
            make=_to_text(record.get('make')),
            model=_to_text(record.get('model')),
        )


@dataclass(frozen=True)
class NormalizedSplit:
    """A split participant with a share renormalized to a 100% total"""
    name: str
    share: float  # Percentage, 0-100


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class WeekBucket:
    """All sales falling in one commission week"""
    key: str
    start: datetime
    end: datetime
    label: str
    sales: Tuple[Sale, ...] = ()


@dataclass(frozen=True)
class CollectionsBonusState:
    """Persisted collections bonus selection for one commission week"""
    value: Optional[float] = None
    locked: bool = False
    saved_at: Optional[str] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class CommissionReportRow:
    """One report line per (sale, split participant)"""
    key: str
    sequence: int
    sale_id: str
    sale_date: str  # ISO YYYY-MM-DD
    sale_date_display: str
    account_number: str
    salesperson: str
    vehicle: str
    vin_last4: str
    true_down_payment: float
    base_commission: float
    adjusted_commission: float
    override_applied: bool
    override_details: Optional[str]
    notes: str
    sale_type: str = ""


@dataclass(frozen=True)
class CommissionSalespersonSnapshot:
    """All rows and totals for one salesperson"""
    salesperson: str
    rows: Tuple[CommissionReportRow, ...]
    total_adjusted_commission: float
    # Only populated for the house salesperson
    collections_bonus: Optional[float] = None
    weekly_sales_count: Optional[int] = None
    weekly_sales_count_over_threshold: Optional[int] = None
    weekly_sales_bonus: Optional[float] = None

    @property
    def is_house(self) -> bool:
        return self.salesperson.lower() == HOUSE_SALESPERSON.lower()

    @property
    def total_payout(self) -> float:
        if not self.is_house:
            return self.total_adjusted_commission
        return (self.total_adjusted_commission
                + (self.collections_bonus or 0)
                + (self.weekly_sales_bonus or 0))


@dataclass(frozen=True)
class ReportTotals:
    total_commission: float = 0.0
    collections_bonus: float = 0.0
    bonus_weekly_sales_count: int = 0
    bonus_weekly_sales_over_threshold: int = 0
    bonus_weekly_sales_dollars: float = 0.0
    collections_complete: bool = False


@dataclass(frozen=True)
class CommissionReportSnapshot:
    """Complete commission statement for one commission week.

    Built fresh on every recompute; edits produce a new snapshot.
    """
    period_start: str
    period_end: str
    generated_at: str
    salespeople: Tuple[CommissionSalespersonSnapshot, ...]
    totals: ReportTotals

    @property
    def house(self) -> Optional[CommissionSalespersonSnapshot]:
        for person in self.salespeople:
            if person.is_house:
                return person
        return None

    @property
    def rows(self) -> List[CommissionReportRow]:
        return [row for person in self.salespeople for row in person.rows]

    def get_salesperson(self, name: str) -> Optional[CommissionSalespersonSnapshot]:
        for person in self.salespeople:
            if person.salesperson == name:
                return person
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CommissionReportSnapshot':
        salespeople = []
        for person in data.get('salespeople', []):
            person = dict(person)
            rows = tuple(CommissionReportRow(**row) for row in person.pop('rows', []))
            salespeople.append(CommissionSalespersonSnapshot(rows=rows, **person))

        return cls(
            period_start=data['period_start'],
            period_end=data['period_end'],
            generated_at=data.get('generated_at', ''),
            salespeople=tuple(salespeople),
            totals=ReportTotals(**data.get('totals', {})),
        )

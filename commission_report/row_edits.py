"""Turns edited report table cells into note and manual commission updates"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Sequence

from .manual_commissions import clean_manual_amount
from .models import CommissionReportRow
from .snapshot_builder import MANUAL_COMMISSION_CATEGORIES
from .weekly_bonus import sale_type_category


@dataclass
class RowEdits:
    notes: Dict[str, str] = field(default_factory=dict)
    manual_commissions: Dict[str, str] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.notes or self.manual_commissions)


def _cell_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ''
    return str(value)


def collect_row_edits(
    rows: Sequence[CommissionReportRow],
    edited_records: Iterable[Mapping[str, Any]],
    stored_notes: Mapping[str, str],
    stored_manual: Mapping[str, str],
) -> RowEdits:
    """
    Compare edited "Notes" / "Manual $" cells with what is stored.

    An edit only counts when it differs from both the rendered value and the
    stored value, so re-submitting the same cells (a cleared default split
    note, an amount typed with stray characters) yields no updates.
    Manual amounts are returned cleaned and only for manual-entry sale types.
    """
    edits = RowEdits()
    for row, record in zip(rows, edited_records):
        note = _cell_text(record.get('Notes'))
        if note != row.notes and note != stored_notes.get(row.key, ''):
            edits.notes[row.key] = note

        if sale_type_category(row.sale_type) not in MANUAL_COMMISSION_CATEGORIES:
            continue
        amount = clean_manual_amount(_cell_text(record.get('Manual $')))
        if amount != stored_manual.get(row.key, ''):
            edits.manual_commissions[row.key] = amount
    return edits

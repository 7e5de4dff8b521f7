"""Hand-entered commissions for cash, trade-in and name change sales"""
import json
import re
from typing import Any, Dict, Mapping

from .record_storage import KeyedRecordStorage
from .sheets_storage import MANUAL_COMMISSIONS_HEADERS

_NON_AMOUNT = re.compile(r'[^0-9.]')


def clean_manual_amount(value: Any) -> str:
    """Digits and dots of a typed amount ("$1,250.50" -> "1250.50")."""
    if value is None:
        return ''
    return _NON_AMOUNT.sub('', str(value))


def sanitize_manual_commissions(overrides: Mapping[str, Any]) -> Dict[str, str]:
    """Keep only digits and dots; drop entries that end up empty."""
    sanitized = {}
    for key, value in overrides.items():
        if not isinstance(value, str):
            continue
        cleaned = clean_manual_amount(value)
        if cleaned:
            sanitized[key] = cleaned
    return sanitized


def parse_manual_commissions(overrides: Mapping[str, str]) -> Dict[str, float]:
    """Manual entries as amounts, keyed by report row key."""
    amounts = {}
    for key, value in sanitize_manual_commissions(overrides).items():
        try:
            amounts[key] = float(value)
        except ValueError:
            continue
    return amounts


class ManualCommissionStore(KeyedRecordStorage):
    """Manual commission entries per commission week"""

    SHEET_NAME = 'manual_commissions'
    HEADERS = MANUAL_COMMISSIONS_HEADERS
    LOCAL_FILE = 'manual_commissions.json'

    def _decode_sheet_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        raw = record.get('overrides') or '{}'
        try:
            overrides = json.loads(raw) if isinstance(raw, str) else {}
        except json.JSONDecodeError:
            overrides = {}
        return {'week_key': str(record.get('week_key', '')), 'overrides': overrides}

    def _encode_sheet_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return {'week_key': record['week_key'], 'overrides': json.dumps(record['overrides'])}

    def get(self, week_key: str) -> Dict[str, str]:
        record = self._get_record(week_key)
        if not record:
            return {}
        return sanitize_manual_commissions(record.get('overrides') or {})

    def save(self, week_key: str, overrides: Mapping[str, Any]) -> Dict[str, str]:
        """Persist a week's entries; an empty map removes the week."""
        sanitized = sanitize_manual_commissions(overrides)
        if not sanitized:
            self._delete_record(week_key)
            return {}
        self._put_record({'week_key': week_key, 'overrides': sanitized})
        return sanitized

    def set_entry(self, week_key: str, row_key: str, value: str) -> Dict[str, str]:
        """Update one row's entry; a value with no digits removes it."""
        overrides = self.get(week_key)
        cleaned = clean_manual_amount(value)
        if cleaned:
            overrides[row_key] = cleaned
        else:
            overrides.pop(row_key, None)
        return self.save(week_key, overrides)

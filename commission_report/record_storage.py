"""Keyed record storage - Google Sheets with a local JSON fallback"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .sheets_storage import get_sheets_client, use_google_sheets

logger = logging.getLogger(__name__)


def to_bool(value: Any) -> bool:
    """Read a boolean stored as a bool or as text ("true", "1", "yes")"""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes')


class KeyedRecordStorage:
    """Manages persistent storage of records identified by their first field

    Automatically uses Google Sheets when credentials are available,
    falls back to local JSON files for development.

    Subclasses set SHEET_NAME, HEADERS (key field first) and LOCAL_FILE.
    """

    SHEET_NAME = ''
    HEADERS: List[str] = []
    LOCAL_FILE = ''

    def __init__(self, data_dir: str = "data"):
        self.data_dir = Path(data_dir)
        self.local_file = self.data_dir / self.LOCAL_FILE

        self._use_sheets = use_google_sheets()
        self._sheets_client = None

        if self._use_sheets:
            try:
                self._sheets_client = get_sheets_client()
                logger.info("Using Google Sheets storage for %s", self.SHEET_NAME)
            except Exception as e:
                logger.warning("Failed to connect to Google Sheets: %s", e)
                logger.warning("Falling back to local storage in %s", self.data_dir)
                self._use_sheets = False

        # Ensure local data directory exists (for fallback)
        if not self._use_sheets:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if not self.local_file.exists():
                self._save_local({})

    @property
    def uses_sheets(self) -> bool:
        return self._use_sheets

    @property
    def key_field(self) -> str:
        return self.HEADERS[0]

    # ============ HOOKS ============

    def _decode_sheet_record(self, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Convert a sheet row (all cells as text/numbers) to a stored record; None skips the row"""
        return record

    def _encode_sheet_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Convert a stored record to sheet cells"""
        return record

    # ============ RECORDS ============

    def _load_records(self) -> Dict[str, Dict[str, Any]]:
        """All records keyed by their key field"""
        if self._use_sheets:
            try:
                rows = self._sheets_client.get_all_rows(self.SHEET_NAME, self.HEADERS)
            except Exception as e:
                logger.error("Error reading %s from sheets: %s", self.SHEET_NAME, e)
                return {}
            records = {}
            for row in rows:
                key = str(row.get(self.key_field, ''))
                if not key:
                    continue
                record = self._decode_sheet_record(row)
                if record is not None:
                    records[key] = record
            return records
        return self._load_local()

    def _get_record(self, key: str) -> Optional[Dict[str, Any]]:
        return self._load_records().get(key)

    def _put_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if self._use_sheets:
            self._sheets_client.upsert_row(self.SHEET_NAME, self.HEADERS, self._encode_sheet_record(record))
            return record

        records = self._load_local()
        records[str(record[self.key_field])] = record
        self._save_local(records)
        return record

    def _delete_record(self, key: str) -> bool:
        if self._use_sheets:
            return self._sheets_client.delete_row(self.SHEET_NAME, self.HEADERS, key)

        records = self._load_local()
        if key not in records:
            return False
        del records[key]
        self._save_local(records)
        return True

    def _load_local(self) -> Dict[str, Dict[str, Any]]:
        """Get all records from the local file"""
        try:
            with open(self.local_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unreadable %s: %s", self.local_file, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save_local(self, records: Dict[str, Dict[str, Any]]):
        """Save records to the local file"""
        with open(self.local_file, 'w', encoding='utf-8') as f:
            json.dump(records, f, indent=2, ensure_ascii=False)

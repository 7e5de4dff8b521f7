"""Google Sheets storage backend for persistent report state"""
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import gspread
import streamlit as st
from google.oauth2.service_account import Credentials

# Google Sheets configuration
SCOPES = [
    'https://www.googleapis.com/auth/spreadsheets',
    'https://www.googleapis.com/auth/drive'
]

# Sheet ID from the Google Sheet URL
SHEET_ID_ENV = 'COMMISSION_SHEET_ID'

# Worksheet layouts (first column is the row key)
COLLECTIONS_BONUS_HEADERS = ['week_key', 'value', 'locked', 'saved_at']
MANUAL_COMMISSIONS_HEADERS = ['week_key', 'overrides']
REPORT_LOG_HEADERS = ['id', 'type', 'logged_at', 'report_date', 'data']


def has_google_credentials() -> bool:
    """Whether any Google credential source is configured"""
    try:
        if hasattr(st, 'secrets') and 'gcp_service_account' in st.secrets:
            return True
    except Exception:
        # Streamlit raises when no secrets file exists at all
        pass

    if os.environ.get('GOOGLE_CREDENTIALS_JSON') or os.environ.get('GOOGLE_CREDENTIALS_FILE'):
        return True

    secrets_path = Path(__file__).parent.parent / "secrets" / "google_credentials.json"
    return secrets_path.exists()


def use_google_sheets() -> bool:
    """Determine if we should use Google Sheets or local storage"""
    if os.environ.get('USE_LOCAL_STORAGE', '').lower() == 'true':
        return False
    return has_google_credentials()


def _to_cell(value: Any) -> Any:
    if isinstance(value, bool):
        return str(value).lower()
    if value is None:
        return ''
    return value


class GoogleSheetsClient:
    """Client for interacting with Google Sheets"""

    def __init__(self, sheet_id: Optional[str] = None):
        self.sheet_id = sheet_id or os.environ.get(SHEET_ID_ENV, '')
        self.client = None
        self.spreadsheet = None
        self._connect()

    def _get_credentials(self) -> Optional[Credentials]:
        """Get Google credentials from various sources"""

        # Option 1: Streamlit secrets (for deployed app)
        try:
            if hasattr(st, 'secrets') and 'gcp_service_account' in st.secrets:
                creds_dict = dict(st.secrets['gcp_service_account'])
                return Credentials.from_service_account_info(creds_dict, scopes=SCOPES)
        except Exception:
            # Streamlit raises when no secrets file exists at all
            pass

        # Option 2: Environment variable with JSON content
        creds_json = os.environ.get('GOOGLE_CREDENTIALS_JSON')
        if creds_json:
            return Credentials.from_service_account_info(json.loads(creds_json), scopes=SCOPES)

        # Option 3: Local file in secrets folder
        secrets_path = Path(__file__).parent.parent / "secrets" / "google_credentials.json"
        if secrets_path.exists():
            return Credentials.from_service_account_file(str(secrets_path), scopes=SCOPES)

        # Option 4: File path from environment variable
        creds_file = os.environ.get('GOOGLE_CREDENTIALS_FILE')
        if creds_file and Path(creds_file).exists():
            return Credentials.from_service_account_file(creds_file, scopes=SCOPES)

        return None

    def _connect(self):
        """Connect to Google Sheets"""
        creds = self._get_credentials()
        if not creds:
            raise ValueError(
                "Google credentials not found. Please provide credentials via:\n"
                "1. Streamlit secrets (gcp_service_account)\n"
                "2. GOOGLE_CREDENTIALS_JSON environment variable\n"
                "3. secrets/google_credentials.json file\n"
                "4. GOOGLE_CREDENTIALS_FILE environment variable"
            )
        if not self.sheet_id:
            raise ValueError(f"Spreadsheet ID not set. Set the {SHEET_ID_ENV} environment variable.")

        self.client = gspread.authorize(creds)
        self.spreadsheet = self.client.open_by_key(self.sheet_id)

    def get_worksheet(self, name: str, headers: List[str]):
        """Get or create a worksheet by name, writing headers on creation"""
        try:
            return self.spreadsheet.worksheet(name)
        except gspread.WorksheetNotFound:
            worksheet = self.spreadsheet.add_worksheet(title=name, rows=1000, cols=len(headers))
            worksheet.update(range_name='A1', values=[headers])
            return worksheet

    # ============ KEYED ROWS ============

    def get_all_rows(self, sheet: str, headers: List[str]) -> List[Dict[str, Any]]:
        """Get every record of a worksheet"""
        worksheet = self.get_worksheet(sheet, headers)
        return worksheet.get_all_records()

    def upsert_row(self, sheet: str, headers: List[str], record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record, replacing any existing row with the same key"""
        worksheet = self.get_worksheet(sheet, headers)
        row = [_to_cell(record.get(header, '')) for header in headers]

        cell = worksheet.find(str(record[headers[0]]), in_column=1)
        if cell:
            worksheet.update(range_name=f'A{cell.row}', values=[row])
        else:
            worksheet.append_row(row, value_input_option='RAW')
        return record

    def delete_row(self, sheet: str, headers: List[str], key: str) -> bool:
        """Delete the row whose first column equals ``key``"""
        worksheet = self.get_worksheet(sheet, headers)
        cell = worksheet.find(key, in_column=1)
        if cell:
            worksheet.delete_rows(cell.row)
            return True
        return False


# Singleton instance - cached as Streamlit resource (survives reruns)
@st.cache_resource
def get_sheets_client() -> GoogleSheetsClient:
    """Get or create the Google Sheets client singleton (cached across reruns)."""
    return GoogleSheetsClient()

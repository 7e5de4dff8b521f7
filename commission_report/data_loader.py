"""Data loading utilities for Dealership Commission Reports"""
import json
import re
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from .models import Sale, SplitEntry, to_float

# Spreadsheet headers (lowercased) -> Sale fields
COLUMN_ALIASES = {
    'sale id': 'sale_id',
    'saleid': 'sale_id',
    'id': 'sale_id',
    'date': 'sale_date',
    'sale date': 'sale_date',
    'saledate': 'sale_date',
    'salesperson': 'salesperson',
    'salesman': 'salesperson',
    'split': 'salesperson_split',
    'salesperson split': 'salesperson_split',
    'salespersonsplit': 'salesperson_split',
    'price': 'sale_price',
    'sale price': 'sale_price',
    'saleprice': 'sale_price',
    'down': 'sale_down_payment',
    'sale down payment': 'sale_down_payment',
    'saledownpayment': 'sale_down_payment',
    'down payment': 'down_payment',
    'downpayment': 'down_payment',
    'type': 'sale_type',
    'sale type': 'sale_type',
    'saletype': 'sale_type',
    'stock': 'stock_number',
    'stock #': 'stock_number',
    'stock number': 'stock_number',
    'stocknumber': 'stock_number',
    'account': 'account_number',
    'account #': 'account_number',
    'account number': 'account_number',
    'accountnumber': 'account_number',
    'vin': 'vin',
    'vin last 4': 'vin_last4',
    'vinlast4': 'vin_last4',
    'year': 'year',
    'make': 'make',
    'model': 'model',
}

# "Alex:60; Sam 40" style split text
SPLIT_PART_PATTERN = re.compile(r'^\s*(.+?)\s*[:=]?\s*(\d+(?:\.\d+)?)\s*%?\s*$')


def parse_split_text(value: Any) -> List[SplitEntry]:
    """
    Parse a salesperson split cell.

    Accepts a JSON list (``[{"name": "Alex", "share": 60}]``) or text such
    as ``"Alex:60; Sam:40"`` / ``"Alex 60% | Sam 40%"``.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return [SplitEntry.from_dict(item) for item in value]
    text = str(value).strip()
    if not text or text.lower() == 'nan':
        return []
    if text.startswith('['):
        return [SplitEntry.from_dict(item) for item in json.loads(text)]

    entries = []
    for part in re.split(r'[;|,]', text):
        if not part.strip():
            continue
        match = SPLIT_PART_PATTERN.match(part)
        if match:
            entries.append(SplitEntry(name=match.group(1), share=to_float(match.group(2))))
        else:
            entries.append(SplitEntry(name=part.strip(), share=None))
    return entries


class SaleLoader:
    """
    Load sale records from exports of the dealership database.
    """

    @staticmethod
    def _normalize_record(row: Dict[str, Any]) -> Dict[str, Any]:
        record = {}
        for column, value in row.items():
            if isinstance(value, float) and pd.isna(value):
                continue
            if value is None or value is pd.NaT:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            key = COLUMN_ALIASES.get(str(column).strip().lower(), column)
            record[key] = value
        if 'salesperson_split' in record:
            record['salesperson_split'] = parse_split_text(record['salesperson_split'])
        if isinstance(record.get('sale_date'), pd.Timestamp):
            record['sale_date'] = record['sale_date'].date().isoformat()
        return record

    @staticmethod
    def load_from_dataframe(df: pd.DataFrame) -> List[Sale]:
        """Convert a sales table to Sale records (one row per sale)"""
        return [Sale.from_dict(SaleLoader._normalize_record(row)) for row in df.to_dict(orient='records')]

    @staticmethod
    def load_from_excel(filepath: str) -> List[Sale]:
        """
        Load sales from an Excel file.

        Expected columns (case-insensitive, see COLUMN_ALIASES):
        - Sale Date
        - Account Number, Sale ID, Stock Number, VIN (any that exist)
        - Salesperson or Salesperson Split ("Alex:60; Sam:40")
        - Sale Down Payment / Down Payment / Sale Price
        - Sale Type (optional)
        - Year, Make, Model (optional)
        """
        df = pd.read_excel(filepath)
        return SaleLoader.load_from_dataframe(df)

    @staticmethod
    def load_from_csv(filepath: str) -> List[Sale]:
        """Load sales from a CSV file with the same columns as Excel."""
        df = pd.read_csv(filepath, dtype=str, keep_default_na=False)
        return SaleLoader.load_from_dataframe(df)

    @staticmethod
    def load_from_json(filepath: str) -> List[Sale]:
        """Load sales from a JSON export (list of records, camelCase or snake_case)."""
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return [Sale.from_dict(record) for record in data]

    @staticmethod
    def load(filepath: str) -> List[Sale]:
        """Load sales, choosing the reader from the file extension"""
        suffix = Path(filepath).suffix.lower()
        if suffix == '.csv':
            return SaleLoader.load_from_csv(filepath)
        if suffix in ('.xlsx', '.xls'):
            return SaleLoader.load_from_excel(filepath)
        if suffix == '.json':
            return SaleLoader.load_from_json(filepath)
        raise ValueError(f"Unsupported sales file type: {suffix or filepath}")

"""Log of finalized commission reports for the archived view"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models import CommissionReportSnapshot
from .record_storage import KeyedRecordStorage
from .sheets_storage import REPORT_LOG_HEADERS

REPORT_TYPE = 'Commission'

logger = logging.getLogger(__name__)


class ReportLog(KeyedRecordStorage):
    """Stores frozen snapshots; each entry is {id, type, logged_at, report_date, data}"""

    SHEET_NAME = 'commission_reports'
    HEADERS = REPORT_LOG_HEADERS
    LOCAL_FILE = 'commission_reports.json'

    def _decode_sheet_record(self, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        decoded = dict(record)
        decoded['id'] = str(record.get('id', ''))
        try:
            decoded['data'] = json.loads(record.get('data') or '{}')
        except json.JSONDecodeError as e:
            # Cells are capped at 50,000 characters, so large snapshots can arrive truncated
            logger.warning("Skipping logged report %s with unreadable data: %s", decoded['id'], e)
            return None
        return decoded

    def _encode_sheet_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return {**record, 'data': json.dumps(record['data'])}

    def log_report(self, snapshot: CommissionReportSnapshot) -> Dict[str, Any]:
        """
        Log a snapshot under its period end date.

        Raises:
            ValueError: The house collections bonus is not selected and locked
        """
        if not snapshot.totals.collections_complete:
            raise ValueError("Select and lock a collections bonus for Key before logging the commission report.")

        entry = {
            'id': str(uuid.uuid4()),
            'type': REPORT_TYPE,
            'logged_at': datetime.now(timezone.utc).isoformat(),
            'report_date': snapshot.period_end,
            'data': snapshot.to_dict(),
        }
        return self._put_record(entry)

    def get_all_logs(self) -> List[Dict[str, Any]]:
        """Logged reports, most recent first"""
        logs = list(self._load_records().values())
        return sorted(logs, key=lambda entry: entry.get('logged_at', ''), reverse=True)

    def get_log(self, log_id: str) -> Optional[Dict[str, Any]]:
        return self._get_record(log_id)

    def get_snapshot(self, log_id: str) -> Optional[CommissionReportSnapshot]:
        """The archived snapshot of a logged report"""
        entry = self.get_log(log_id)
        if entry is None:
            return None
        return CommissionReportSnapshot.from_dict(entry['data'])

    def delete_log(self, log_id: str) -> bool:
        return self._delete_record(log_id)

"""Storage regression tests for local JSON backend behavior."""
import json
import os
import sys
from datetime import date
from pathlib import Path

import pytest

# Force local backend for tests
os.environ["USE_LOCAL_STORAGE"] = "true"

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from commission_report.collections_store import (
    CollectionsBonusStore,
    InMemoryCollectionsBonusStore,
    collections_bonus_options,
    collections_inputs,
    select_collections_bonus,
    set_collections_lock,
)
from commission_report.date_windows import commission_week_range
from commission_report.manual_commissions import (
    ManualCommissionStore,
    parse_manual_commissions,
    sanitize_manual_commissions,
)
from commission_report.models import CollectionsBonusState, Sale
from commission_report.report_log import ReportLog
from commission_report.snapshot_builder import build_snapshot

WEEK = "2024-06-07"


def make_snapshot(locked=True):
    week = commission_week_range(date(2024, 6, 7))
    sale = Sale(sale_id="1", sale_date="2024-06-07", salesperson="Key", down_payment=4000)
    return build_snapshot(
        [sale], {}, week.start, week.end,
        collections_selections={"Key": 50},
        collections_locks={"Key": locked},
        generated_at="2024-06-14T12:00:00+00:00",
    )


class TestCollectionsWorkflow:
    def setup_method(self):
        self.store = InMemoryCollectionsBonusStore()

    def test_select_then_lock(self):
        state = select_collections_bonus(self.store, WEEK, 50)
        assert state.value == 50.0
        assert state.locked is False

        state = set_collections_lock(self.store, WEEK, True)
        assert state.locked is True
        assert self.store.get(WEEK).value == 50.0

    def test_locked_selection_cannot_change(self):
        select_collections_bonus(self.store, WEEK, 100)
        set_collections_lock(self.store, WEEK, True)
        with pytest.raises(ValueError):
            select_collections_bonus(self.store, WEEK, 0)

        set_collections_lock(self.store, WEEK, False)
        assert select_collections_bonus(self.store, WEEK, 0).value == 0.0

    def test_lock_requires_selection(self):
        with pytest.raises(ValueError, match="Select a collections bonus before locking."):
            set_collections_lock(self.store, WEEK, True)

    def test_clear_selection(self):
        select_collections_bonus(self.store, WEEK, 50)
        state = select_collections_bonus(self.store, WEEK, None)
        assert state.has_value is False
        assert self.store.get(WEEK).has_value is False

    def test_weeks_are_independent(self):
        select_collections_bonus(self.store, WEEK, 50)
        assert self.store.get("2024-06-14").has_value is False

    def test_collections_inputs(self):
        select_collections_bonus(self.store, WEEK, 50)
        set_collections_lock(self.store, WEEK, True)
        assert collections_inputs(self.store.get(WEEK)) == ({"Key": 50.0}, {"Key": True})
        assert collections_inputs(self.store.get("2024-06-14")) == ({}, {})


class TestCollectionsBonusOptions:
    def test_default_options(self):
        assert collections_bonus_options(CollectionsBonusState()) == [0.0, 50.0, 100.0]

    def test_stored_value_outside_options_is_offered(self):
        # A value set from the command line, e.g. -b 75
        state = CollectionsBonusState(value=75.0)
        assert collections_bonus_options(state) == [0.0, 50.0, 75.0, 100.0]
        assert collections_bonus_options(CollectionsBonusState(value=50.0)) == [0.0, 50.0, 100.0]


class TestCollectionsBonusStoreLocal:
    def test_persists_between_instances(self, tmp_path):
        store = CollectionsBonusStore(data_dir=str(tmp_path))
        assert store.uses_sheets is False
        select_collections_bonus(store, WEEK, 100)
        set_collections_lock(store, WEEK, True)

        reopened = CollectionsBonusStore(data_dir=str(tmp_path))
        state = reopened.get(WEEK)
        assert state.value == 100.0
        assert state.locked is True
        assert state.saved_at
        assert (tmp_path / "collections_bonus.json").exists()

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        (tmp_path / "collections_bonus.json").write_text("{not json", encoding="utf-8")
        store = CollectionsBonusStore(data_dir=str(tmp_path))
        assert store.get(WEEK).has_value is False


class TestManualCommissions:
    def test_sanitize(self):
        assert sanitize_manual_commissions({"a": "$1,250.50", "b": "abc", "c": 5}) == {"a": "1250.50"}

    def test_parse_skips_malformed(self):
        assert parse_manual_commissions({"a": "125", "b": "1.2.3"}) == {"a": 125.0}

    def test_store_set_and_remove_entries(self, tmp_path):
        store = ManualCommissionStore(data_dir=str(tmp_path))
        store.set_entry(WEEK, "row-1", "$150")
        store.set_entry(WEEK, "row-2", "75.5")
        assert ManualCommissionStore(data_dir=str(tmp_path)).get(WEEK) == {"row-1": "150", "row-2": "75.5"}

        store.set_entry(WEEK, "row-1", "")
        assert store.get(WEEK) == {"row-2": "75.5"}

        store.save(WEEK, {})
        assert store.get(WEEK) == {}


class TestReportLog:
    def test_log_and_restore(self, tmp_path):
        log = ReportLog(data_dir=str(tmp_path))
        snapshot = make_snapshot()

        entry = log.log_report(snapshot)
        assert entry['type'] == "Commission"
        assert entry['report_date'] == "2024-06-13"

        reopened = ReportLog(data_dir=str(tmp_path))
        assert [item['id'] for item in reopened.get_all_logs()] == [entry['id']]
        assert reopened.get_snapshot(entry['id']) == snapshot

    def test_incomplete_report_refused(self, tmp_path):
        log = ReportLog(data_dir=str(tmp_path))
        with pytest.raises(ValueError):
            log.log_report(make_snapshot(locked=False))
        assert log.get_all_logs() == []

    def test_newest_first_and_delete(self, tmp_path):
        log = ReportLog(data_dir=str(tmp_path))
        first = log.log_report(make_snapshot())
        second = log.log_report(make_snapshot())
        # Make ordering independent of clock resolution
        log._put_record({**first, 'logged_at': "2024-06-14T00:00:00+00:00"})
        log._put_record({**second, 'logged_at': "2024-06-15T00:00:00+00:00"})

        assert [item['id'] for item in log.get_all_logs()] == [second['id'], first['id']]
        assert log.delete_log(first['id']) is True
        assert log.delete_log(first['id']) is False
        assert log.get_snapshot(first['id']) is None


class FakeSheetsClient:
    def __init__(self, rows):
        self.rows = rows

    def get_all_rows(self, sheet, headers):
        return self.rows


class TestReportLogSheetRows:
    def test_unreadable_data_cell_skipped(self, tmp_path):
        log = ReportLog(data_dir=str(tmp_path))
        snapshot = make_snapshot()
        good = {'id': "good", 'type': "Commission", 'logged_at': "2024-06-14T00:00:00+00:00",
                'report_date': "2024-06-13", 'data': json.dumps(snapshot.to_dict())}
        truncated = {**good, 'id': "cut", 'data': json.dumps(snapshot.to_dict())[:200]}
        log._use_sheets = True
        log._sheets_client = FakeSheetsClient([truncated, good])

        assert [entry['id'] for entry in log.get_all_logs()] == ["good"]
        assert log.get_snapshot("good") == snapshot
        assert log.get_log("cut") is None

"""Tests for salesperson split normalization"""
import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from commission_report.models import NormalizedSplit, SplitEntry
from commission_report.splits import (
    default_split_note,
    normalize_name,
    normalize_splits,
    resolve_row_note,
)


class TestNormalizeSplits:
    def test_no_entries_gives_full_share_to_salesperson(self):
        assert normalize_splits([], " Alex ") == [NormalizedSplit(name="Alex", share=100.0)]

    def test_missing_salesperson_is_unassigned(self):
        assert normalize_splits([], None) == [NormalizedSplit(name="Unassigned", share=100.0)]
        assert normalize_name("   ") == "Unassigned"

    def test_shares_rescaled_to_100(self):
        splits = normalize_splits([SplitEntry("Alex", 3), SplitEntry("Sam", 1)])
        assert [split.share for split in splits] == [75.0, 25.0]

    def test_shares_rounded_to_four_places(self):
        splits = normalize_splits([SplitEntry("A", 1), SplitEntry("B", 1), SplitEntry("C", 1)])
        assert [split.share for split in splits] == [33.3333, 33.3333, 33.3333]
        assert sum(split.share for split in splits) == pytest.approx(100, abs=0.001)

    def test_zero_total_zeroes_every_share(self):
        splits = normalize_splits([SplitEntry("Alex", 0), SplitEntry("Sam", None)])
        assert [split.share for split in splits] == [0.0, 0.0]

    def test_blank_entry_name_uses_salesperson(self):
        splits = normalize_splits([SplitEntry("", 50), SplitEntry("Sam", 50)], "Alex")
        assert [split.name for split in splits] == ["Alex", "Sam"]


class TestSplitNotes:
    def test_default_note_for_shared_sale(self):
        splits = [NormalizedSplit("Alex", 60.0), NormalizedSplit("Sam", 40.0)]
        assert default_split_note(splits) == "Commission split: Alex 60% | Sam 40%"

    def test_note_percentages_round_half_up(self):
        splits = normalize_splits([SplitEntry("Alex", 1), SplitEntry("Sam", 7)])
        assert [split.share for split in splits] == [12.5, 87.5]
        assert default_split_note(splits) == "Commission split: Alex 13% | Sam 88%"

    def test_no_default_note_for_single_salesperson(self):
        assert default_split_note([NormalizedSplit("Alex", 100.0)]) == ""

    def test_manual_note_wins_unless_blank(self):
        assert resolve_row_note("override $50", "Commission split: A 50% | B 50%") == "override $50"
        assert resolve_row_note("   ", "default") == "default"
        assert resolve_row_note(None, "") == ""

"""Salesperson split allocation"""
from typing import List, Optional, Sequence

from .calculator import round_half_up
from .models import NormalizedSplit, SplitEntry
from config import UNASSIGNED_SALESPERSON


def normalize_name(value: Optional[str]) -> str:
    """Canonical salesperson name: trimmed, blank names become Unassigned."""
    if value is None:
        return UNASSIGNED_SALESPERSON
    trimmed = value.strip()
    return trimmed if trimmed else UNASSIGNED_SALESPERSON


def normalize_splits(entries: Sequence[SplitEntry], salesperson: Optional[str] = None) -> List[NormalizedSplit]:
    """
    Normalize a sale's split entries so the shares total 100.

    Without split entries the whole sale goes to ``salesperson``. When the
    entries' shares add up to zero every share is 0, which zeroes the
    commission for all participants.
    """
    fallback_name = normalize_name(salesperson)
    if not entries:
        return [NormalizedSplit(name=fallback_name, share=100.0)]

    total_share = sum(entry.share or 0 for entry in entries)

    splits = []
    for entry in entries:
        share = (entry.share or 0) / total_share * 100 if total_share > 0 else 0.0
        name = (entry.name or '').strip() or fallback_name
        splits.append(NormalizedSplit(name=name, share=round_half_up(share, 4)))
    return splits


def split_summary(splits: Sequence[NormalizedSplit]) -> str:
    return ' | '.join(f"{split.name} {round_half_up(split.share, 0):.0f}%" for split in splits)


def default_split_note(splits: Sequence[NormalizedSplit]) -> str:
    """Note shown on rows of a shared sale, e.g. "Commission split: Alex 60% | Sam 40%"."""
    if len(splits) <= 1:
        return ''
    return f"Commission split: {split_summary(splits)}"


def resolve_row_note(manual_note: Optional[str], default_note: str) -> str:
    if manual_note and manual_note.strip():
        return manual_note
    return default_note

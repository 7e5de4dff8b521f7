"""Collections bonus selection and lock state, persisted per commission week"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .models import CollectionsBonusState, to_float
from .record_storage import KeyedRecordStorage, to_bool
from .sheets_storage import COLLECTIONS_BONUS_HEADERS
from config import COLLECTIONS_BONUS_OPTIONS, HOUSE_SALESPERSON


class CollectionsBonusRepository(Protocol):
    """Any per-week key-value store holding the collections bonus state"""

    def get(self, week_key: str) -> CollectionsBonusState:
        ...

    def set(self, week_key: str, value: float, locked: bool) -> CollectionsBonusState:
        ...

    def clear(self, week_key: str) -> bool:
        ...


def _state_from_record(record: Optional[Dict[str, Any]]) -> CollectionsBonusState:
    if not record:
        return CollectionsBonusState()
    return CollectionsBonusState(
        value=to_float(record.get('value')),
        locked=to_bool(record.get('locked', False)),
        saved_at=record.get('saved_at') or None,
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CollectionsBonusStore(KeyedRecordStorage):
    """Collections bonus state in the ``collections_bonus`` sheet or local JSON.

    Last write wins; the lock is a business rule, not a concurrency guard.
    """

    SHEET_NAME = 'collections_bonus'
    HEADERS = COLLECTIONS_BONUS_HEADERS
    LOCAL_FILE = 'collections_bonus.json'

    def get(self, week_key: str) -> CollectionsBonusState:
        return _state_from_record(self._get_record(week_key))

    def set(self, week_key: str, value: float, locked: bool) -> CollectionsBonusState:
        record = {'week_key': week_key, 'value': float(value), 'locked': bool(locked), 'saved_at': _now()}
        self._put_record(record)
        return _state_from_record(record)

    def clear(self, week_key: str) -> bool:
        return self._delete_record(week_key)


class InMemoryCollectionsBonusStore:
    """Process-local store, for the CLI and tests"""

    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}

    def get(self, week_key: str) -> CollectionsBonusState:
        return _state_from_record(self._records.get(week_key))

    def set(self, week_key: str, value: float, locked: bool) -> CollectionsBonusState:
        self._records[week_key] = {'value': float(value), 'locked': bool(locked), 'saved_at': _now()}
        return self.get(week_key)

    def clear(self, week_key: str) -> bool:
        return self._records.pop(week_key, None) is not None


# ============ WORKFLOW ============

def select_collections_bonus(store: CollectionsBonusRepository, week_key: str,
                             value: Optional[float]) -> CollectionsBonusState:
    """
    Choose the collections bonus for a week.

    Passing None clears the selection (and any lock). Raises ValueError
    while the week is locked.
    """
    current = store.get(week_key)
    if current.locked:
        raise ValueError(f"Collections bonus for week {week_key} is locked. Unlock it before changing it.")
    if value is None:
        store.clear(week_key)
        return CollectionsBonusState()
    return store.set(week_key, value, False)


def set_collections_lock(store: CollectionsBonusRepository, week_key: str,
                         locked: bool) -> CollectionsBonusState:
    """Lock or unlock a week's selection. Locking requires a selected value."""
    current = store.get(week_key)
    if locked and not current.has_value:
        raise ValueError("Select a collections bonus before locking.")
    if current.has_value:
        return store.set(week_key, current.value, locked)
    store.clear(week_key)
    return CollectionsBonusState()


def collections_bonus_options(state: CollectionsBonusState) -> List[float]:
    """Offered bonus values, plus the stored value when it is not one of them (e.g. set from the CLI)."""
    options = {float(value) for value in COLLECTIONS_BONUS_OPTIONS}
    if state.has_value:
        options.add(float(state.value))
    return sorted(options)


def collections_inputs(state: CollectionsBonusState) -> Tuple[Dict[str, float], Dict[str, bool]]:
    """Selections and locks for the snapshot builder, keyed by the house salesperson."""
    selections = {HOUSE_SALESPERSON: state.value} if state.has_value else {}
    locks = {HOUSE_SALESPERSON: True} if state.locked else {}
    return selections, locks

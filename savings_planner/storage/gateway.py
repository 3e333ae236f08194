"""
Persistence Gateway - the only component that touches local storage.

Loading is tolerant per key: a missing or corrupt value degrades to its
empty default and is logged. Saving fails loudly with StorageError.
"""
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from dateutil.parser import isoparse
from pydantic import ValidationError as PydanticValidationError

from savings_planner.errors import StorageError
from savings_planner.goals.models import Goal
from savings_planner.goals.schemas import goal_bound_errors
from savings_planner.rates.cache import SOURCE_STORAGE, RateSnapshot
from savings_planner.storage.store import KeyValueStore

logger = logging.getLogger(__name__)


# Storage keys
KEY_GOALS = "goals"
KEY_LEGACY_GOALS = "savingsGoals"
KEY_EXCHANGE_RATE = "exchangeRate"
KEY_LAST_UPDATED = "lastUpdated"
KEY_UNLOCKED_ACHIEVEMENTS = "unlockedAchievements"

ALL_KEYS = [KEY_GOALS, KEY_LEGACY_GOALS, KEY_EXCHANGE_RATE, KEY_LAST_UPDATED, KEY_UNLOCKED_ACHIEVEMENTS]

# Values written by JS for unset state
_EMPTY_MARKERS = {"", "undefined", "null"}


@dataclass
class PersistedState:
    goals: List[Goal] = field(default_factory=list)
    rate_snapshot: Optional[RateSnapshot] = None
    unlocked_achievement_ids: List[str] = field(default_factory=list)


def _parse_json(raw: Optional[str], key: str) -> Any:
    if raw is None or raw.strip() in _EMPTY_MARKERS:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Corrupt JSON under '{key}', ignoring: {e}")
        return None


def parse_goals(data: Any) -> List[Goal]:
    """Validate stored goal records, dropping any that fail the schema."""
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning(f"Stored goals are not a list ({type(data).__name__}), ignoring")
        return []

    goals: List[Goal] = []
    seen_ids = set()
    for index, record in enumerate(data):
        try:
            goal = Goal.model_validate(record)
        except PydanticValidationError as e:
            logger.warning(f"Dropping invalid stored goal at index {index}: {e.error_count()} error(s)")
            continue
        bound_errors = goal_bound_errors(goal)
        if bound_errors:
            logger.warning(f"Dropping out-of-range stored goal {goal.id}: {bound_errors}")
            continue
        if goal.id in seen_ids:
            logger.warning(f"Dropping duplicate stored goal id {goal.id}")
            continue
        seen_ids.add(goal.id)
        goals.append(goal)
    return goals


def parse_rate_snapshot(raw_rate: Optional[str], raw_timestamp: Optional[str]) -> Optional[RateSnapshot]:
    """Both the rate and its timestamp must be present and valid."""
    if raw_rate is None or raw_timestamp is None:
        return None
    try:
        rate = float(raw_rate)
        fetched_at = isoparse(raw_timestamp)
    except (TypeError, ValueError) as e:
        logger.warning(f"Corrupt cached exchange rate, ignoring: {e}")
        return None
    if not math.isfinite(rate) or rate <= 0:
        logger.warning(f"Invalid cached exchange rate {raw_rate}, ignoring")
        return None
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=timezone.utc)
    return RateSnapshot(rate=rate, fetched_at=fetched_at, source=SOURCE_STORAGE)


def parse_unlocked(data: Any) -> List[str]:
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning("Stored unlocked achievements are not a list, ignoring")
        return []
    return list(dict.fromkeys(item for item in data if isinstance(item, str)))


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


class PersistenceGateway:
    """Typed load/save of ledger, rate snapshot and unlocked achievements."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load(self) -> PersistedState:
        try:
            raw = self.store.get_many(ALL_KEYS)
        except StorageError as e:
            logger.error(f"Could not read local storage, starting empty: {e}")
            return PersistedState()

        goals_raw = raw.get(KEY_GOALS)
        if goals_raw is None:
            goals_raw = raw.get(KEY_LEGACY_GOALS)

        state = PersistedState(
            goals=parse_goals(_parse_json(goals_raw, KEY_GOALS)),
            rate_snapshot=parse_rate_snapshot(raw.get(KEY_EXCHANGE_RATE), raw.get(KEY_LAST_UPDATED)),
            unlocked_achievement_ids=parse_unlocked(
                _parse_json(raw.get(KEY_UNLOCKED_ACHIEVEMENTS), KEY_UNLOCKED_ACHIEVEMENTS)
            ),
        )
        logger.info(
            f"Loaded {len(state.goals)} goal(s), "
            f"rate={'yes' if state.rate_snapshot else 'no'}, "
            f"{len(state.unlocked_achievement_ids)} achievement(s)"
        )
        return state

    def save(
        self,
        goals: Optional[Sequence[Goal]] = None,
        rate_snapshot: Optional[RateSnapshot] = None,
        unlocked_achievement_ids: Optional[Sequence[str]] = None,
    ) -> None:
        """Write the provided parts of the state in one transaction."""
        values = {}
        if goals is not None:
            values[KEY_GOALS] = json.dumps([g.to_storage() for g in goals])
        if rate_snapshot is not None:
            values[KEY_EXCHANGE_RATE] = repr(rate_snapshot.rate)
            values[KEY_LAST_UPDATED] = format_timestamp(rate_snapshot.fetched_at)
        if unlocked_achievement_ids is not None:
            values[KEY_UNLOCKED_ACHIEVEMENTS] = json.dumps(list(unlocked_achievement_ids))
        if not values:
            return

        try:
            self.store.set_many(values)
        except StorageError as e:
            logger.error(f"Error saving to local storage: {e}")
            raise

    def clear(self) -> None:
        self.store.clear()

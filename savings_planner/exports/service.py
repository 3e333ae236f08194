"""Data export and import.

Export: full-fidelity JSON dump and a two-section CSV.
Import: validates the JSON dump shape and yields a replacement goal set;
nothing is merged.
"""
import csv
import io
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from savings_planner.errors import ValidationError
from savings_planner.goals.models import Goal
from savings_planner.goals.schemas import goal_bound_errors

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
REQUIRED_GOAL_FIELDS = ["name", "target", "currency", "saved"]
IMPORTED_BALANCE_NOTE = "Imported balance"


# =============================================================================
# Export
# =============================================================================

def export_json(goals: Sequence[Goal], exchange_rate: Optional[float], now: datetime) -> str:
    """Full dump of goals and the current rate."""
    data = {
        "goals": [g.to_storage() for g in goals],
        "exchangeRate": exchange_rate,
        "exportDate": now.isoformat(),
        "version": EXPORT_VERSION,
    }
    return json.dumps(data, indent=2)


def export_csv(goals: Sequence[Goal]) -> str:
    """One row per goal, then one row per contribution."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow([
        "Goal Name", "Target Amount", "Currency", "Saved Amount",
        "Progress %", "Created Date", "Contributions Count",
    ])
    for goal in goals:
        progress = (goal.saved / goal.target * 100) if goal.target > 0 else 0.0
        writer.writerow([
            goal.name,
            goal.target,
            goal.currency.value,
            goal.saved,
            f"{progress:.2f}%",
            goal.created_on.isoformat(),
            len(goal.contributions),
        ])

    writer.writerow([])
    writer.writerow(["Detailed Contributions"])
    writer.writerow(["Goal Name", "Contribution Amount", "Currency", "Date", "Notes"])
    for goal in goals:
        for contribution in goal.contributions:
            writer.writerow([
                goal.name,
                contribution.amount,
                goal.currency.value,
                contribution.date.isoformat(),
                contribution.notes or "",
            ])

    return buffer.getvalue()


# =============================================================================
# Import
# =============================================================================

@dataclass
class ImportResult:
    """Either the validated goal set or the reason it was rejected."""
    goals: List[Goal] = field(default_factory=list)
    exchange_rate: Optional[float] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _reject(errors: Dict[str, str]) -> ImportResult:
    error = ValidationError(errors)
    logger.warning(f"Import rejected: {error}")
    return ImportResult(error=error)


def _with_opening_balance(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Goals exported without contribution history carry only `saved`.
    Represent that balance as a single contribution so saved stays derived.
    """
    if record.get("contributions"):
        return record
    saved = record.get("saved")
    if not isinstance(saved, (int, float)) or isinstance(saved, bool) or saved <= 0:
        return {**record, "contributions": []}

    opening: Dict[str, Any] = {"amount": saved, "notes": IMPORTED_BALANCE_NOTE}
    created_at = record.get("createdAt") or record.get("created_at")
    if created_at:
        opening["date"] = created_at
        opening["timestamp"] = created_at
    else:
        opening["date"] = datetime.now().date().isoformat()
    return {**record, "contributions": [opening]}


def parse_import(payload: Union[str, bytes, Dict[str, Any]]) -> ImportResult:
    """Validate an exported JSON document."""
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            return _reject({"file": f"Invalid JSON: {e.msg}"})

    if not isinstance(payload, dict):
        return _reject({"file": "Invalid file format: expected a JSON object"})

    records = payload.get("goals")
    if not isinstance(records, list):
        return _reject({"goals": "Invalid file format: goals array not found"})

    goals: List[Goal] = []
    seen_ids = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            return _reject({f"goals[{index}]": "Invalid goal: expected an object"})
        for required in REQUIRED_GOAL_FIELDS:
            if required not in record:
                return _reject({f"goals[{index}]": f"Invalid goal at index {index}: missing {required}"})
        try:
            goal = Goal.model_validate(_with_opening_balance(record))
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            return _reject({f"goals[{index}]": f"Invalid goal at index {index}: {location} {first.get('msg')}"})
        bound_errors = goal_bound_errors(goal)
        if bound_errors:
            field_name, message = next(iter(bound_errors.items()))
            return _reject({f"goals[{index}]": f"Invalid goal at index {index}: {field_name} {message}"})
        if goal.id in seen_ids:
            return _reject({f"goals[{index}]": f"Duplicate goal id {goal.id}"})
        seen_ids.add(goal.id)
        goals.append(goal)

    exchange_rate = payload.get("exchangeRate")
    if isinstance(exchange_rate, bool) or not isinstance(exchange_rate, (int, float)):
        exchange_rate = None
    elif not math.isfinite(exchange_rate) or exchange_rate <= 0:
        exchange_rate = None

    logger.info(f"Import validated: {len(goals)} goal(s)")
    return ImportResult(goals=goals, exchange_rate=float(exchange_rate) if exchange_rate else None)

"""
Goal Ledger - the authoritative collection of goals and contributions.

Every mutation validates fully before touching state, so a rejected call
leaves the ledger unchanged. `saved` is recomputed from the whole
contribution list after each append rather than incremented.
"""
import logging
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from savings_planner.base import generate_id, utcnow
from savings_planner.errors import NotFoundError, ValidationError
from savings_planner.goals.models import Contribution, Currency, Goal, sum_contributions
from savings_planner.goals.schemas import ContributionCreate, GoalCreate

logger = logging.getLogger(__name__)


def to_validation_error(exc: PydanticValidationError) -> ValidationError:
    """Flatten a pydantic error into field -> message pairs."""
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        message = err.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, message)
    return ValidationError(errors)


class GoalLedger:
    """
    Holds goals in creation order.

    Deletion is idempotent: removing an unknown id is a no-op that returns
    False, and repeating a deletion behaves the same every time.
    """

    def __init__(self, goals: Optional[Iterable[Goal]] = None, clock: Callable[[], datetime] = utcnow):
        self._goals: List[Goal] = list(goals or [])
        self._clock = clock

    @property
    def goals(self) -> Tuple[Goal, ...]:
        return tuple(self._goals)

    def __len__(self) -> int:
        return len(self._goals)

    def today(self) -> date:
        return self._clock().date()

    def _index_of(self, goal_id: str) -> int:
        for index, goal in enumerate(self._goals):
            if goal.id == goal_id:
                return index
        raise NotFoundError("Goal", goal_id)

    def get_goal(self, goal_id: str) -> Goal:
        return self._goals[self._index_of(goal_id)]

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_goal(self, name: str, target: float, currency: Currency | str) -> Goal:
        """Validate and append a new goal with no contributions."""
        try:
            data = GoalCreate(name=name, target=target, currency=currency)
        except PydanticValidationError as e:
            raise to_validation_error(e) from e

        goal = Goal(
            id=self._unique_goal_id(),
            name=data.name,
            target=data.target,
            currency=data.currency,
            created_at=self._clock(),
        )
        self._goals.append(goal)
        logger.info(f"Created goal {goal.id} ({goal.name}, {goal.target} {goal.currency.value})")
        return goal

    def add_contribution(
        self,
        goal_id: str,
        amount: float,
        contribution_date: date,
        notes: Optional[str] = None,
    ) -> Goal:
        """Append a contribution and recompute the goal's saved total."""
        index = self._index_of(goal_id)
        goal = self._goals[index]

        try:
            data = ContributionCreate(amount=amount, date=contribution_date, notes=notes)
        except PydanticValidationError as e:
            raise to_validation_error(e) from e

        now = self._clock()
        today = now.date()
        if data.date > today:
            raise ValidationError({"date": "Date cannot be in the future"})
        if data.date < goal.created_on:
            raise ValidationError(
                {"date": f"Date cannot be before goal creation ({goal.created_on.isoformat()})"}
            )

        existing_ids = {c.id for c in goal.contributions}
        contribution_id = generate_id("contrib")
        while contribution_id in existing_ids:
            contribution_id = generate_id("contrib")

        contribution = Contribution(
            id=contribution_id,
            amount=data.amount,
            date=data.date,
            timestamp=now,
            notes=data.notes,
        )
        contributions = [*goal.contributions, contribution]
        updated = goal.model_copy(
            update={"contributions": contributions, "saved": sum_contributions(contributions)}
        )
        self._goals[index] = updated
        logger.info(f"Added contribution {contribution.id} of {data.amount} to goal {goal_id}")
        return updated

    def delete_goal(self, goal_id: str) -> bool:
        """Remove a goal and all of its contributions."""
        try:
            index = self._index_of(goal_id)
        except NotFoundError:
            logger.warning(f"Delete requested for unknown goal {goal_id}")
            return False
        removed = self._goals.pop(index)
        logger.info(f"Deleted goal {goal_id} with {len(removed.contributions)} contribution(s)")
        return True

    def replace_all(self, goals: Iterable[Goal]) -> None:
        """Swap in a whole goal set (load and import)."""
        self._goals = list(goals)

    def clear(self) -> None:
        self._goals = []

    def _unique_goal_id(self) -> str:
        existing = {g.id for g in self._goals}
        goal_id = generate_id("goal")
        while goal_id in existing:
            goal_id = generate_id("goal")
        return goal_id

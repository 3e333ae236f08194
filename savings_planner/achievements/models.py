"""
Achievement catalogue.

Each achievement is a predicate over the current goal set. Persistent
achievements are never revoked once unlocked; the others are removed again
when their condition stops holding.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Sequence

from pydantic import BaseModel

from savings_planner.aggregation.engine import to_base
from savings_planner.goals.models import BASE_CURRENCY, FOREIGN_CURRENCY, Goal
from savings_planner.insights.engine import STREAK_LOOKBACK_DAYS, calculate_streak


class AchievementId(str, Enum):
    FIRST_GOAL = "first_goal"
    BIG_SAVER = "big_saver"
    GOAL_CRUSHER = "goal_crusher"
    MULTI_GOALER = "multi_goaler"
    CONSISTENT_SAVER = "consistent_saver"
    INTERNATIONAL_SAVER = "international_saver"
    MARATHON_SAVER = "marathon_saver"
    PERFECTIONIST = "perfectionist"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


@dataclass(frozen=True)
class AchievementContext:
    """Everything a predicate may look at."""
    goals: Sequence[Goal]
    effective_rate: float
    today: date


@dataclass(frozen=True)
class Achievement:
    id: AchievementId
    title: str
    description: str
    rarity: Rarity
    persistent: bool
    condition: Callable[[AchievementContext], bool]


class AchievementResponse(BaseModel):
    """Schema for an achievement and its unlock state."""
    id: str
    title: str
    description: str
    rarity: str
    persistent: bool
    unlocked: bool


BIG_SAVER_THRESHOLD = 100_000
CONSISTENT_SAVER_CONTRIBUTIONS = 10
MULTI_GOAL_COUNT = 3
PERFECTIONIST_COMPLETED = 3


def _total_saved_base(ctx: AchievementContext) -> float:
    return sum(to_base(g.saved, g.currency, ctx.effective_rate) for g in ctx.goals)


def _completed_count(ctx: AchievementContext) -> int:
    return sum(1 for g in ctx.goals if g.is_completed)


def _contribution_count(ctx: AchievementContext) -> int:
    return sum(len(g.contributions) for g in ctx.goals)


def _has_both_currencies(ctx: AchievementContext) -> bool:
    currencies = {g.currency for g in ctx.goals}
    return BASE_CURRENCY in currencies and FOREIGN_CURRENCY in currencies


def _streak(ctx: AchievementContext) -> int:
    dates = {c.date for g in ctx.goals for c in g.contributions}
    return calculate_streak(dates, ctx.today)


ACHIEVEMENTS: List[Achievement] = [
    Achievement(
        id=AchievementId.FIRST_GOAL,
        title="Goal Setter",
        description="Created your first savings goal",
        rarity=Rarity.COMMON,
        persistent=False,
        condition=lambda ctx: len(ctx.goals) >= 1,
    ),
    Achievement(
        id=AchievementId.BIG_SAVER,
        title="Big Saver",
        description=f"Saved over {BIG_SAVER_THRESHOLD:,} {BASE_CURRENCY.value} total",
        rarity=Rarity.RARE,
        persistent=False,
        condition=lambda ctx: _total_saved_base(ctx) >= BIG_SAVER_THRESHOLD,
    ),
    Achievement(
        id=AchievementId.GOAL_CRUSHER,
        title="Goal Crusher",
        description="Completed your first goal",
        rarity=Rarity.EPIC,
        persistent=True,
        condition=lambda ctx: _completed_count(ctx) >= 1,
    ),
    Achievement(
        id=AchievementId.MULTI_GOALER,
        title="Multi-Goaler",
        description=f"Managing {MULTI_GOAL_COUNT} or more goals",
        rarity=Rarity.UNCOMMON,
        persistent=False,
        condition=lambda ctx: len(ctx.goals) >= MULTI_GOAL_COUNT,
    ),
    Achievement(
        id=AchievementId.CONSISTENT_SAVER,
        title="Consistent Saver",
        description=f"Made {CONSISTENT_SAVER_CONTRIBUTIONS} contributions",
        rarity=Rarity.UNCOMMON,
        persistent=True,
        condition=lambda ctx: _contribution_count(ctx) >= CONSISTENT_SAVER_CONTRIBUTIONS,
    ),
    Achievement(
        id=AchievementId.INTERNATIONAL_SAVER,
        title="International Saver",
        description=f"Have goals in both {BASE_CURRENCY.value} and {FOREIGN_CURRENCY.value}",
        rarity=Rarity.RARE,
        persistent=False,
        condition=_has_both_currencies,
    ),
    Achievement(
        id=AchievementId.MARATHON_SAVER,
        title="Marathon Saver",
        description=f"Saved for {STREAK_LOOKBACK_DAYS} consecutive days",
        rarity=Rarity.LEGENDARY,
        persistent=True,
        condition=lambda ctx: _streak(ctx) >= STREAK_LOOKBACK_DAYS,
    ),
    Achievement(
        id=AchievementId.PERFECTIONIST,
        title="Perfectionist",
        description=f"Completed {PERFECTIONIST_COMPLETED} goals",
        rarity=Rarity.LEGENDARY,
        persistent=True,
        condition=lambda ctx: _completed_count(ctx) >= PERFECTIONIST_COMPLETED,
    ),
]


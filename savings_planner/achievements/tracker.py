"""Achievement unlock tracking.

The unlocked set depends on history (persistent achievements outlive their
condition), so it is explicit state that the caller loads and saves.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from savings_planner.achievements.models import (
    ACHIEVEMENTS,
    Achievement,
    AchievementContext,
    AchievementResponse,
)

logger = logging.getLogger(__name__)


@dataclass
class AchievementUpdate:
    """Result of re-evaluating achievements against the goal set."""
    unlocked: List[str]
    newly_unlocked: List[str] = field(default_factory=list)
    revoked: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.newly_unlocked or self.revoked)


class AchievementTracker:
    """Evaluates a catalogue of achievements and keeps the unlocked ids."""

    def __init__(self, unlocked: Optional[Iterable[str]] = None, catalogue: Sequence[Achievement] = ACHIEVEMENTS):
        self.catalogue = list(catalogue)
        known = {a.id.value for a in self.catalogue}
        # Keep unknown ids; they may belong to a newer catalogue
        self._unlocked: List[str] = []
        for achievement_id in unlocked or []:
            if achievement_id not in self._unlocked:
                self._unlocked.append(achievement_id)
                if achievement_id not in known:
                    logger.debug(f"Unknown achievement id in unlocked set: {achievement_id}")

    @property
    def unlocked(self) -> List[str]:
        return list(self._unlocked)

    def evaluate(self, ctx: AchievementContext) -> AchievementUpdate:
        """
        Unlock achievements whose condition now holds and revoke
        non-persistent ones whose condition no longer holds.
        """
        newly_unlocked: List[str] = []
        revoked: List[str] = []

        for achievement in self.catalogue:
            achievement_id = achievement.id.value
            is_unlocked = achievement_id in self._unlocked
            meets_condition = achievement.condition(ctx)

            if not is_unlocked and meets_condition:
                newly_unlocked.append(achievement_id)
            elif is_unlocked and not meets_condition and not achievement.persistent:
                revoked.append(achievement_id)

        if newly_unlocked or revoked:
            self._unlocked = [a for a in self._unlocked if a not in revoked] + newly_unlocked
            for achievement_id in newly_unlocked:
                logger.info(f"Achievement unlocked: {achievement_id}")
            for achievement_id in revoked:
                logger.info(f"Achievement revoked: {achievement_id}")

        return AchievementUpdate(unlocked=self.unlocked, newly_unlocked=newly_unlocked, revoked=revoked)

    def reset(self, unlocked: Optional[Iterable[str]] = None) -> None:
        self._unlocked = list(dict.fromkeys(unlocked or []))

    def describe(self) -> List[AchievementResponse]:
        """Catalogue entries with their current unlock state."""
        return [
            AchievementResponse(
                id=a.id.value,
                title=a.title,
                description=a.description,
                rarity=a.rarity.value,
                persistent=a.persistent,
                unlocked=a.id.value in self._unlocked,
            )
            for a in self.catalogue
        ]

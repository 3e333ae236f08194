"""Achievement routes."""
from typing import List

from fastapi import APIRouter, Depends

from savings_planner.achievements.models import AchievementResponse
from savings_planner.dependencies import get_session
from savings_planner.session import SavingsSession

router = APIRouter()


@router.get("", response_model=List[AchievementResponse])
async def list_achievements(session: SavingsSession = Depends(get_session)):
    """All achievements with their unlock state."""
    return session.achievements()

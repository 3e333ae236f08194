"""Insights routes."""
from fastapi import APIRouter, Depends

from savings_planner.dependencies import get_session
from savings_planner.insights.schemas import GoalInsights
from savings_planner.session import SavingsSession

router = APIRouter()


@router.get("", response_model=GoalInsights)
async def get_insights(session: SavingsSession = Depends(get_session)):
    """Contribution analytics and completion projection."""
    return session.insights()

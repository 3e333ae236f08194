"""Dashboard routes."""
from fastapi import APIRouter, Depends

from savings_planner.aggregation.schemas import DashboardResponse
from savings_planner.dependencies import get_session
from savings_planner.session import SavingsSession

router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def get_dashboard(session: SavingsSession = Depends(get_session)):
    """Portfolio totals in the base currency plus per-goal progress."""
    snapshot = session.rate_snapshot
    return DashboardResponse(
        totals=session.totals(),
        goals=session.goal_progress(),
        exchange_rate=session.effective_rate(),
        rate_fetched_at=snapshot.fetched_at if snapshot else None,
        rate_is_fresh=session.rate_is_fresh(),
        warnings=session.drain_warnings(),
    )

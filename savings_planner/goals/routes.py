"""Goal and contribution API routes."""
from typing import List

from fastapi import APIRouter, Depends

from savings_planner.dependencies import get_session
from savings_planner.goals.schemas import ContributionCreate, GoalCreate, GoalResponse, MutationResponse
from savings_planner.session import SavingsSession

router = APIRouter()


@router.get("", response_model=List[GoalResponse])
async def list_goals(session: SavingsSession = Depends(get_session)):
    """List all goals in creation order."""
    return [GoalResponse.model_validate(goal) for goal in session.goals]


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal(goal_id: str, session: SavingsSession = Depends(get_session)):
    """Get a single goal with its contributions."""
    return GoalResponse.model_validate(session.get_goal(goal_id))


@router.post("", response_model=MutationResponse, status_code=201)
async def create_goal(data: GoalCreate, session: SavingsSession = Depends(get_session)):
    """Create a savings goal."""
    goal, update = session.create_goal(data.name, data.target, data.currency)
    return MutationResponse(
        goal=GoalResponse.model_validate(goal),
        newly_unlocked_achievements=update.newly_unlocked,
        warnings=session.drain_warnings(),
    )


@router.post("/{goal_id}/contributions", response_model=MutationResponse, status_code=201)
async def add_contribution(
    goal_id: str,
    data: ContributionCreate,
    session: SavingsSession = Depends(get_session),
):
    """Log a contribution toward a goal."""
    goal, update = session.add_contribution(goal_id, data.amount, data.date, data.notes)
    return MutationResponse(
        goal=GoalResponse.model_validate(goal),
        newly_unlocked_achievements=update.newly_unlocked,
        warnings=session.drain_warnings(),
    )


@router.delete("/{goal_id}", response_model=MutationResponse)
async def delete_goal(goal_id: str, session: SavingsSession = Depends(get_session)):
    """Delete a goal and its contributions. Unknown ids are a no-op."""
    deleted, _ = session.delete_goal(goal_id)
    return MutationResponse(deleted=deleted, warnings=session.drain_warnings())

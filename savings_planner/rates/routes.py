"""Exchange rate routes."""
from fastapi import APIRouter, Depends

from savings_planner.dependencies import get_session
from savings_planner.goals.models import BASE_CURRENCY, FOREIGN_CURRENCY
from savings_planner.rates.cache import SOURCE_FALLBACK
from savings_planner.rates.schemas import ExchangeRateResponse, RefreshResponse
from savings_planner.session import SavingsSession

router = APIRouter()


def _rate_fields(session: SavingsSession) -> dict:
    snapshot = session.rate_snapshot
    return {
        "from_currency": FOREIGN_CURRENCY.value,
        "to_currency": BASE_CURRENCY.value,
        "rate": session.effective_rate(),
        "fetched_at": snapshot.fetched_at if snapshot else None,
        "source": snapshot.source if snapshot else SOURCE_FALLBACK,
        "is_fresh": session.rate_is_fresh(),
    }


@router.get("", response_model=ExchangeRateResponse)
async def get_exchange_rate(session: SavingsSession = Depends(get_session)):
    """Get the rate used for conversions."""
    return ExchangeRateResponse(**_rate_fields(session), warnings=session.drain_warnings())


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_exchange_rate(session: SavingsSession = Depends(get_session)):
    """
    Fetch the latest rate from the provider.

    Provider failures are reported in the body; the cached or fallback
    rate stays in effect.
    """
    result = await session.refresh_rate()
    return RefreshResponse(
        **_rate_fields(session),
        updated=result.updated,
        skipped=result.skipped,
        error=str(result.error) if result.error else None,
        error_kind=result.error.kind.value if result.error else None,
        warnings=session.drain_warnings(),
    )

"""Export, import and reset routes."""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from pydantic import BaseModel

from savings_planner.dependencies import get_session
from savings_planner.session import SavingsSession

router = APIRouter()


class ImportResponse(BaseModel):
    imported_goals: int
    warnings: List[str] = []


class ClearResponse(BaseModel):
    cleared: bool
    warnings: List[str] = []


def _filename(session: SavingsSession, prefix: str, ext: str) -> str:
    return f"{prefix}-{session.today().isoformat()}.{ext}"


@router.get("/export/json")
async def export_json(session: SavingsSession = Depends(get_session)):
    """Full backup of goals and the current rate."""
    return Response(
        content=session.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{_filename(session, "savings-backup", "json")}"'},
    )


@router.get("/export/csv")
async def export_csv(session: SavingsSession = Depends(get_session)):
    """Goals and contributions as CSV."""
    return PlainTextResponse(
        content=session.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{_filename(session, "savings-report", "csv")}"'},
    )


@router.get("/export/report")
async def export_report(format: Optional[str] = "html", session: SavingsSession = Depends(get_session)):
    """Human-readable progress report (html or text)."""
    html_body, text_body = session.export_report()
    if format == "text":
        return PlainTextResponse(content=text_body)
    return HTMLResponse(content=html_body)


@router.post("/import", response_model=ImportResponse)
async def import_data(payload: Dict[str, Any] = Body(...), session: SavingsSession = Depends(get_session)):
    """Replace all goals with a previously exported JSON backup."""
    result = session.import_data(payload)
    if not result.ok:
        raise result.error
    return ImportResponse(imported_goals=len(result.goals), warnings=session.drain_warnings())


@router.delete("/data", response_model=ClearResponse)
async def clear_all_data(session: SavingsSession = Depends(get_session)):
    """Clear all savings data. Cannot be undone."""
    session.clear_all()
    return ClearResponse(cleared=True, warnings=session.drain_warnings())

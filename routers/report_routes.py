# routers/report_routes.py
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from routers.deps import get_store
from schemas.dashboard import WeeklyReport
from services.holdings_store import SqlHoldingsStore
from services.report_service import build_weekly_report

router = APIRouter()


@router.get("/weekly", response_model=WeeklyReport)
def weekly_report(store: SqlHoldingsStore = Depends(get_store)):
    return build_weekly_report(store)


@router.get("/weekly.txt", response_class=PlainTextResponse)
def weekly_report_text(store: SqlHoldingsStore = Depends(get_store)):
    return build_weekly_report(store).text

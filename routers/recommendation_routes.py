# routers/recommendation_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from config.settings import get_settings
from middleware.rate_limit import limiter
from routers.deps import get_ranker
from schemas.assets import RankingScope, Recommendation
from services.engine.ranking import RecommendationRanker

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_scope(raw: str) -> RankingScope:
    value = (raw or "").strip().upper()
    if value in {"STOCKS"}:
        value = "STOCK"
    try:
        return RankingScope(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown scope {raw!r}; use stock, crypto or all")


@router.get("", response_model=List[Recommendation])
@limiter.limit(get_settings().recommendations_rate_limit)
async def get_recommendations(
    request: Request,
    response: Response,
    scope: str = Query("all"),
    n: int = Query(get_settings().default_top_n, ge=1, le=get_settings().max_top_n),
    ranker: RecommendationRanker = Depends(get_ranker),
):
    diagnostics: List[str] = []
    recs = await ranker.top_n(parse_scope(scope), n, diagnostics=diagnostics)
    if diagnostics:
        logger.info("recommendations skipped=%d scope=%s", len(diagnostics), scope)
    response.headers["X-Skipped-Positions"] = str(len(diagnostics))
    return recs

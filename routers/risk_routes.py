# routers/risk_routes.py
from fastapi import APIRouter, Depends, HTTPException

from routers.deps import get_evaluator
from schemas.assets import RiskAssessment
from schemas.requests import OrderRequest
from services.engine.errors import PriceUnavailable
from services.engine.order_risk import OrderRiskEvaluator

router = APIRouter()


def price_unavailable_http(e: PriceUnavailable) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={"error": "price_unavailable", "symbol": e.symbol, "reason": e.reason or "unavailable"},
    )


@router.post("/buy", response_model=RiskAssessment)
async def buy_risk(
    order: OrderRequest,
    evaluator: OrderRiskEvaluator = Depends(get_evaluator),
):
    try:
        return await evaluator.evaluate_buy(order.symbol, order.quantity, order.asset_type)
    except PriceUnavailable as e:
        raise price_unavailable_http(e)


@router.post("/sell", response_model=RiskAssessment)
async def sell_risk(
    order: OrderRequest,
    evaluator: OrderRiskEvaluator = Depends(get_evaluator),
):
    try:
        return await evaluator.evaluate_sell(order.symbol, order.quantity)
    except PriceUnavailable as e:
        raise price_unavailable_http(e)

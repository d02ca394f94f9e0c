# routers/asset_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from routers.deps import get_evaluator, get_price_oracle, get_store
from routers.risk_routes import price_unavailable_http
from schemas.assets import HoldingSnapshot, RiskAssessment, RiskLevel
from schemas.dashboard import AssetOut, DashboardAsset
from schemas.requests import AssetCreate, OrderRequest
from services.asset_service import add_asset, get_all_assets, get_dashboard, get_history, sell_lots
from services.engine.errors import PriceUnavailable
from services.engine.order_risk import OrderRiskEvaluator
from services.holdings_store import SqlHoldingsStore
from services.market.price_oracle import MarketPriceOracle

logger = logging.getLogger(__name__)

router = APIRouter()

_BLOCKING = {RiskLevel.NO_HOLDINGS, RiskLevel.INSUFFICIENT_QUANTITY}


@router.post("", response_model=AssetOut, status_code=201)
async def create_asset(
    payload: AssetCreate,
    db: Session = Depends(get_db),
    oracle: MarketPriceOracle = Depends(get_price_oracle),
):
    return await add_asset(db, oracle, payload)


@router.get("", response_model=List[AssetOut])
def list_assets(db: Session = Depends(get_db)):
    return get_all_assets(db)


@router.get("/holdings", response_model=List[DashboardAsset])
async def holdings_dashboard(
    store: SqlHoldingsStore = Depends(get_store),
    oracle: MarketPriceOracle = Depends(get_price_oracle),
):
    return await get_dashboard(store, oracle)


@router.get("/history", response_model=List[HoldingSnapshot])
def sold_history(store: SqlHoldingsStore = Depends(get_store)):
    return get_history(store)


@router.post("/sell", response_model=RiskAssessment)
async def sell_asset(
    order: OrderRequest,
    db: Session = Depends(get_db),
    evaluator: OrderRiskEvaluator = Depends(get_evaluator),
):
    """Assess first; lots are only reduced when the sell is possible."""
    try:
        assessment = await evaluator.evaluate_sell(order.symbol, order.quantity)
    except PriceUnavailable as e:
        raise price_unavailable_http(e)

    if assessment.risk_level in _BLOCKING:
        raise HTTPException(status_code=409, detail=assessment.model_dump(mode="json"))

    sold = sell_lots(db, assessment.symbol, order.quantity, assessment.current_price)
    if sold < order.quantity:
        # lots drained between assessment and write; nothing was sold
        logger.warning("sell_asset symbol=%s requested=%d sold=%d", assessment.symbol, order.quantity, sold)
        raise HTTPException(
            status_code=409,
            detail={
                "error": "quantity_changed",
                "symbol": assessment.symbol,
                "requested_quantity": order.quantity,
                "sold_quantity": sold,
            },
        )
    return assessment

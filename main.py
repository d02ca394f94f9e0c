# main.py
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config.logging_config import configure_logging

configure_logging()

from middleware.rate_limit import limiter
from middleware.request_logging import RequestLoggingMiddleware
from routers.asset_routes import router as asset_router
from routers.recommendation_routes import router as recommendation_router
from routers.report_routes import router as report_router
from routers.risk_routes import router as risk_router


app = FastAPI(title="Asset Advisor")

origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Include routers
app.include_router(recommendation_router, prefix="/api/recommendations")
app.include_router(risk_router, prefix="/api/risk")
app.include_router(asset_router, prefix="/api/assets")
app.include_router(report_router, prefix="/api/reports")


@app.get("/health")
def health():
    return {"status": "ok"}


# db startup
from database import Base, engine
import models  # registers user_assets on Base.metadata

Base.metadata.create_all(bind=engine)

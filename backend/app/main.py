"""NovaChain trading API: FastAPI Application Entry Point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.database import engine, Base, SessionLocal
from app.logging_config import setup_logging
from app.middleware.rate_limit import limiter
from app.routers import admin, balances, funding, prices, trades
from app.services.settlement_scheduler import get_scheduler
from app.services.user_service import seed_demo_accounts
from app import models  # noqa: F401  (registers tables on Base.metadata)

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Create all tables on startup
Base.metadata.create_all(bind=engine)

# ── CORS origins from env (supports dev localhost + production domain) ──────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="NovaChain",
    description="Simulated crypto wallet and timed-trade backend.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(trades.router)
app.include_router(admin.router)
app.include_router(balances.router)
app.include_router(prices.router)
app.include_router(funding.router)


@app.on_event("startup")
def on_startup():
    """Seed demo accounts and resume settlement of trades left PENDING."""
    if settings.SEED_DEMO_ACCOUNTS:
        db = SessionLocal()
        try:
            seed_demo_accounts(db)
        finally:
            db.close()

    if settings.SETTLEMENT_ENABLED:
        get_scheduler().start()
    else:
        logger.warning("Settlement recovery disabled; only trades opened by this process will settle")


@app.on_event("shutdown")
def on_shutdown():
    get_scheduler().shutdown()


@app.get("/")
def root():
    return {
        "name": "NovaChain API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "ok", "pending_settlements": get_scheduler().in_flight}

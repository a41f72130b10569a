"""
Restaurant Ledger - Main Application Entry Point
Order ledger, kitchen display and cashier for a single restaurant
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging
import structlog

from restaurant_ledger.core.config import Settings, get_settings
from restaurant_ledger.core.events import EventBus
from restaurant_ledger.core.exceptions import LedgerError
from restaurant_ledger.api import (
    orders, kitchen, tables, menu_items, inventory,
    customers, delivery, cashier, reports, digital_menu, statuses
)
from restaurant_ledger.services.cashier import CashierService, PaymentGateway, SimulatedPaymentGateway
from restaurant_ledger.services.catalog import Catalog
from restaurant_ledger.services.ledger import OrderLedger
from restaurant_ledger.services.seed import seed_demo_data

settings = get_settings()

logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Initializing Restaurant Ledger backend", environment=app.state.settings.ENVIRONMENT)
    if app.state.settings.SEED_DEMO_DATA:
        seed_demo_data(app.state.ledger)

    yield

    # Shutdown
    logger.info("Shutting down Restaurant Ledger backend")


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Map ledger errors to {"detail", "error"} responses"""
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=exc.error_code,
        detail=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(
    app_settings: Optional[Settings] = None,
    ledger: Optional[OrderLedger] = None,
    gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    """Build the API around a ledger, a fresh one unless given"""
    app_settings = app_settings or settings
    ledger = ledger or OrderLedger(Catalog(), settings=app_settings, event_bus=EventBus())

    # Create FastAPI application
    app = FastAPI(
        title=f"{app_settings.APP_NAME} API",
        description="Restaurant order ledger with kitchen display, table sync and cashier",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.ledger = ledger
    app.state.cashier = CashierService(
        ledger,
        gateway or SimulatedPaymentGateway(delay=app_settings.PAYMENT_SIMULATED_DELAY),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LedgerError, ledger_error_handler)

    # Include routers
    prefix = app_settings.API_V1_PREFIX
    app.include_router(orders.router, prefix=f"{prefix}/orders", tags=["orders"])
    app.include_router(kitchen.router, prefix=f"{prefix}/kitchen", tags=["kitchen"])
    app.include_router(tables.router, prefix=f"{prefix}/tables", tags=["tables"])
    app.include_router(menu_items.router, prefix=f"{prefix}/menu-items", tags=["menu-items"])
    app.include_router(inventory.router, prefix=f"{prefix}/inventory", tags=["inventory"])
    app.include_router(customers.router, prefix=f"{prefix}/customers", tags=["customers"])
    app.include_router(delivery.router, prefix=f"{prefix}/delivery", tags=["delivery"])
    app.include_router(cashier.router, prefix=f"{prefix}/cashier", tags=["cashier"])
    app.include_router(reports.router, prefix=f"{prefix}/reports", tags=["reports"])
    app.include_router(digital_menu.router, prefix=f"{prefix}/digital-menu", tags=["digital-menu"])
    app.include_router(statuses.router, prefix=f"{prefix}/statuses", tags=["statuses"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "restaurant-ledger-api"}

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": f"{app_settings.APP_NAME} API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "restaurant_ledger.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )

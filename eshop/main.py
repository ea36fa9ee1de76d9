import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from eshop.core.db import init_db, close_db
from eshop.core.logging import setup_logging
from eshop.api.v1.basket import router as basket_router
from eshop.api.v1.catalog import router as catalog_router
from eshop.api.v1.orders import router as orders_router
from eshop.api.v1.outbox import router as outbox_router
from eshop.consumers.outbox_dispatcher import OutboxDispatcher
from eshop.consumers.subscriptions import build_event_bus
from eshop.services.basket_service import close_basket_repository
from eshop.core.config import OUTBOX_DISPATCHER_ENABLED, PROJECT_NAME, VERSION
from eshop.core.exception_handlers import setup_exception_handlers

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown: database, event bus and outbox dispatcher."""
    setup_logging()
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate schemas

    app.state.event_bus = build_event_bus()
    dispatcher = None
    if OUTBOX_DISPATCHER_ENABLED:
        dispatcher = OutboxDispatcher(app.state.event_bus)
        dispatcher.start()

    yield

    if dispatcher:
        await dispatcher.stop()
    await close_basket_repository()
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")


app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)

# One router per module
app.include_router(catalog_router, prefix="/api/v1/catalog", tags=["Catalog"])
app.include_router(basket_router, prefix="/api/v1/basket", tags=["Basket"])
app.include_router(orders_router, prefix="/api/v1/orders", tags=["Ordering"])
app.include_router(outbox_router, prefix="/api/v1/outbox", tags=["Outbox Operations"])

setup_exception_handlers(app)


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}

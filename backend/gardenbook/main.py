from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from gardenbook.routers import catalog, contracts, estimates, invoices, settings as settings_router, sync
from gardenbook.config import settings
from gardenbook.data.default_catalog import DEFAULT_CATALOG
from gardenbook.database import init_db
from gardenbook.services.storage_service import StorageCapacityExceeded, StorageError, local_store
from gardenbook.services.sync_service import sync_reconciler
import asyncio
import logging
import sys

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Log startup information
logger.info("="*60)
logger.info("Starting Gardenbook API")
logger.info("="*60)
logger.info(f"Local database: {settings.database_url}")
logger.info(f"Cloud sync configured: {bool(settings.remote_database_url)}")
logger.info(f"Sync debounce: {settings.sync_debounce_seconds}s")
logger.info("="*60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    local_store.initialize_catalog(DEFAULT_CATALOG)
    if sync_reconciler.remote is not None:
        try:
            await asyncio.to_thread(sync_reconciler.remote.create_tables)
        except Exception as e:
            # Remote unreachable at startup: the app keeps working locally
            logger.error(f"Could not prepare remote tables: {str(e)}")
    sync_reconciler.start(asyncio.get_running_loop())
    yield
    # Push whatever is still queued before shutting down
    await sync_reconciler.flush()
    await sync_reconciler.drain()
    sync_reconciler.stop()


app = FastAPI(
    title="Gardenbook API",
    description="Estimates, contracts and invoices for a landscape design business",
    version="1.0.0",
    lifespan=lifespan,
)


def parse_cors_origins(origins_str: str) -> list:
    """Parse CORS origins string into a list."""
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


all_origins = parse_cors_origins(settings.cors_origins) or ["http://localhost:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=all_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include routers
app.include_router(estimates.router)
app.include_router(contracts.router)
app.include_router(invoices.router)
app.include_router(catalog.router)
app.include_router(settings_router.router)
app.include_router(sync.router)


@app.get("/")
def root():
    return {"message": "Gardenbook API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy", "sync": sync_reconciler.status.value}


@app.exception_handler(StorageCapacityExceeded)
async def storage_full_handler(request: Request, exc: StorageCapacityExceeded):
    logger.error(f"Local storage full: {str(exc)}")
    return JSONResponse(status_code=507, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Local storage error: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": f"Local storage error: {str(exc)}"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler so unexpected errors still return JSON"""
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"},
    )

"""FastAPI application entry point"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.exceptions import LeadDeskError, ValidationFailure, StorageUnavailableError
from app.storage import build_storage, FallbackStorage, RecordLocks, SQLStorage
from app.utils.logger import logger

# Import routers
from app.api.v1 import leads, users, analytics

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Role-based lead management: pipeline tracking with hierarchy-aware visibility and assignment",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Writers of one collection share a lock registry across requests
app.state.lead_locks = RecordLocks()
app.state.user_locks = RecordLocks()
app.state.storage = None


@app.exception_handler(LeadDeskError)
async def leaddesk_error_handler(request: Request, exc: LeadDeskError):
    """Translate domain errors into HTTP responses"""
    content = {"detail": exc.message}
    if isinstance(exc, ValidationFailure):
        content["errors"] = exc.errors
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


async def _prepare_sql_schema(storage) -> None:
    sql_storage = storage.primary if isinstance(storage, FallbackStorage) else storage
    if not isinstance(sql_storage, SQLStorage):
        return

    if settings.RUN_MIGRATIONS:
        from app.core.migrations import run_migrations

        migration_success = await run_migrations()
        if migration_success:
            return
        logger.warning("Migrations failed, creating missing tables directly")

    try:
        await sql_storage.create_tables()
    except StorageUnavailableError as e:
        logger.warning(f"Database unavailable at startup, continuing on local cache: {e}")


@app.on_event("startup")
async def startup_event():
    """Run on application startup"""
    logger.info(f"Starting {settings.APP_NAME}")
    logger.info(f"Environment: {settings.APP_ENV}, storage: {settings.STORAGE_BACKEND}")

    if app.state.storage is None:
        app.state.storage = build_storage()
    storage = app.state.storage

    await _prepare_sql_schema(storage)

    # Auto-seed demo hierarchy if enabled and storage is empty
    if settings.AUTO_SEED:
        try:
            from app.core.seed import check_if_seeded, run_seed

            if not await check_if_seeded(storage):
                logger.info("No users found. Seeding demo hierarchy...")
                await run_seed(storage)
            else:
                logger.info("✅ Users already present, skipping auto-seed")
        except StorageUnavailableError as e:
            logger.error(f"Error during auto-seed: {e}", exc_info=True)
            logger.warning("Application will continue without seed data")
    else:
        logger.info("Auto-seed is disabled (AUTO_SEED=false)")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown"""
    logger.info(f"Shutting down {settings.APP_NAME}")
    if app.state.storage is not None:
        await app.state.storage.close()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "LeadDesk CRM",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint; pushes locally-saved records once the database is back"""
    storage = app.state.storage
    if isinstance(storage, FallbackStorage) and (storage.is_degraded or storage.has_pending):
        if await storage.ping():
            await storage.sync()
    degraded = isinstance(storage, FallbackStorage) and storage.is_degraded
    return {
        "status": "degraded" if degraded else "healthy",
        "storage": storage.name if storage is not None else None,
    }


# Include routers
app.include_router(leads.router, prefix=settings.API_V1_PREFIX, tags=["leads"])
app.include_router(users.router, prefix=settings.API_V1_PREFIX, tags=["users"])
app.include_router(analytics.router, prefix=settings.API_V1_PREFIX, tags=["analytics"])

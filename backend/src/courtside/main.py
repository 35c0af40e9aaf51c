"""
Courtside Booking API - Main FastAPI Application
"""

import asyncio
import logging
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from courtside import __version__
from courtside.config import settings
from courtside.database import init_db
from courtside.errors import CourtsideError
from courtside.routes import auth, booking, coupon, wallet
from courtside.services.lifecycle_service import run_completion_sweep

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Court booking admission, wallet settlement and booking lifecycle for sports facilities",
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} - " f"Status: {response.status_code} - " f"Time: {process_time:.3f}s"
    )

    return response


# Domain errors carry their own status code and error_code
@app.exception_handler(CourtsideError)
async def courtside_exception_handler(request: Request, exc: CourtsideError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error occurred"})


async def completion_sweep_loop(interval: int):
    """Periodically mark finished bookings as completed"""
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(run_completion_sweep)
        except Exception as e:
            logger.error(f"Completion sweep failed: {str(e)}", exc_info=True)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database and background jobs on startup"""
    logger.info("Starting Courtside Booking API...")

    # Initialize database tables
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise

    app.state.sweep_task = None
    if settings.COMPLETION_SWEEP_INTERVAL_SECONDS > 0:
        app.state.sweep_task = asyncio.create_task(completion_sweep_loop(settings.COMPLETION_SWEEP_INTERVAL_SECONDS))
        logger.info(f"Completion sweep every {settings.COMPLETION_SWEEP_INTERVAL_SECONDS}s")

    logger.info(f"API started in {settings.ENVIRONMENT} mode")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down Courtside Booking API...")
    task = getattr(app.state, "sweep_task", None)
    if task is not None:
        task.cancel()


# Include routers
app.include_router(auth.router)
app.include_router(booking.router)
app.include_router(wallet.router)
app.include_router(coupon.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint - API health check"""
    return {
        "name": settings.APP_NAME,
        "version": __version__,
        "status": "running",
        "environment": settings.ENVIRONMENT,
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring"""
    return {"status": "healthy", "timestamp": time.time()}


if __name__ == "__main__":
    uvicorn.run(
        "courtside.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info" if settings.DEBUG else "warning",
    )

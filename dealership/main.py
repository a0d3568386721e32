# dealership/main.py
"""
FastAPI application entry point.
Includes request timing middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from dealership.routers import (
    activity, analytics, expenses, files, health, persons, reports, transactions, users, vehicles,
)
from dealership.database import create_tables
from dealership.exceptions import BackOfficeError
from dealership.config import settings
from dealership.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Dealership Back-Office API",
    description="Inventory, buy/sell transactions, contacts, expenses and profit reporting.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(BackOfficeError)
async def back_office_error_handler(request: Request, exc: BackOfficeError):
    content = {"error": exc.message}
    if exc.details is not None:
        content["details"] = jsonable_encoder(exc.details)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"Validation failed on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request data", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router,     prefix="/api", tags=["🚗 Vehicles"])
app.include_router(persons.router,      prefix="/api", tags=["👤 Persons"])
app.include_router(transactions.router, prefix="/api", tags=["💱 Transactions"])
app.include_router(expenses.router,     prefix="/api", tags=["🧾 Expenses"])
app.include_router(reports.router,      prefix="/api", tags=["📊 Reports"])
app.include_router(analytics.router,    prefix="/api", tags=["📈 Analytics"])
app.include_router(files.router,        prefix="/api", tags=["📎 Files"])
app.include_router(activity.router,     prefix="/api", tags=["📝 Activity"])
app.include_router(users.router,        prefix="/api", tags=["🔑 Users"])
app.include_router(health.router,       prefix="/api", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Dealership Back-Office starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_HOST}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Dealership Back-Office shutting down...")

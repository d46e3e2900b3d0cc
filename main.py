from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlmodel import Session
import os

from core.config import settings
from core.database import create_db_and_tables, engine
from core.errors import AppError
from core.logger import get_logger
from routers import auth, branches, clients, dashboard, deposits, users
from services.user_service import ensure_master

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    create_db_and_tables()
    if settings.MASTER_EMAIL and settings.MASTER_PASSWORD:
        with Session(engine) as session:
            ensure_master(session, settings.MASTER_EMAIL, settings.MASTER_PASSWORD, settings.MASTER_USERNAME)
    logger.info("Application started")
    yield
    # Shutdown
    logger.info("Application shutting down")

app = FastAPI(title="Branch CRM", lifespan=lifespan)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=exc.headers)

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal Server Error"},
    )

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth.router)
app.include_router(branches.router)
app.include_router(users.router)
app.include_router(clients.router)
app.include_router(deposits.router)
app.include_router(dashboard.router)

# Serve frontend files
if os.path.exists(settings.FRONTEND_DIST):
    app.mount("/", StaticFiles(directory=settings.FRONTEND_DIST, html=True), name="frontend")
else:
    logger.warning(f"Frontend directory '{settings.FRONTEND_DIST}' not found. Serving as API only.")

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.interview import interview_router
from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import AppError, app_error_handler, global_exception_handler, http_exception_handler
from app.core.logger import setup_logger

# Setup logger with fresh log file on startup
setup_logger(
    log_level=logging.DEBUG if settings.DEBUG_MODE else logging.INFO,
    clear_log=True,
    use_json=settings.LOG_JSON,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: Mock Interview Service")
    await init_db()
    yield
    logger.info("Application shutdown")


app = FastAPI(
    title="Mock Interview Service",
    description="Generates mock-interview question sets from a web form or a voice conversation.",
    version="1.0.0",
    lifespan=lifespan
)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request body: {exc.errors()}")
    return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request body"})


app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(interview_router, prefix="/api/v1", tags=["interview"])


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0", "service": "mock-interview"}

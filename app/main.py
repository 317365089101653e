import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models to ensure they're registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, LOG_LEVEL
from .database import Base, engine
from .domain.scheduling.errors import PersistenceFailed, SchedulingError
from .domain.scheduling.router import router as scheduling_router

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="FieldOps Scheduling API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(SchedulingError)
async def scheduling_exception_handler(request: Request, exc: SchedulingError):
    """Map engine errors to HTTP responses the calendar can show as a notification"""
    if isinstance(exc, PersistenceFailed):
        logger.error(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that are not JSON serializable
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# Log CORS configuration for debugging
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(scheduling_router)


@app.get("/")
def root():
    return {"message": "FieldOps Scheduling API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}

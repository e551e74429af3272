# app/main.py - University registrar API
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import traceback
import time

from app.core.config import settings
from app.core.db import db_manager, get_engine, health_check as db_health_check
from app.core.errors import RegistrarError
from app.models.base import Base
from app.services.grade_scale import seed_default_grade_scale
from app.api.routers import enrollments, grades, attendance, department_selection
from app.api.routers import terms, courses, sections


LOG_FORMATS = {
    "simple": "%(levelname)s - %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=LOG_FORMATS.get(settings.LOG_FORMAT, LOG_FORMATS["detailed"])
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting University Registrar API...")
    logger.info(f"Environment: {settings.ENV}")
    logger.info(f"Database URL: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'local'}")

    engine = get_engine()

    # Create tables if they don't exist (for development)
    if settings.is_development:
        logger.info("Creating database tables...")
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Error creating tables: {e}")

    # The grade scale table is the only source of letter grades
    with db_manager.transaction() as session:
        seed_default_grade_scale(session)

    yield

    logger.info("Shutting down University Registrar API...")
    db_manager.close()

app = FastAPI(
    title=settings.API_TITLE,
    description="Enrollment, grading, GPA and department selection for a university",
    version=settings.API_VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its status and timing"""
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Error processing {request.method} {request.url.path}: {str(e)}")
        logger.error(traceback.format_exc())
        raise

    process_time = time.time() - start_time
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({process_time:.3f}s)")
    return response

app.add_middleware(CORSMiddleware, **settings.get_cors_config())

@app.exception_handler(RegistrarError)
async def registrar_error_handler(request: Request, exc: RegistrarError):
    """Map domain errors to their HTTP status"""
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}")
    logger.error(traceback.format_exc())

    if settings.is_development:
        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc),
                "traceback": traceback.format_exc()
            }
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

@app.get("/health")
async def health():
    database = db_health_check()
    return {
        "status": "healthy" if database["status"] == "healthy" else "degraded",
        "environment": settings.ENV,
        "version": settings.API_VERSION,
        "database": database
    }

# Include routers
app.include_router(enrollments.router, prefix="/api/enrollments", tags=["Enrollments"])
app.include_router(grades.router, prefix="/api/grades", tags=["Grades"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(department_selection.router, prefix="/api/department-selection", tags=["Department Selection"])
app.include_router(terms.router, prefix="/api/terms", tags=["Academic Terms"])
app.include_router(courses.router, prefix="/api/courses", tags=["Courses"])
app.include_router(sections.router, prefix="/api/sections", tags=["Sections"])

@app.get("/")
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs_url": "/docs" if settings.is_development else "Documentation disabled in production"
    }

"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from property_portal.config import settings
from property_portal.database import check_database_connection, create_tables, close_db_connection
from property_portal.routers import auth_router, properties_router, media_router, catalog_router
from property_portal.utils.exceptions import APIException
from property_portal.services.error_handler import ErrorHandlerService
from property_portal.middleware import RequestLoggingMiddleware
from property_portal.utils.dependencies import get_file_storage
from property_portal.utils.file_storage import FileStorage

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger("property_portal")

error_handler = ErrorHandlerService(logging.getLogger("property_portal.errors"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    db_connected = await check_database_connection()
    if db_connected:
        await create_tables()
    else:
        logger.error("Failed to connect to database on startup")

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Backend for a real-estate property portal.

    ## Features

    * **Listings**: Paginated listing, search and featured views with filtering and sorting
    * **Property Management**: Create and update properties with location, features, amenities and files
    * **Moderation**: Admin verification, rejection and status changes
    * **Media**: Image and document uploads per property
    * **Statistics**: Dashboard counters for administrators

    ## Authentication

    Write endpoints require authentication. Use the `/api/v1/auth/login` endpoint to obtain a JWT token,
    then include it in the Authorization header as `Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "User login and current user"},
        {"name": "Properties", "description": "Property listings, management and moderation"},
        {"name": "Property Media", "description": "Property image and document uploads"},
        {"name": "Catalog", "description": "Property categories and amenities"},
        {"name": "Health", "description": "System health endpoints"}
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.add_middleware(RequestLoggingMiddleware, logger=logging.getLogger("property_portal.requests"))

# Include API routers
app.include_router(auth_router, prefix=settings.api_v1_prefix)
app.include_router(properties_router, prefix=settings.api_v1_prefix)
app.include_router(media_router, prefix=settings.api_v1_prefix)
app.include_router(catalog_router, prefix=settings.api_v1_prefix)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return error_handler.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return error_handler.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return error_handler.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return error_handler.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions, including unmatched routes, with structured error responses."""
    return error_handler.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return error_handler.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint providing basic API information.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check(storage: FileStorage = Depends(get_file_storage)):
    """
    Database connectivity plus the number of file deletions still waiting
    in the cleanup queue.
    """
    if not await check_database_connection():
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected",
        "pending_file_cleanup": len(storage.cleanup_queue.pending)
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "property_portal.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

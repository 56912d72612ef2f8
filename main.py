"""
Main application entry point for the HandyHub API.

This module initializes the FastAPI application, configures logging and
CORS, maps domain errors to HTTP responses, and includes routers for
authentication, users, skills, works and reviews.

Modules:
- FastAPI: Web framework
- CORSMiddleware: Middleware for handling CORS
- handyhub.database: Database engine
- handyhub.models: SQLAlchemy models
- handyhub.errors: Domain errors raised by the services
- handyhub.auth, handyhub.users, handyhub.skills, handyhub.works,
  handyhub.reviews: Routers
- handyhub.core: Application settings and logging
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from handyhub.core import get_settings, setup_logging
from handyhub.database import engine
from handyhub import models, users, skills, works, reviews
from handyhub.auth import router as auth_router
from handyhub.errors import (
    AuthenticationFailed,
    Conflict,
    InvalidCredentials,
    InvalidTarget,
    NotFoundOrForbidden,
    ResourceNotFound,
)

settings = get_settings()
setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
logger = logging.getLogger(__name__)

# Create tables (for development only)
models.Base.metadata.create_all(bind=engine)

# Initialize FastAPI application
app = FastAPI(title="HandyHub API")

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "detail": message, **extra},
    )


@app.exception_handler(AuthenticationFailed)
async def authentication_failed_handler(request: Request, exc: AuthenticationFailed):
    """
    Answer 401 for any credential or token failure.

    Bad credentials keep their message; every token failure (forged,
    malformed, expired, unknown account) gets the same generic one.
    """
    message = exc.message if isinstance(exc, InvalidCredentials) else AuthenticationFailed.message
    response = _error(status.HTTP_401_UNAUTHORIZED, message)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(NotFoundOrForbidden)
async def not_found_or_forbidden_handler(request: Request, exc: NotFoundOrForbidden):
    return _error(status.HTTP_404_NOT_FOUND, exc.message)


@app.exception_handler(ResourceNotFound)
async def resource_not_found_handler(request: Request, exc: ResourceNotFound):
    return _error(status.HTTP_404_NOT_FOUND, exc.message)


@app.exception_handler(InvalidTarget)
async def invalid_target_handler(request: Request, exc: InvalidTarget):
    return _error(status.HTTP_400_BAD_REQUEST, exc.message)


@app.exception_handler(Conflict)
async def conflict_handler(request: Request, exc: Conflict):
    return _error(status.HTTP_400_BAD_REQUEST, exc.message, kind=exc.kind.value)


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    """Report an unreachable or failing database as a server-side fault."""
    logger.error("Database operation failed: %s", exc.orig)
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Service temporarily unavailable")


# Include routers for application areas
app.include_router(auth_router)
app.include_router(users.router)
app.include_router(skills.router)
app.include_router(works.router)
app.include_router(reviews.router)


@app.get("/")
def root():
    """
    Root endpoint for the API.

    Returns a simple JSON message directing users to the Swagger UI.

    Returns:
        dict: JSON message with information about the API
    """
    return {"msg": "HandyHub API. Visit /docs for Swagger UI"}

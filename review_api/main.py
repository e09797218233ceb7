"""
FastAPI main application for the Book Review API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from review_api.auth import TokenManager, get_current_username, get_token_manager
from review_api.config import APIConfig, config as api_config
from review_api.errors import BookReviewError
from review_api.models import (
    BookListResponse, BookResponse, Credentials, ErrorResponse, HealthResponse,
    LoginResponse, MessageResponse, ReviewEntry, ReviewRequest, ReviewResponse,
    ReviewsResponse
)
from review_api.store import CatalogStore, UserStore
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

router = APIRouter()


def get_catalog(request: Request) -> CatalogStore:
    """Return the catalogue store created for this application."""
    return request.app.state.catalog


def get_users(request: Request) -> UserStore:
    """Return the user store created for this application."""
    return request.app.state.users


# Health check endpoint
@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(
    request: Request,
    catalog: CatalogStore = Depends(get_catalog),
    users: UserStore = Depends(get_users),
):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=request.app.version,
        books_count=catalog.count(),
        users_count=users.count(),
    )


# Books endpoints
@router.get("/books", response_model=BookListResponse, tags=["Books"])
async def get_books(catalog: CatalogStore = Depends(get_catalog)):
    """Get every book in the catalogue."""
    return BookListResponse(books=catalog.list_books())


@router.get(
    "/books/isbn/{isbn}",
    response_model=BookResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Books"],
)
async def get_book_by_isbn(isbn: str, catalog: CatalogStore = Depends(get_catalog)):
    """
    Get a single book by ISBN.

    - **isbn**: Book identifier
    """
    return BookResponse(book=catalog.get_by_isbn(isbn))


@router.get(
    "/books/author/{author}",
    response_model=BookListResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Books"],
)
async def get_books_by_author(author: str, catalog: CatalogStore = Depends(get_catalog)):
    """
    Get all books by an author.

    - **author**: Full author name, matched exactly but ignoring case
    """
    return BookListResponse(books=catalog.find_by_author(author))


@router.get(
    "/books/title/{title}",
    response_model=BookListResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Books"],
)
async def get_books_by_title(title: str, catalog: CatalogStore = Depends(get_catalog)):
    """
    Get all books whose title contains a search string.

    - **title**: Part of the title, matched ignoring case
    """
    return BookListResponse(books=catalog.find_by_title(title))


# Review endpoints
@router.get(
    "/books/review/{isbn}",
    response_model=ReviewsResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Reviews"],
)
async def get_book_reviews(isbn: str, catalog: CatalogStore = Depends(get_catalog)):
    """Get the reviews of a book keyed by username."""
    return ReviewsResponse(reviews=catalog.get_reviews(isbn))


@router.put(
    "/books/review/{isbn}",
    response_model=ReviewResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    tags=["Reviews"],
)
async def put_book_review(
    isbn: str,
    payload: Optional[ReviewRequest] = None,
    username: str = Depends(get_current_username),
    catalog: CatalogStore = Depends(get_catalog),
):
    """
    Add or replace the caller's review of a book.

    The review is always stored under the authenticated username.
    """
    text = payload.review if payload else None
    stored = catalog.upsert_review(isbn, username, text)
    return ReviewResponse(
        message="Review added/updated successfully",
        review=ReviewEntry(username=username, review=stored),
    )


@router.delete(
    "/books/review/{isbn}",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    tags=["Reviews"],
)
async def delete_book_review(
    isbn: str,
    username: str = Depends(get_current_username),
    catalog: CatalogStore = Depends(get_catalog),
):
    """Delete the caller's review of a book."""
    catalog.delete_review(isbn, username)
    return MessageResponse(message="Review deleted successfully")


# User endpoints
@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Users"],
)
async def register(
    payload: Optional[Credentials] = None,
    users: UserStore = Depends(get_users),
):
    """Register a new user."""
    payload = payload or Credentials()
    users.register(payload.username, payload.password)
    return MessageResponse(message="User registered successfully")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    tags=["Users"],
)
async def login(
    payload: Optional[Credentials] = None,
    users: UserStore = Depends(get_users),
    token_manager: TokenManager = Depends(get_token_manager),
):
    """Log in and receive a bearer token valid for the configured lifetime."""
    payload = payload or Credentials()
    username = users.authenticate(payload.username, payload.password)
    token = token_manager.issue_token(username)
    logger.info("User logged in", username=username)
    return LoginResponse(message="Login successful", token=token, username=username)


# Exception handlers
async def book_review_error_handler(request: Request, exc: BookReviewError):
    """Handle domain errors raised by the stores and the auth gate."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message).model_dump(),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as bad requests."""
    logger.info("Rejected malformed request", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(message="Invalid request body").model_dump(),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(message="Internal server error").model_dump(),
    )


def create_app(settings: Optional[APIConfig] = None) -> FastAPI:
    """
    Build the FastAPI application with fresh stores.

    Args:
        settings: API configuration (defaults to the global config)

    Returns:
        Configured FastAPI application
    """
    settings = settings or api_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_logging(
            log_level=settings.log_level,
            log_format=settings.log_format,
            debug=settings.debug
        )
        logger.info("Starting Book Review API", books=app.state.catalog.count())
        yield
        logger.info("Shutting down Book Review API")

    app = FastAPI(
        title=settings.api_title,
        description="""
    A small REST API for browsing a book catalogue and managing book reviews.

    ## Authentication

    Adding or deleting a review requires a token from `/login`. Include it in
    the Authorization header:

    ```
    Authorization: Bearer your_token_here
    ```

    Tokens expire one hour after login.
    """,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan
    )

    # Stores live for the lifetime of the process
    app.state.settings = settings
    app.state.catalog = CatalogStore()
    app.state.users = UserStore()
    app.state.token_manager = TokenManager(
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        expires_minutes=settings.access_token_expire_minutes
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.add_exception_handler(BookReviewError, book_review_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "review_api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=True,
        log_level="info"
    )

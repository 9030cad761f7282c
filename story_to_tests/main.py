"""
FastAPI entry point for User Story to Tests.
"""
import logging

from story_to_tests.config import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from story_to_tests.api import generate, jira


app = FastAPI(
    title=settings.api_title,
    description="Import user stories from Jira, generate test cases and attach them back as a subtask",
    version=settings.api_version,
)

ALLOWED_ORIGINS = settings.allowed_origins()

if settings.session_secret_key == "dev-only-change-me" and not settings.debug:
    logger.warning("SESSION_SECRET_KEY is not set - using the development default")

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=False,
)

# Add CORS middleware - must be added before exception handlers
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


def _cors_headers(request: Request) -> dict:
    # Get origin from request, validate against allowed origins
    origin = request.headers.get("Origin", "")
    allowed_origin = origin if origin in ALLOWED_ORIGINS else ALLOWED_ORIGINS[0]
    return {
        "Access-Control-Allow-Origin": allowed_origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP errors as {"detail": ...} with CORS headers."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=_cors_headers(request),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Validation exception handler with CORS headers.
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
        headers=_cors_headers(request),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Unhandled errors become a generic 500 so the browser still sees CORS headers.
    """
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
        headers=_cors_headers(request),
    )


# Include routers
app.include_router(jira.router, prefix="/api/jira", tags=["Jira"])
app.include_router(generate.router, prefix="/api", tags=["Generation"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "User Story to Tests API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn
    uvicorn.run("story_to_tests.main:app", host="0.0.0.0", port=8080, reload=settings.debug)


if __name__ == "__main__":
    run()

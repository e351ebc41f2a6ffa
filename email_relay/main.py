import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from . import models  # noqa: F401
from .cors import CORS_HEADERS, CORSHeadersMiddleware
from .database import Base, engine
from .domain.email.router import router as email_router
from .domain.settings.router import router as settings_router
from .exceptions import EmailRelayError, resolve_status_code

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Email API starting up...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables ready")
    yield
    logger.info("Email API shutting down...")


app = FastAPI(title="LinkOS Email API", version="1.0.0", lifespan=lifespan)


def envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=CORS_HEADERS,
    )


@app.exception_handler(EmailRelayError)
async def email_relay_exception_handler(request: Request, exc: EmailRelayError):
    status_code = resolve_status_code(exc, config.STRICT_AUTH_STATUS)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({status_code}): {exc.message}")
    return envelope(status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid request: {field} {first.get('msg', '')}".strip()
    return envelope(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return envelope(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Unhandled error: {exc}")
    return envelope(500, str(exc) or "Internal server error")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise

    duration_ms = int((time.time() - start) * 1000)
    logger.info(f"{request.method} {request.url.path} - {response.status_code} ({duration_ms}ms)")
    return response


# Outermost: pre-flight requests are answered before anything else runs
app.add_middleware(CORSHeadersMiddleware)

# Routes
app.include_router(email_router)
app.include_router(settings_router)


@app.get("/health")
def health():
    return {"status": "ok", "service": "email-api"}

from contextlib import asynccontextmanager
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.database import Database, log_store_event
from app.core.exceptions import AuthenticationError, BaseAppException, StoreError
from app.core.raw_body import RawBodyMiddleware

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Audit logger (JSON lines, security events only)
audit_logger = logging.getLogger("audit")
if not audit_logger.handlers:
    handler = logging.StreamHandler()
    # Keep raw JSON line without extra prefixes
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)
audit_logger.setLevel(logging.INFO)
# Do not propagate to root to avoid duplication
audit_logger.propagate = False


database = Database(settings.DATABASE_URL, echo=settings.DEBUG)
database.subscribe(log_store_event)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = app.state.database
    db.connect()
    db.create_all()
    logger.info("Limited Edition Access API started (environment=%s)", settings.ENVIRONMENT)
    try:
        yield
    finally:
        db.disconnect()


app = FastAPI(
    title="Limited Edition Access API",
    description="Customer waitlist with Shopify webhook ingestion",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)
app.state.database = database

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

# Must see webhook bodies before anything parses them
app.add_middleware(RawBodyMiddleware)


def _error_response(status_code: int, error: str, details=None, message=None) -> JSONResponse:
    body = {"success": False, "error": error}
    if details:
        body["details"] = details
    if message and settings.is_development:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    if isinstance(exc, AuthenticationError):
        # Already audited as a security event; keep the operational log terse
        logger.info("Rejected unauthenticated webhook on %s", request.url.path)
        return _error_response(exc.status_code, exc.message)
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        # Internal detail only leaves the process in development
        return _error_response(exc.status_code, exc.message, message=exc.details)
    logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    details = exc.details if isinstance(exc.details, list) else None
    return _error_response(exc.status_code, exc.message, details=details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        details.append(f"{'.'.join(loc) or 'body'}: {err.get('msg')}")
    logger.info("Validation failed on %s: %s", request.url.path, details)
    return _error_response(400, "Validation failed", details=details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": "Route not found", "path": request.url.path},
        )
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Store error on %s: %s", request.url.path, str(exc))
    return _error_response(StoreError.status_code, "Database operation failed", message=str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return _error_response(500, "Internal server error", message=str(exc))


# Include API router
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    return {"success": True, "message": "Limited Edition Access API is running"}

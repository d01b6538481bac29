"""Royal Bid Boutique API - Main FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from royalbid.api import bids, products
from royalbid.api.catalog import anti_pieces_router, auction_router, retail_router
from royalbid.config import get_settings
from royalbid.exceptions import CatalogError, InvariantViolation

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Unified catalog API for retail, auction and anti-piece listings",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(retail_router, prefix="/api/v1")
app.include_router(auction_router, prefix="/api/v1")
app.include_router(anti_pieces_router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")
app.include_router(bids.router, prefix="/api/v1")


# ── Error envelopes ──────────────────────────────────────────────────────────

def error_response(status_code: int, message: str, errors: list | None = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    if exc.status_code >= 500:
        logger.warning("%s %s: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return error_response(400, "Validation failed", errors)


@app.exception_handler(InvariantViolation)
async def invariant_error_handler(request: Request, exc: InvariantViolation):
    logger.error("Invariant violated on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "Internal server error")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/")
async def root():
    return {
        "app": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
    }

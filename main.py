from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.requests import Request
from fincare.api.auth_routes import router as auth_router
from fincare.api.admin_auth_routes import router as admin_auth_router
from fincare.api.loan_routes import router as loan_router
from fincare.api.admin_loan_routes import router as admin_loan_router
from fincare.api.auction_routes import router as auction_router
from fincare.api.admin_auction_routes import router as admin_auction_router
from fincare.api.withdrawal_routes import router as withdrawal_router
from fincare.api.savings_routes import router as savings_router
from fincare.api.investment_routes import router as investment_router
from fincare.api.membership_routes import router as membership_router
from fincare.api.settings_routes import router as settings_router
from fincare.api.analytics_routes import router as analytics_router
from fincare.api.audit_routes import router as audit_router
from fincare.api.customer_routes import router as customer_router
from fincare.api.profile_routes import router as profile_router
from contextlib import asynccontextmanager
from fincare.database.connection import init_db
from fincare.core.config import settings
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from fastapi.responses import JSONResponse
import logging
import traceback


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to every API response.

    OPTIONS requests are left to CORSMiddleware, which is registered after
    this middleware and therefore runs before it.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["X-XSS-Protection"] = "1; mode=block"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Savings, investments, loans and auctions for FinCare members",
    version="1.0.0",
    lifespan=lifespan
)


# Global exception handlers to return structured JSON and log tracebacks
logger = logging.getLogger("server_exception_handler")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    body = {
        "error": {
            "code": getattr(exc, 'detail', 'http_error'),
            "message": str(exc.detail) if exc.detail else exc.status_code,
            "status_code": exc.status_code
        }
    }
    logger.warning(f"HTTPException handled: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed input is a client error like any other 400
    body = {
        "error": {
            "code": "validation_error",
            "message": "Request validation failed",
            "status_code": 400,
            "details": jsonable_errors(exc)
        }
    }
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(status_code=400, content=body)


def jsonable_errors(exc: RequestValidationError):
    # Pydantic may put exception objects in "ctx"; keep only their message
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{tb}")
    body = {
        "error": {
            "code": "internal_server_error",
            "message": "An unexpected error occurred",
            "status_code": 500
        }
    }
    return JSONResponse(status_code=500, content=body)

# Support comma-separated CLIENT_URL values (e.g. "http://localhost:3000,http://localhost:3001")
raw_origins = settings.CLIENT_URL or ""
allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

if not allowed_origins or any("localhost" in origin for origin in allowed_origins):
    allowed_origins = list(set(allowed_origins + ["http://localhost:3000", "http://localhost:3001"]))

logger.info("CORS allowed origins: %s", allowed_origins)

# Starlette runs middleware last-added-first, so CORS sees preflights before anything else
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "Accept-Language",
        "Content-Language",
        "X-Requested-With",
        "Cache-Control",
        "If-Modified-Since",
        "If-None-Match",
        "Pragma",
    ],
    expose_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

# Include routers
app.include_router(auth_router)
app.include_router(admin_auth_router)
app.include_router(loan_router)
app.include_router(admin_loan_router)
app.include_router(auction_router)
app.include_router(admin_auction_router)
app.include_router(withdrawal_router)
app.include_router(savings_router)
app.include_router(investment_router)
app.include_router(membership_router)
app.include_router(settings_router)
app.include_router(analytics_router)
app.include_router(audit_router)
app.include_router(customer_router)
app.include_router(profile_router)

@app.get("/")
async def root():
    return {"message": "FinCare API is running!"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "message": "API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

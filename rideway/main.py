import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from rideway.core.config import settings
from rideway.core.security import build_token_issuer
from rideway.api.v1.endpoints.auth import router as auth_router
from rideway.api.v1.endpoints.product import router as product_router
from rideway.api.v1.endpoints.user import router as user_router
from rideway.db.models import otp_code, product, user  # noqa: F401  registers tables
from rideway.db.session import engine, Base, async_session
from rideway.schemas.response import ErrorCode, fail
from rideway.services.auth import AuthService
from rideway.services.email import build_email_service
from rideway.services.geo import GeoLocationService, GeoRestrictionChecker
from rideway.services.product import ProductService
from rideway.services.user import UserService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)
api_version = settings.API_V1_STR

# Register routers
app.include_router(auth_router, prefix=f"{api_version}/auth", tags=["auth"])
app.include_router(user_router, prefix=f"{api_version}/users", tags=["users"])
app.include_router(product_router, prefix=f"{api_version}/products", tags=["products"])


def init_services(app: FastAPI, session_factory=async_session, email_service=None, geo_lookup=None):
    """Builds the long-lived service objects once and keeps them on ``app.state``."""
    token_issuer = build_token_issuer()
    if email_service is None:
        email_service = build_email_service(settings)
    if geo_lookup is None:
        geo_lookup = GeoLocationService(settings.GEO_API_URL, settings.GEO_TIMEOUT_SECONDS)

    app.state.session_factory = session_factory
    app.state.token_issuer = token_issuer
    app.state.email_service = email_service
    app.state.auth_service = AuthService(
        session_factory,
        email_service,
        GeoRestrictionChecker(settings.restricted_country_codes),
        token_issuer,
        geo_lookup=geo_lookup,
        otp_length=settings.OTP_LENGTH,
        otp_expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        expose_otp=not settings.is_production,
    )
    app.state.user_service = UserService(session_factory)
    app.state.product_service = ProductService(session_factory)


@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    init_services(app)
    logger.info("Startup completed (%s). Database tables created.", settings.ENVIRONMENT)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=fail("Validation failed", ErrorCode.VALIDATION_ERROR, details).to_response(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            code = ErrorCode.NOT_FOUND
        elif exc.status_code == status.HTTP_401_UNAUTHORIZED:
            code = ErrorCode.UNAUTHORIZED
        elif exc.status_code >= 500:
            code = ErrorCode.SERVER_ERROR
        else:
            code = ErrorCode.VALIDATION_ERROR
        content = fail(str(exc.detail), code).to_response()
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=fail("Internal Server Error", ErrorCode.SERVER_ERROR).to_response(),
    )


@app.get("/health")
async def health():
    return {"status": "healthy"}

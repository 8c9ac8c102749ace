"""Blog API - posts and comments over an async SQL store."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from blogapi.configs import settings
from blogapi.errors import (
    BaseAppError,
    DatabaseError,
    ValidationError,
    create_exception_handler,
    database_exception_handler,
    request_validation_exception_handler,
    validation_exception_handler,
)
from blogapi.managers import limiter, rate_limit_exceeded_handler
from blogapi.middleware import (
    LoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
    lifespan,
)
from blogapi.middleware.middleware import logger
from blogapi.routes import comments_router, health_router, posts_router

app = FastAPI(
    title=settings.APP_NAME,
    description="CRUD API for blog posts and their comments",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    swagger_ui_parameters={
        "docExpansion": "none",
        "operationsSorter": "method",
    },
)

configure_cors(app)

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

routes = [posts_router, comments_router, health_router]

_ = [app.include_router(router) for router in routes]

errors = [
    (RateLimitExceeded, rate_limit_exceeded_handler),
    (DatabaseError, database_exception_handler),
    (ValidationError, validation_exception_handler),
    (BaseAppError, create_exception_handler(logger)),
    (RequestValidationError, request_validation_exception_handler),
]

_ = [app.add_exception_handler(exc_type, handler) for exc_type, handler in errors]

app.state.limiter = limiter
limiter: Limiter = app.state.limiter

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from publisher.cache import cache
from publisher.config import settings
from publisher.database import create_tables
from publisher.errors import ServiceError
from publisher.middleware import RequestLogMiddleware
from publisher.routers import articles, categories, flash, search, users

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.CREATE_TABLES:
        await create_tables()
    await cache.connect()
    yield
    await cache.disconnect()

app = FastAPI(
    title="Publisher API",
    description="Content backend for a blog: articles, categories, comments, users and search",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error rendering
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.warning(
        "%s %s failed: %s (%d)", request.method, request.url.path, exc.error_code, exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query parameters are 400s, like every other input error."""
    violations = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    logger.warning("%s %s rejected: %d violation(s)", request.method, request.url.path, len(violations))
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"violations": violations},
            }
        },
    )

# Routers
app.include_router(articles.router)
app.include_router(categories.router)
app.include_router(search.router)
app.include_router(users.router)
app.include_router(flash.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}

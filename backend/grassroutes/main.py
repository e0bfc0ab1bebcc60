import uvicorn
import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from grassroutes.api.api import api_router, public_router
from grassroutes.core.config import settings
from grassroutes.core.security import SecurityHeadersMiddleware
from grassroutes.db.init_db import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the tables and the counter row before serving requests.
    """
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")
    init_db(seed=settings.ENVIRONMENT == "development")
    yield
    logger.info(f"Stopping {settings.PROJECT_NAME}")

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan
)

if settings.SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, production=settings.is_production)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
    return response


app.include_router(api_router, prefix=settings.API_V1_STR)
app.include_router(public_router)


if __name__ == '__main__':
    uvicorn.run(
        'grassroutes.main:app',
        host='0.0.0.0',
        port=settings.BACKEND_PORT,
        reload=not settings.is_production
    )

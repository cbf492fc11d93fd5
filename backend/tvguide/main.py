from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import logging

from tvguide.api import health, households, justwatch, library, profiles, progress, schedule, synopsis, tmdb
from tvguide.core.cache import build_response_cache
from tvguide.core.config import settings
from tvguide.core.database import init_db
from tvguide.core.redis_client import close_redis
from tvguide.errors import ServiceError
from tvguide.schemas import ErrorResponse
from tvguide.services.justwatch_client import JustWatchClient
from tvguide.services.llm_client import SynopsisGenerator
from tvguide.services.tmdb_client import TMDBClient
from tvguide.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def configure_clients(app: FastAPI, app_settings=settings, cache=None) -> None:
    """Build the shared response cache and upstream clients onto app.state."""
    cache = cache if cache is not None else build_response_cache(app_settings)
    app.state.settings = app_settings
    app.state.cache = cache
    app.state.tmdb = TMDBClient.from_settings(app_settings, cache=cache)
    app.state.justwatch = JustWatchClient.from_settings(app_settings, cache=cache)
    app.state.synopsis_generator = SynopsisGenerator.from_settings(app_settings)


app = FastAPI(title="Family TV Guide API", version="1.0.0")

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {status: {"model": ErrorResponse} for status in (400, 404, 409, 502)}

app.include_router(households.router, prefix="/api/households", tags=["Households"], responses=ERROR_RESPONSES)
app.include_router(schedule.router, prefix="/api/schedule", tags=["Schedule"], responses=ERROR_RESPONSES)
app.include_router(progress.router, prefix="/api/progress", tags=["Progress"], responses=ERROR_RESPONSES)
app.include_router(library.router, prefix="/api/library", tags=["Library"], responses=ERROR_RESPONSES)
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"], responses=ERROR_RESPONSES)
app.include_router(synopsis.router, prefix="/api/synopsis", tags=["Synopsis"], responses=ERROR_RESPONSES)
app.include_router(tmdb.router, prefix="/api/tmdb", tags=["TMDB"], responses=ERROR_RESPONSES)
app.include_router(justwatch.router, prefix="/api/justwatch", tags=["JustWatch"], responses=ERROR_RESPONSES)
app.include_router(health.router, prefix="/api", tags=["Health"])

configure_clients(app)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed upstream: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "code": "VALIDATION_ERROR", "details": jsonable_encoder(exc.errors())},
    )


@app.on_event("startup")
async def startup_event():
    setup_logging()
    await init_db()
    logger.info("Family TV Guide API started")


@app.get("/")
def root():
    return {"status": "Family TV Guide API Running"}


@app.on_event("shutdown")
async def shutdown_event():
    if app.state.settings.cache_backend.lower() == "redis":
        await close_redis()

import enjoyrecord.db.base  # noqa: F401

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from enjoyrecord.core.config import settings
from enjoyrecord.core.log_config import configure_logging
from enjoyrecord.db.session import init_models
from enjoyrecord.api.routes.health import router as health_router
from enjoyrecord.api.routes.admin import router as admin_router
from enjoyrecord.api.routes.search import router as search_router
from enjoyrecord.api.routes.records import router as records_router
from enjoyrecord.api.routes.neodb import router as neodb_router
from enjoyrecord.api.routes.images import router as images_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings)
    if settings.database_url.startswith("sqlite"):
        # Postgres deployments are migrated with alembic.
        await init_models()
    yield


app = FastAPI(title="EnjoyRecord API", version="0.1.0", lifespan=lifespan)

local_cors_origin_regex = (
    r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"
    if settings.env in {"local", "test"}
    else None
)


@app.exception_handler(Exception)
async def debug_exception_handler(request: Request, exc: Exception):
    if settings.env in {"local", "test"}:
        return PlainTextResponse(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            status_code=500,
        )
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path)
    return PlainTextResponse("Internal Server Error", status_code=500)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_origin_regex=local_cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(admin_router)
app.include_router(search_router)
app.include_router(records_router)
app.include_router(neodb_router)
app.include_router(images_router)

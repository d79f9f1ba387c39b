import time
import uuid

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from pawpaw.core.config import get_settings
from pawpaw.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    storage_exception_handler,
    validation_exception_handler,
)
from pawpaw.core.logging import bind_request_id, configure_logging, get_logger
from pawpaw.db.init import init_db
from pawpaw.realtime.base import get_registry, stop_registries
from pawpaw.routers import auth, chat, gifts, live, matches, pets, swipes, upload

settings = get_settings()
configure_logging(debug=settings.debug)
log = get_logger(__name__)

app = FastAPI(
    title="PawPaw API",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    bind_request_id(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    log.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    response.headers["X-Request-ID"] = request_id
    return response


app.add_exception_handler(AppError, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(PyMongoError, storage_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(pets.router, prefix="/api", tags=["pets"])
app.include_router(swipes.router, prefix="/api/swipes", tags=["swipes"])
app.include_router(matches.router, prefix="/api", tags=["matches"])
app.include_router(gifts.router, prefix="/api", tags=["gifts"])
app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(live.router, prefix="/api/live", tags=["live"])
app.include_router(upload.router, prefix="/api/upload", tags=["upload"])

if settings.storage_backend == "local" and settings.storage_public_base_url.startswith("/"):
    app.mount(
        settings.storage_public_base_url,
        StaticFiles(directory=settings.storage_local_path, check_dir=False),
        name="uploads",
    )


@app.on_event("startup")
async def startup():
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
        log.info("startup", msg="Sentry enabled")
    await init_db()
    log.info("startup", msg="DB connected")
    for channel in ("matches", "chat"):
        await get_registry(channel).start()
    log.info("startup", msg="Realtime ready", backend=settings.realtime_backend)


@app.on_event("shutdown")
async def shutdown():
    await stop_registries()


@app.get("/health")
async def health():
    """Health check for load balancers and monitoring."""
    return {"status": "ok"}

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wms.core import config
from wms.core.errors import WmsError
from wms.models.common import utcnow

config.configure_logging()
logger = logging.getLogger(__name__)

if config.LOADED_ENV_FILES:
    logger.info("Loaded env files: %s", ", ".join(config.LOADED_ENV_FILES))
else:
    logger.info("No .env file found next to backend/ or repo root.")

# Routers import the engine, so they come after env loading
from wms.core.database import engine, init_db  # noqa: E402
from wms.routers import history, inventory, locations, notifications, orders, products  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    if config.SEED_DEMO_DATA:
        from sqlmodel import Session

        from wms.services.seed import seed_demo_data

        with Session(engine) as session:
            seed_demo_data(session)
    if config.NOTIFIER_BACKEND == "celery":
        from wms.core.celery_app import init_celery

        init_celery()
    yield


app = FastAPI(title="Warehouse Management API", lifespan=lifespan)


# ---- CORS (dev-friendly) ----------------------------------------------
_default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
origins = sorted(set(_default_origins + config.FRONTEND_ORIGINS))

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,
)


# ---- error rendering -------------------------------------------------------
def _error_body(status_code: int, error: str, message: str, request: Request) -> dict:
    return {
        "timestamp": utcnow().isoformat(),
        "status": status_code,
        "error": error,
        "message": message,
        "path": request.url.path,
    }


@app.exception_handler(WmsError)
async def wms_error_handler(request: Request, exc: WmsError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.error, exc.message, request),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=_error_body(500, "Internal Server Error", "An unexpected error occurred", request),
    )


# ---- register routers ------------------------------------------------------
app.include_router(products.router)
app.include_router(locations.router)
app.include_router(inventory.router)
app.include_router(history.router)
app.include_router(orders.router)
app.include_router(notifications.router)


# ---- simple health check ---------------------------------------------------
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}

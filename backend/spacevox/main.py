import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spacevox.api.health import router as health_router
from spacevox.api.routes_admin import router as admin_router
from spacevox.api.routes_auth import router as auth_router
from spacevox.api.routes_buyer_interests import router as buyer_interests_router
from spacevox.api.routes_products import router as products_router
from spacevox.config import settings
from spacevox.db import init_db
from spacevox.logging_setup import setup_logging
from spacevox.scheduler import create_scheduler

setup_logging(settings)
log = logging.getLogger("spacevox")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        # sweep missed buyers every SWEEP_INTERVAL_SECONDS
        scheduler = create_scheduler()
        scheduler.start()
        log.info("sweep scheduler started (every %ss)", settings.SWEEP_INTERVAL_SECONDS)

    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)


app = FastAPI(title="SpaceVox - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as 400 and name the offending fields."""
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        # pydantic prefixes messages raised from validators with "Value error, "
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        problems.append(f"{field}: {msg}" if field else msg)
    return JSONResponse(status_code=400, content={"detail": "; ".join(problems)})


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(auth_router)

app.include_router(products_router)

app.include_router(buyer_interests_router)

app.include_router(admin_router)

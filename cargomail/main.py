import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .database import create_tables
from .errors import CargomailError
from .logging_config import setup_logging
from .routers import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    create_tables()
    logger.info("Cargomail sync backend started")
    yield
    # Shutdown
    logger.info("Cargomail sync backend stopped")


app = FastAPI(
    title="Cargomail",
    description="Email service backend with per-device history sync",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(CargomailError)
async def cargomail_error_handler(request: Request, exc: CargomailError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


app.include_router(api_router)


@app.get("/")
async def root():
    return {"service": "cargomail", "version": __version__, "api": "/api/v1"}


if __name__ == "__main__":
    import uvicorn

    from .config import settings

    uvicorn.run(app, host=settings.WEB_HOST, port=settings.WEB_PORT)

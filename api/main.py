import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import service as auth_service
from core import workers
from core.bootstrap import ensure_folders
from core.errors import StorefrontError
from core.logging_config import setup_logging
from core.settings import get_settings
from gallery import router as gallery_router
from media import router as media_router
from products import repository as products_repository
from products import router as products_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)
    ensure_folders(settings)

    auth_service.init_verifier(settings)
    # One transcode pool and one catalog writer per process.
    workers.init_pool(settings.transcode_workers)
    catalog = products_repository.init_store(settings.catalog_path)
    await catalog.ensure_document()

    logger.info(
        "Storefront API ready (capacity=%d bytes, transcode workers=%d)",
        settings.storage_capacity_bytes,
        settings.transcode_workers,
    )
    try:
        yield
    finally:
        products_repository.close_store()
        workers.close_pool()
        auth_service.set_verifier(None)


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=get_settings().cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(_: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


app.include_router(gallery_router.router, tags=["gallery"])
app.include_router(media_router.router, tags=["media"])
app.include_router(products_router.router, tags=["products"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.host, port=settings.port)

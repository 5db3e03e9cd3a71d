"""
SaveYourGoblin API server

Routers:
    /api/generate   streamed generation, section regeneration, variations
    /api/content    library items, versions and links
    /api/campaigns  campaigns and their ordered content
    /api/sessions   session notes
    /api/templates  reusable scenario templates
"""

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from saveyourgoblin import __version__
from saveyourgoblin.api.campaigns import router as campaigns_router
from saveyourgoblin.api.content import router as content_router
from saveyourgoblin.api.deps import get_db
from saveyourgoblin.api.generate import router as generate_router
from saveyourgoblin.api.session_notes import router as session_notes_router
from saveyourgoblin.api.templates import router as templates_router
from saveyourgoblin.config import settings
from saveyourgoblin.utils.logger import get_logger, setup_logging

setup_logging(level=settings.log_level, log_file=settings.log_file)

logger = get_logger(__name__)

app = FastAPI(
    title="SaveYourGoblin",
    description="Generate characters, environments and missions for tabletop RPGs",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generate_router, prefix="/api/generate", tags=["generate"])
app.include_router(content_router, prefix="/api/content", tags=["content"])
app.include_router(campaigns_router, prefix="/api/campaigns", tags=["campaigns"])
app.include_router(session_notes_router, prefix="/api/sessions", tags=["sessions"])
app.include_router(templates_router, prefix="/api/templates", tags=["templates"])

logger.info(f"SaveYourGoblin {__version__} using {settings.model_provider}/{settings.model_name}")


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


@app.middleware("http")
async def log_requests(request: Request, call_next: Callable) -> Response:
    """Tag each request with an 8-character id and log its outcome and timing."""
    request_id = uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    route = f"{request.method} {request.url.path}"
    started = time.perf_counter()
    context = {"component": "API", "request_id": request_id}

    logger.debug(
        f"[{request_id}] -> {route}",
        extra={
            **context,
            "client_ip": request.client.host if request.client else None,
            "query_params": dict(request.query_params) or None,
        },
    )

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"[{request_id}] {route} raised {type(e).__name__} after {_elapsed_ms(started):.1f}ms",
            extra={**context, "error_type": type(e).__name__},
            exc_info=True,
        )
        raise

    duration_ms = _elapsed_ms(started)
    log = logger.warning if response.status_code >= 500 else logger.info
    log(
        f"[{request_id}] {route} {response.status_code} ({duration_ms:.1f}ms)",
        extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
    )
    response.headers["X-Request-ID"] = request_id
    return response


@app.on_event("startup")
async def startup_event():
    """Create the database and seed the user that owns ``API_TOKEN``."""
    db = get_db()
    logger.info(f"Database ready at {settings.database_path}")

    if settings.api_token:
        user = db.ensure_user(settings.api_token, settings.default_user_name)
        logger.info(f"Bearer token seeded for user '{user['name']}'")
    else:
        logger.warning("API_TOKEN is empty; only users already in the database can sign in")

    logger.debug(
        f"stream_chunk_size={settings.stream_chunk_size} "
        f"default_temperature={settings.default_temperature} debug={settings.debug}"
    )


@app.get("/")
async def root():
    return {
        "message": "SaveYourGoblin",
        "version": __version__,
        "status": "running",
        "provider": settings.model_provider,
    }


@app.get("/health")
async def health_check():
    """Liveness probe; does not touch the database or the model."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "saveyourgoblin.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

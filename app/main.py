"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import build_store
from app.errors import CryptoUnavailable, InvalidKey, PersistenceError, UpstreamRequestError, ValidationError
from app.routers import cloudflare, github, gitlab, tokens
from app.routers import settings as settings_router

# ── Logging setup ────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
# httpx logs full request URLs at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    store = getattr(app.state, "store", None) or build_store(settings)
    app.state.store = store
    try:
        version = await store.open()
        logger.info("Record store opened (schema v%d, backend %s)", version, type(store.backend).__name__)
    except PersistenceError as exc:
        # Keep serving: reads degrade to defaults, writes report persisted=false.
        logger.error("Record store unavailable: %s", exc)

    yield

    # Shutdown
    await store.close()


app = FastAPI(
    title="git-utils",
    description="Helper tools for the GitLab, GitHub and Cloudflare REST APIs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error handlers ───────────────────────────────────────────────────


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(UpstreamRequestError)
async def upstream_error_handler(request: Request, exc: UpstreamRequestError):
    logger.warning("Upstream error on %s %s: %s", request.method, request.url.path, exc.status_code)
    return JSONResponse(
        status_code=502, content={"error": exc.message, "upstream_status": exc.status_code}
    )


@app.exception_handler(InvalidKey)
async def invalid_key_handler(request: Request, exc: InvalidKey):
    return JSONResponse(status_code=502, content={"error": exc.message})


@app.exception_handler(CryptoUnavailable)
async def crypto_unavailable_handler(request: Request, exc: CryptoUnavailable):
    return JSONResponse(status_code=503, content={"error": exc.message})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.warning("Persistence error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"error": exc.message})


# Mount routers
app.include_router(tokens.router, prefix="/api/tokens", tags=["tokens"])
app.include_router(settings_router.router, prefix="/api/settings", tags=["settings"])
app.include_router(gitlab.router, prefix="/api/gitlab", tags=["gitlab"])
app.include_router(github.router, prefix="/api/github", tags=["github"])
app.include_router(cloudflare.router, prefix="/api/cloudflare", tags=["cloudflare"])


@app.get("/health")
async def health():
    store = app.state.store
    return {
        "status": "ok",
        "service": "git-utils",
        "store": {
            "ready": store.ready,
            "version": store.version,
            "latest_version": store.latest_version,
        },
    }

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from blog.cache import cache
from blog.config import settings
from blog.dependencies import LoginRequired, login_required_handler
from blog.middleware import AccessLogMiddleware
from blog.routers import auth, posts, search
from blog.sessions import session_store
from blog.uploads import ensure_upload_dir

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await ensure_upload_dir()
    try:
        await cache.connect()
    except Exception:
        logger.warning("Redis unavailable, serving listings without cache", exc_info=True)
    session_store.start_cleanup()
    yield
    # Shutdown
    await session_store.stop_cleanup()
    await cache.disconnect()


app = FastAPI(
    title="Blog",
    description="Tagged blog posts with free-text search",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(AccessLogMiddleware)

app.add_exception_handler(LoginRequired, login_required_handler)

# Routers
app.include_router(posts.router)
app.include_router(auth.router)
app.include_router(search.router)

# Uploaded images; the directory is created during startup.
app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}

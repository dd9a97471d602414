import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from dotenv import load_dotenv

from clerk_ingest.repositories.clerk_users import ClerkUserRepository
from clerk_ingest.routers.clerk import router as clerk_router
from clerk_ingest.routers.users import router as users_router
from clerk_ingest.services.config import Settings
from clerk_ingest.utils.db import close_db, init_db
from clerk_ingest.utils.dependencies import AppContainer
from clerk_ingest.utils.rate_limit import limiter
from clerk_ingest.utils.webhook_logging import log_webhook_requests

# Load environment variables
load_dotenv()

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container: AppContainer = app.state.container
    try:
        logger.info("🚀 Initializing database (startup)...")
        container.mongo_client = await init_db(container.settings)
        logger.info("✅ Database initialized successfully.")
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {repr(e)}")

    yield

    close_db(container.mongo_client)
    container.mongo_client = None


@limiter.limit("100/minute")
def read_root(request: Request):
    return {"message": "Welcome to Clerk Webhook Ingest"}


def create_app(settings: Optional[Settings] = None, repository: Optional[ClerkUserRepository] = None) -> FastAPI:
    settings = settings or Settings()

    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    app = FastAPI(
        title="Clerk Webhook Ingest",
        description="Materializes Clerk user lifecycle webhooks into per-tenant MongoDB collections",
        version="0.1.0",
        redoc_url="/redoc",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.container = AppContainer(settings=settings, repository=repository or ClerkUserRepository())

    # Include routers
    app.include_router(clerk_router)
    app.include_router(users_router)

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(log_webhook_requests)

    # Root endpoint
    app.get("/")(read_root)

    return app


app = create_app()


# Local run entrypoint
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("clerk_ingest.server:app", host="0.0.0.0", port=app.state.container.settings.PORT, reload=app.state.container.settings.DEBUG)

"""
Application Module

Builds the FastAPI application. Every collaborator (database engine, cache,
GitHub client) is created here, or passed in, and hung off `app.state` so
request handlers resolve them through dependencies instead of globals.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from zemon.accessor import CachedAccessor
from zemon.cache import CacheClient
from zemon.config import Settings
from zemon.controllers import auth, community, events, news, repos, store
from zemon.database import build_engine, build_session_factory, init_db
from zemon.errors import register_error_handlers
from zemon.github import GitHubClient
from zemon.models import utcnow

logger = logging.getLogger(__name__)

ROUTERS = (
    repos.router,
    events.router,
    news.router,
    store.router,
    community.router,
    auth.router,
)


def create_app(settings: Optional[Settings] = None, *, cache=None, github=None, engine=None) -> FastAPI:
    """
    Create the API application.

    Args:
        settings: runtime settings; read from the environment when omitted
        cache: CacheClient to use instead of connecting to settings.redis_url
        github: GitHubClient to use instead of building one from settings
        engine: SQLAlchemy engine to use instead of settings.database_url

    Returns:
        FastAPI instance
    """
    settings = settings or Settings.from_env()
    if engine is None:
        engine = build_engine(settings.database_url)
    if cache is None:
        cache = CacheClient.from_url(settings.redis_url, default_ttl=settings.cache_expiration)
    if github is None:
        github = GitHubClient(
            api_url=settings.github_api_url,
            token=settings.github_token,
            timeout=settings.github_timeout_seconds,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            init_db(engine)
            if cache.ping():
                logger.info("Connected to Redis")
            yield
        finally:
            engine.dispose()
            logger.info("Application shutdown.")

    app = FastAPI(
        title="Zemon API",
        description="Community platform backend: repositories, events, news, store and ideas",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.cache = cache
    app.state.accessor = CachedAccessor(cache, settings.cache_expiration)
    app.state.github = github

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"status": "healthy", "timestamp": utcnow().isoformat()}

    for router in ROUTERS:
        app.include_router(router, prefix=settings.api_prefix)

    return app

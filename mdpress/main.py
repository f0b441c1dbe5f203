from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import Settings
from .log import configure_logging
from .routers import posts, search
from .services.content_store import ContentStore
from .services.search_engine import SearchEngine
from .services.search_index import build_search_index, load_search_index
from .services.tokenizer import create_tokenizer


logger = logging.getLogger(__name__)


def load_content(app: FastAPI) -> None:
    """Reload posts and the search index into ``app.state``."""
    settings: Settings = app.state.settings
    store = ContentStore(settings.content_dir, allow_html=settings.allow_html)
    store.refresh()

    if settings.build_index_on_startup:
        tokenizer = create_tokenizer(settings.segmenter)
        engine = SearchEngine(build_search_index(store.list_posts(), tokenizer), tokenizer)
    else:
        engine = SearchEngine(load_search_index(settings.index_path))

    app.state.content_store = store
    app.state.search_engine = engine
    logger.info("Serving %d posts, %d indexed", len(store.list_posts()), engine.index.total_posts)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        load_content(app)
        yield

    app = FastAPI(title="mdpress", lifespan=lifespan)
    app.state.settings = settings

    app.include_router(posts.router)
    app.include_router(search.router)

    @app.get("/health")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()

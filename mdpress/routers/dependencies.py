from __future__ import annotations

from fastapi import Request

from mdpress.config import Settings
from mdpress.services.content_store import ContentStore
from mdpress.services.search_engine import SearchEngine


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ContentStore:
    return request.app.state.content_store


def get_search_engine(request: Request) -> SearchEngine:
    return request.app.state.search_engine

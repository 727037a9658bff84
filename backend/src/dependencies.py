"""Process-wide HTTP client and search pipeline."""

from __future__ import annotations

from src.config import settings
from src.services.search_service import SearchPipeline, build_pipeline
from src.services.upstream import create_http_client

http_client = create_http_client(settings)

_pipeline: SearchPipeline | None = None


def get_search_pipeline() -> SearchPipeline:
    """Dependency for FastAPI routes. Built on first use, then reused."""
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline(settings, http_client)
    return _pipeline

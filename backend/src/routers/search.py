"""Pharmacy search API endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from src.dependencies import get_search_pipeline
from src.models.pharmacy import SearchQuery
from src.models.schemas import ErrorDetail, SearchResult
from src.services.errors import InvalidParameterError, SearchError, UpstreamError
from src.services.search_service import SearchPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])


def _to_http_exception(e: SearchError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail=ErrorDetail(
            code=e.code,
            message=e.message,
            details=e.details,
        ).model_dump(),
    )


@router.get("/search", response_model=SearchResult)
async def search(
    med: str = "",
    location: str = "",
    radius_km: str | None = None,
    price_min: str | None = None,
    price_max: str | None = None,
    stock: str = "any",
    sort: str = "distance",
    pipeline: SearchPipeline = Depends(get_search_pipeline),
) -> SearchResult:
    try:
        query = SearchQuery(
            med=med,
            location=location,
            radius_km=radius_km,
            price_min=price_min,
            price_max=price_max,
            stock=stock,
            sort=sort,
        )
    except ValidationError as e:
        error = e.errors()[0]
        parameter = str(error["loc"][0]) if error["loc"] else "query"
        raise _to_http_exception(InvalidParameterError(parameter, error["msg"]))

    logger.info(
        "Search: med=%r location=%r radius_km=%s sort=%s stock=%s",
        query.med,
        query.location,
        query.radius_km,
        query.sort,
        query.stock,
    )
    try:
        return await pipeline.run(query)
    except UpstreamError as e:
        logger.error(
            "Upstream failure from %s (status=%s): %s",
            e.provider,
            e.upstream_status,
            e.message,
        )
        raise _to_http_exception(e)
    except SearchError as e:
        logger.info("Search rejected: %s %s", e.code, e.message)
        raise _to_http_exception(e)

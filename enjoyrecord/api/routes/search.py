from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from enjoyrecord.api.deps import require_admin
from enjoyrecord.api.http_errors import is_timeout, provider_error
from enjoyrecord.schemas.search import MEDIA_TYPES, SearchItem, SearchResponse
from enjoyrecord.services.neodb import search_neodb
from enjoyrecord.services.providers import MAX_RESULTS
from enjoyrecord.services.providers.errors import InvalidToken, ProviderError
from enjoyrecord.services.search import basic_search, search_by_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])

FAILED_WARNING = "Search failed; using manual entry mode"
EMPTY_WARNING = "No results found; using manual entry mode"


def _fallback(media_type: str | None, query: str, warning: str) -> SearchResponse:
    results = basic_search(media_type, query) if media_type else []
    return SearchResponse(results=results[:MAX_RESULTS], warning=warning)


@router.get(
    "/search",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def search_route(
    q: str | None = Query(default=None),
    type: str | None = Query(default=None),
    token: str | None = Query(default=None),
    mode: str | None = Query(default=None),
):
    query = (q or "").strip()
    media_type = type or None
    neodb_token = (token or "").strip() or None

    if not query:
        raise HTTPException(status_code=400, detail="Missing query")
    if media_type and media_type not in MEDIA_TYPES:
        raise HTTPException(status_code=400, detail="Invalid type")

    try:
        results: list[SearchItem]
        if neodb_token or not media_type:
            results = await search_neodb(media_type, query, neodb_token)
        else:
            results = await search_by_type(media_type, query, mode=mode)
    except ProviderError as e:
        logger.error(
            "search failed",
            extra={"type": media_type, "query": query, "has_token": bool(neodb_token), "error": e.message},
        )
        if is_timeout(e) or isinstance(e, InvalidToken):
            raise provider_error(e)
        return _fallback(media_type, query, FAILED_WARNING)

    if not results:
        return _fallback(media_type, query, EMPTY_WARNING)

    return SearchResponse(results=results[:MAX_RESULTS])

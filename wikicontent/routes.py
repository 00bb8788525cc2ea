# wikicontent/routes.py

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import ORJSONResponse

from wikicontent.config import DEFAULT_LANGUAGE, ITEMS_PER_PAGE, SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT
from wikicontent.exceptions import ContentLoadError
from wikicontent.logging_setup import logger
from wikicontent.models import ContentType
from wikicontent.services.content_loader import ContentLoader
from wikicontent.services.filters.listings import build_festival_options, build_listing_options
from wikicontent.services.filters.presets import FilterPreset, get_resolved_config
from wikicontent.services.filters.unified_filter import use_unified_filter
from wikicontent.services.filters.url_state import deserialize_filter_state
from wikicontent.services.localization import get_language_options, normalize_language
from wikicontent.services.search_index import SearchIndexService

router = APIRouter()

FESTIVALS = "festivals"
NOT_READY_DETAIL = "Content is still being loaded. Please try again later."


def _loader(request: Request) -> ContentLoader:
    return request.app.state.loader

def _search_service(request: Request) -> SearchIndexService:
    return request.app.state.search_service

def _ensure_ready(request: Request) -> None:
    if not (_loader(request).is_initialized and _search_service(request).is_ready):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=NOT_READY_DETAIL)

def _content_type(collection: str) -> ContentType:
    try:
        return ContentType.from_collection(collection)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown collection '{collection}'")


@router.get("/health/ready", tags=["Health"])
def get_readiness_status(request: Request):
    """
    Readiness probe to check if the initial content load and indexing are complete.
    """
    if _loader(request).is_initialized and _search_service(request).is_ready:
        return {"status": "ready"}
    return ORJSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "loading_data"}
    )

@router.get("/languages", tags=["Metadata"])
def get_languages():
    """Supported content languages with their display labels."""
    return get_language_options()

@router.get("/filters/{preset}", tags=["Metadata"])
def get_filter_config(preset: str):
    """
    Returns the resolved filter configuration (sort options, enum values,
    range and boolean filters) for a listing page.
    """
    try:
        filter_preset = FilterPreset(preset)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown filter preset '{preset}'")
    return get_resolved_config(filter_preset).model_dump(mode="json")

@router.get("/content/{collection}", tags=["Content"])
def list_content(
    request: Request,
    collection: str,
    language: str = Query(DEFAULT_LANGUAGE),
    per_page: int = Query(ITEMS_PER_PAGE, ge=1, le=500),
) -> Dict[str, Any]:
    """
    Filtered, sorted and paginated listing. The query string follows the
    filter URL format (q, category, tags, sort, rarity, status, type,
    startDate, endDate, min_<stat>, max_<stat>, flag_<key>, page).
    """
    _ensure_ready(request)
    language = normalize_language(language)
    loader = _loader(request)

    if collection == FESTIVALS:
        options = build_festival_options(loader.get_festivals(), language=language)
    else:
        content_type = _content_type(collection)
        options = build_listing_options(content_type, loader.get_collection(content_type), language=language)

    config = get_resolved_config(options.preset, options.custom_config)
    options.initial_state = deserialize_filter_state(
        request.query_params, default_sort=options.default_sort or config.default_sort, config=config
    )
    options.items_per_page = per_page
    listing = use_unified_filter(options)

    return {
        "items": [item.model_dump(mode="json") for item in listing.page_data],
        "total": len(listing.filtered_data),
        "page": listing.state.page,
        "total_pages": listing.total_pages,
        "active_filter_count": listing.active_filter_count,
        "query": str(listing.to_query_params()),
    }

@router.get("/content/{collection}/{unique_key}", tags=["Content"])
def get_content_detail(request: Request, collection: str, unique_key: str) -> Dict[str, Any]:
    """
    Retrieves one record by its unique key, along with the records of the
    same collection it lists as related.
    """
    _ensure_ready(request)
    loader = _loader(request)

    if collection == FESTIVALS:
        record = loader.get_festival_by_unique_key(unique_key)
        candidates = loader.get_festivals()
    else:
        content_type = _content_type(collection)
        record = loader.get_by_unique_key(content_type, unique_key)
        candidates = loader.get_collection(content_type)

    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"'{unique_key}' not found in {collection}")
    return {
        "item": record.model_dump(mode="json"),
        "related": [related.model_dump(mode="json") for related in loader.get_related_content(record, candidates)],
    }

@router.get("/search", tags=["Search"])
def search_content(
    request: Request,
    q: str = Query(""),
    types: Optional[str] = Query(None, description="Comma separated content types, e.g. 'character,event'."),
    language: str = Query(DEFAULT_LANGUAGE),
    limit: int = Query(SEARCH_DEFAULT_LIMIT, ge=1, le=SEARCH_MAX_LIMIT),
    offset: int = Query(0, ge=0),
):
    """
    Ranked full-text search across content types.
    """
    _ensure_ready(request)
    selected = None
    if types:
        try:
            selected = [ContentType.from_collection(t.strip()) for t in types.split(",") if t.strip()]
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    results = _search_service(request).search(q, limit=limit, offset=offset, types=selected, language=language)
    return results.model_dump(mode="json")

@router.get("/search/counts", tags=["Search"])
def search_counts(request: Request, q: str = Query("")) -> Dict[str, int]:
    """
    Number of matches per content type for a query, plus 'all'.
    """
    _ensure_ready(request)
    return _search_service(request).get_type_counts(q)

@router.post("/admin/reload/{collection}", tags=["Admin"])
async def reload_collection(request: Request, collection: str):
    """
    Drops one collection from the cache, loads it again and refreshes its
    search index. Use this to retry after a failed load.
    """
    content_type = _content_type(collection)
    loader = _loader(request)
    search_service = _search_service(request)

    loader.invalidate(content_type)
    try:
        records = await loader.load(content_type)
    except ContentLoadError as e:
        logger.error(f"Reload of {content_type.collection} failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if loader.is_initialized:
        # A full build also covers types that never got indexed after a failed startup.
        if search_service.is_ready:
            await search_service.build_indexes(types=[content_type])
        else:
            await search_service.build_indexes()
    return {
        "collection": content_type.collection,
        "records": len(records),
        "dropped": len(loader.get_validation_errors(content_type)),
    }

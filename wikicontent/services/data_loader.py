from wikicontent.exceptions import ContentLoadError
from wikicontent.logging_setup import logger
from wikicontent.services.content_loader import ContentLoader
from wikicontent.services.search_index import SearchIndexService


async def load_and_index(loader: ContentLoader, search_service: SearchIndexService) -> bool:
    """
    Startup sequence: load every collection, then build the search indexes.
    Returns False when a collection failed to load; the API then keeps
    reporting 'not ready' until a reload succeeds.
    """
    logger.info("--- Starting Content Loading ---")
    try:
        await loader.initialize()
    except ContentLoadError as e:
        logger.critical(f"Content could not be loaded: {e}", exc_info=True)
        return False

    await search_service.build_indexes()
    issues = loader.get_validation_errors()
    if issues:
        logger.warning(f"{len(issues)} invalid record(s) were dropped during loading.")
    logger.info("--- Content Loading and Indexing Finished ---")
    return True

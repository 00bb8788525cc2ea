import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from asgi_correlation_id import CorrelationIdMiddleware

from wikicontent.dedup import RequestDeduplicator
from wikicontent.logging_setup import setup_logging, logger
from wikicontent.routes import router
from wikicontent.services.content_loader import ContentLoader
from wikicontent.services.data_loader import load_and_index
from wikicontent.services.search_index import SearchIndexService
from wikicontent.sources import ContentSource, HttpContentSource, get_default_source
from wikicontent.store import ContentCache


def create_app(source: Optional[ContentSource] = None, load_in_background: bool = True) -> FastAPI:
    """
    Builds the API with its own cache, deduplicator, loader and search
    service. Tests pass an in-memory source and load synchronously.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Handles application startup and shutdown events.
        """
        setup_logging()
        logger.info("--- Application Starting Up ---")

        content_source = source or get_default_source()
        loader = ContentLoader(content_source, cache=ContentCache(), deduplicator=RequestDeduplicator())
        search_service = SearchIndexService(loader)
        app.state.loader = loader
        app.state.search_service = search_service

        loading_task = None
        if load_in_background:
            # Serve readiness probes (503) while content loads.
            loading_task = asyncio.create_task(load_and_index(loader, search_service))
        else:
            await load_and_index(loader, search_service)

        yield

        if loading_task is not None and not loading_task.done():
            loading_task.cancel()
        if isinstance(content_source, HttpContentSource):
            await content_source.close()
        logger.info("--- Application Shutting Down ---")

    app = FastAPI(
        title="Wiki Content API",
        description="Loads, filters and searches the wiki's content collections.",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # MIDDLEWARE CONFIGURATION

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(CorrelationIdMiddleware)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """
        Global middleware to handle logging and uncaught exceptions.
        """
        start_time = time.time()
        logger.info(
            "Request received",
            extra={"method": request.method, "url": str(request.url)}
        )
        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000
            logger.info(
                "Request completed",
                extra={
                    "method": request.method,
                    "url": str(request.url),
                    "status_code": response.status_code,
                    "process_time_ms": f"{process_time:.2f}",
                },
            )
            return response
        except Exception as e:
            correlation_id = getattr(request.state, 'correlation_id', str(uuid.uuid4()))
            logger.critical(
                "Unhandled exception",
                extra={"method": request.method, "url": str(request.url), "error": str(e)},
                exc_info=True,
            )
            return ORJSONResponse(
                status_code=500,
                content={
                    "error": "Internal Server Error",
                    "message": "An unexpected error occurred.",
                    "correlation_id": correlation_id,
                },
            )

    #ROUTER INCLUSION
    app.include_router(router)
    return app


app = create_app()

"""Entry point for the FastAPI-powered catalog API."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from .config import settings
from .database import Database
from .models import Category, ContentItem, PaginatedResult, SourceConfig
from .services.aggregator import ContentAggregator
from .services.catalog_service import CatalogService
from .services.source_gateway import CatalogTransport, SourceGateway
from .services.source_store import SourceStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


class SourceSelectionPayload(BaseModel):
    """Request/response body for the source configuration endpoints."""

    sources: list[SourceConfig] = Field(default_factory=list)
    active_source_id: str | None = None


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            timeout=httpx.Timeout(
                settings.request_timeout_seconds,
                connect=settings.connect_timeout_seconds,
            ),
            follow_redirects=True,
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    gateway = SourceGateway(
        CatalogTransport(http_client),
        series_type_ids=settings.series_type_ids,
        placeholder_base=settings.placeholder_base,
    )
    catalog_service = CatalogService(
        settings,
        ContentAggregator(gateway),
        SourceStore(database.session_factory),
    )

    fastapi_app.state.catalog_service = catalog_service
    fastapi_app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Aggregated video catalogs from configurable upstream sources",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "PUT"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_catalog_service(app: FastAPI) -> CatalogService:
    service = getattr(app.state, "catalog_service", None)
    if not isinstance(service, CatalogService):
        raise RuntimeError("Catalog service not initialised")
    return service


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/sources", response_model=SourceSelectionPayload)
    async def read_sources() -> SourceSelectionPayload:
        selection = await get_catalog_service(fastapi_app).get_selection()
        return SourceSelectionPayload(
            sources=selection.sources, active_source_id=selection.active_source_id
        )

    @fastapi_app.put("/api/sources", response_model=SourceSelectionPayload)
    async def write_sources(body: dict[str, Any]) -> SourceSelectionPayload:
        try:
            payload = SourceSelectionPayload.model_validate(body)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=exc.errors()) from exc
        service = get_catalog_service(fastapi_app)
        try:
            selection = await service.update_selection(
                payload.sources, payload.active_source_id
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return SourceSelectionPayload(
            sources=selection.sources, active_source_id=selection.active_source_id
        )

    @fastapi_app.get("/api/categories", response_model=list[Category])
    async def read_categories() -> list[Category]:
        return await get_catalog_service(fastapi_app).list_categories()

    @fastapi_app.get("/api/content", response_model=PaginatedResult)
    async def list_content(
        page: int = Query(default=1, ge=1),
        category: str | None = None,
        q: str | None = None,
    ) -> PaginatedResult:
        return await get_catalog_service(fastapi_app).list_content(
            page=page, category_id=category, search_term=(q or "").strip() or None
        )

    @fastapi_app.get("/api/content/all", response_model=list[ContentItem])
    async def all_content() -> list[ContentItem]:
        return await get_catalog_service(fastapi_app).all_content()

    @fastapi_app.get("/api/content/{item_id}", response_model=ContentItem)
    async def read_content(item_id: str) -> ContentItem:
        item = await get_catalog_service(fastapi_app).get_content(item_id)
        if item is None:
            raise HTTPException(status_code=404, detail=f"Content {item_id} not found")
        return item


app = create_app()

"""MdWiki FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mdwiki import __version__
from mdwiki.config import settings
from mdwiki.core.errors import (
    DocumentFormatError,
    InvalidPathError,
    PageNotFoundError,
    StorageError,
    WikiError,
)
from mdwiki.core.paths import normalize_logical_path
from mdwiki.core.storage import FileStorage

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

DEFAULT_PAGE = "index"

ERROR_STATUS: dict[type[WikiError], int] = {
    InvalidPathError: 400,
    PageNotFoundError: 404,
    DocumentFormatError: 422,
    StorageError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: prepare the data directory."""
    if settings.welcome_page:
        await storage.ensure_welcome_page()
    logger.info("%s serving pages from %s", settings.app_title, storage.base_path)
    yield


# Initialize app
app = FastAPI(
    title=settings.app_title,
    debug=settings.debug,
    lifespan=lifespan,
)

# Initialize storage
storage = FileStorage(settings.data_dir)

_started = time.monotonic()


class SavePageRequest(BaseModel):
    """Body of a page save request."""

    content: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


@app.exception_handler(WikiError)
async def wiki_error_handler(request: Request, exc: WikiError) -> JSONResponse:
    """Translate storage errors into JSON error responses."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


@app.get("/api/health")
async def health():
    """Liveness check."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": time.monotonic() - _started,
        "version": __version__,
    }


@app.get("/api/pages")
async def list_pages():
    """Page tree: folders first, then pages."""
    listing = await storage.list_tree()
    return [node.model_dump(mode="json", by_alias=True) for node in listing.nodes]


@app.get("/api/pages/{page_path:path}")
async def read_page(page_path: str):
    """Get a page with its markdown, rendered HTML and metadata."""
    page = await storage.get_page(page_path or DEFAULT_PAGE, render=True)
    return {
        "path": page.path,
        "markdown": page.body,
        "html": page.html,
        "metadata": page.metadata.to_mapping(),
        "lastModified": page.last_modified.isoformat(),
    }


@app.post("/api/pages/{page_path:path}")
async def save_page(page_path: str, payload: SavePageRequest):
    """Create or replace a page."""
    path = page_path or DEFAULT_PAGE
    last_modified = await storage.save_page(path, payload.content, payload.metadata)
    path = normalize_logical_path(path)
    return {
        "path": path,
        "message": "Page saved successfully",
        "lastModified": last_modified.isoformat(),
    }


@app.delete("/api/pages/{page_path:path}")
async def delete_page(page_path: str):
    """Delete a page."""
    await storage.delete_page(page_path)
    return {"message": "Page deleted successfully"}


@app.get("/api/search")
async def search(q: str = ""):
    """Search pages; queries shorter than two characters return nothing."""
    outcome = await storage.search(q)
    return [result.model_dump(mode="json") for result in outcome.results]

"""Storage abstraction for wiki pages."""

import asyncio
import logging
import os
import tempfile
import weakref
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mdwiki.core.codec import decode, encode
from mdwiki.core.errors import DocumentFormatError, PageNotFoundError, StorageError
from mdwiki.core.models import Document, PageMetadata, SearchOutcome, TreeListing
from mdwiki.core.parser import render_markdown
from mdwiki.core.paths import normalize_logical_path, resolve_page_path
from mdwiki.core.search import search_pages
from mdwiki.core.tree import build_tree

logger = logging.getLogger(__name__)

WELCOME_PAGE = "welcome"
WELCOME_BODY = """# Welcome to MdWiki

Your personal knowledge base is ready!

## Getting Started

- Click **Edit** to modify this page
- Use the **+** button in the sidebar to create new pages
- Organize pages in folders for better structure
- All content is saved as Markdown files

Enjoy your wiki!
"""


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


class Storage(ABC):
    """Abstract base class for page storage."""

    @abstractmethod
    async def get_page(self, path: str, render: bool = False) -> Document:
        """Get a page by logical path. Raises PageNotFoundError if missing."""
        ...

    @abstractmethod
    async def save_page(
        self,
        path: str,
        body: str,
        metadata: Mapping[str, Any] | PageMetadata | None = None,
    ) -> datetime:
        """Save a page, replacing any previous version. Returns its new mtime."""
        ...

    @abstractmethod
    async def delete_page(self, path: str) -> None:
        """Delete a page. Raises PageNotFoundError if missing."""
        ...

    @abstractmethod
    async def page_exists(self, path: str) -> bool:
        """Check if a page exists."""
        ...

    @abstractmethod
    async def list_tree(self) -> TreeListing:
        """List folders and pages as a tree."""
        ...

    @abstractmethod
    async def search(self, query: str) -> SearchOutcome:
        """Search page names, bodies and metadata."""
        ...


class FileStorage(Storage):
    """File-based storage implementation.

    Pages are stored as Markdown files with YAML frontmatter, one file per
    page at ``<base_path>/<logical/path>.md``. Writes go through a temporary
    file and an atomic rename; writes and deletes of the same page are
    serialized with a per-page lock.
    """

    def __init__(self, base_path: Path):
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._locks: weakref.WeakValueDictionary[Path, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, target: Path) -> asyncio.Lock:
        lock = self._locks.get(target)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[target] = lock
        return lock

    # ---------- reading ----------

    def _read_document(self, target: Path, logical: str, render: bool) -> Document:
        try:
            raw = target.read_bytes()
            last_modified = _mtime(target)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise PageNotFoundError(logical) from exc
        except OSError as exc:
            logger.exception("Error reading page '%s'", logical)
            raise StorageError(logical, "read") from exc

        metadata, body = decode(raw, logical)
        try:
            page_metadata = PageMetadata.model_validate(metadata)
        except ValidationError as exc:
            raise DocumentFormatError(logical, "front matter fields have the wrong type") from exc

        return Document(
            path=logical,
            body=body,
            metadata=page_metadata,
            last_modified=last_modified,
            html=render_markdown(body) if render else None,
        )

    async def get_page(self, path: str, render: bool = False) -> Document:
        """Get a page by logical path, optionally with rendered HTML."""
        target = resolve_page_path(self.base_path, path)
        logical = normalize_logical_path(path)
        return await asyncio.to_thread(self._read_document, target, logical, render)

    async def page_exists(self, path: str) -> bool:
        """Check if a page exists."""
        return resolve_page_path(self.base_path, path).is_file()

    # ---------- writing ----------

    def _existing_created(self, target: Path, logical: str) -> str | None:
        """Creation time of the page currently stored at ``target``, if any.

        Prefers the stored ``created`` field and falls back to the file's
        birth time (modification time where the platform has none).
        """
        try:
            raw = target.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read existing page '%s': %s", logical, exc)
            return None

        try:
            existing, _ = decode(raw, logical)
        except DocumentFormatError as exc:
            logger.warning("Ignoring malformed front matter of '%s': %s", logical, exc)
            existing = {}
        if existing.get("created"):
            return str(existing["created"])

        try:
            stat = target.stat()
        except OSError:
            return None
        born = getattr(stat, "st_birthtime", None) or stat.st_mtime
        return datetime.fromtimestamp(born, tz=timezone.utc).isoformat()

    def _write_document(
        self, target: Path, logical: str, body: str, metadata: dict[str, Any]
    ) -> datetime:
        now = _utcnow()
        if not metadata.get("created"):
            metadata["created"] = self._existing_created(target, logical) or now
        metadata["updated"] = now
        content = encode(body, metadata)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Temp file lives in the same folder so os.replace stays atomic
            fd, temp_path = tempfile.mkstemp(
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(content)
                os.chmod(temp_path, 0o644)
                os.replace(temp_path, target)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
            last_modified = _mtime(target)
        except OSError as exc:
            logger.exception("Error saving page '%s'", logical)
            raise StorageError(logical, "save") from exc

        logger.info("Page saved: %s", logical)
        return last_modified

    async def save_page(
        self,
        path: str,
        body: str,
        metadata: Mapping[str, Any] | PageMetadata | None = None,
    ) -> datetime:
        """Save a page.

        ``created`` is kept from ``metadata`` or the existing page and only
        set to the current time for new pages; ``updated`` is always set to
        the current time.
        """
        target = resolve_page_path(self.base_path, path)
        logical = normalize_logical_path(path)
        if isinstance(metadata, PageMetadata):
            data = metadata.to_mapping()
        else:
            data = dict(metadata or {})

        async with self._lock_for(target):
            return await asyncio.to_thread(self._write_document, target, logical, body, data)

    # ---------- deleting ----------

    def _remove(self, target: Path, logical: str) -> None:
        try:
            target.unlink()
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise PageNotFoundError(logical) from exc
        except OSError as exc:
            logger.exception("Error deleting page '%s'", logical)
            raise StorageError(logical, "delete") from exc
        logger.info("Page deleted: %s", logical)

    async def delete_page(self, path: str) -> None:
        """Delete a page."""
        target = resolve_page_path(self.base_path, path)
        logical = normalize_logical_path(path)
        async with self._lock_for(target):
            await asyncio.to_thread(self._remove, target, logical)

    # ---------- listing and search ----------

    async def list_tree(self) -> TreeListing:
        """List folders and pages; unreadable parts are reported in ``issues``."""
        return await asyncio.to_thread(build_tree, self.base_path)

    async def search(self, query: str) -> SearchOutcome:
        """Search page names, bodies and metadata."""
        return await asyncio.to_thread(search_pages, self.base_path, query)

    async def ensure_welcome_page(self) -> bool:
        """Create the storage root and a welcome page if the root is empty.

        Returns True if the welcome page was created.
        """
        self.base_path.mkdir(parents=True, exist_ok=True)
        if any(self.base_path.iterdir()):
            return False
        await self.save_page(WELCOME_PAGE, WELCOME_BODY, {"title": "Welcome"})
        logger.info("Created welcome page")
        return True

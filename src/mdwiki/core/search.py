"""Linear substring search across all stored pages."""

import json
import logging
from pathlib import Path
from typing import Any

from mdwiki.core.codec import decode
from mdwiki.core.errors import DocumentFormatError
from mdwiki.core.models import SearchOutcome, SearchResult, TraversalIssue
from mdwiki.core.tree import walk_documents

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
EXCERPT_LENGTH = 200


def _truncate(text: str) -> str:
    if len(text) > EXCERPT_LENGTH:
        return text[:EXCERPT_LENGTH] + "..."
    return text


def make_excerpt(body: str, term: str) -> str:
    """Return the first non-blank body line containing ``term``.

    Falls back to the beginning of the body when no line matches, e.g. when
    the hit was in the file name or the metadata. ``term`` must be lowercase.
    """
    for line in body.split("\n"):
        if line.strip() and term in line.lower():
            return _truncate(line)
    return _truncate(body)


def _metadata_text(metadata: dict[str, Any]) -> str:
    return json.dumps(metadata, ensure_ascii=False, separators=(",", ":"), default=str)


def search_pages(root: Path, query: str) -> SearchOutcome:
    """Find pages whose file name, body or metadata contain ``query``.

    Matching is a case-insensitive substring test. Queries shorter than
    ``MIN_QUERY_LENGTH`` characters (after trimming) return nothing without
    reading the storage root. Results follow the page tree order; files that
    cannot be read or decoded are skipped and reported in ``issues``.
    """
    term = query.strip().lower()
    if len(term) < MIN_QUERY_LENGTH:
        return SearchOutcome()

    issues: list[TraversalIssue] = []
    results: list[SearchResult] = []

    for logical_path, file_path in walk_documents(root, issues):
        try:
            metadata, body = decode(file_path.read_bytes(), logical_path)
        except (OSError, DocumentFormatError) as exc:
            logger.warning("Skipping '%s' during search: %s", logical_path, exc)
            issues.append(TraversalIssue(path=logical_path, error=str(exc)))
            continue

        if not (
            term in file_path.name.lower()
            or term in body.lower()
            or term in _metadata_text(metadata).lower()
        ):
            continue

        title = metadata.get("title")
        results.append(
            SearchResult(
                path=logical_path,
                title=str(title) if title else file_path.stem,
                excerpt=make_excerpt(body, term),
                metadata=metadata,
            )
        )

    return SearchOutcome(results=results, issues=issues)

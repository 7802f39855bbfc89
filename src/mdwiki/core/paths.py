"""Mapping between logical page paths and files under the storage root."""

from pathlib import Path
from urllib.parse import unquote

from mdwiki.core.errors import InvalidPathError

PAGE_SUFFIX = ".md"
HIDDEN_PREFIX = "."

_RESERVED_SEGMENTS = {".", ".."}


def _segments(path: str) -> list[str]:
    return [part for part in path.replace("\\", "/").split("/") if part]


def normalize_logical_path(logical_path: str) -> str:
    """Validate a logical page path and return its canonical form.

    Backslashes count as separators, surrounding slashes and empty segments
    are dropped and a trailing ``.md`` is removed.

    Examples:
        >>> normalize_logical_path("/docs//guide.md")
        'docs/guide'

    Raises:
        InvalidPathError: If the path is empty, contains a NUL character or a
            ``.``/``..`` segment (also in percent-encoded form).
    """
    if "\x00" in logical_path:
        raise InvalidPathError(logical_path, "contains a NUL character")

    cleaned = logical_path.strip()
    if cleaned.lower().endswith(PAGE_SUFFIX):
        cleaned = cleaned[: -len(PAGE_SUFFIX)]

    parts = _segments(cleaned)
    decoded_parts = _segments(unquote(cleaned))
    if any(part in _RESERVED_SEGMENTS for part in parts + decoded_parts):
        raise InvalidPathError(logical_path, "directory traversal is not allowed")
    if not parts:
        raise InvalidPathError(logical_path, "path is empty")

    return "/".join(parts)


def resolve_page_path(root: Path, logical_path: str) -> Path:
    """Resolve a logical page path to the absolute file path under ``root``.

    Raises:
        InvalidPathError: If the path is malformed or resolves outside
            ``root`` (for example through a symlink).
    """
    normalized = normalize_logical_path(logical_path)
    root_dir = root.resolve(strict=False)
    candidate = (root_dir / f"{normalized}{PAGE_SUFFIX}").resolve(strict=False)

    if not candidate.is_relative_to(root_dir):
        raise InvalidPathError(logical_path, "path escapes the storage root")

    return candidate

"""Page tree construction from the storage root."""

import locale
import logging
import os
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from mdwiki.core.models import FolderNode, PageNode, TraversalIssue, TreeListing, TreeNode
from mdwiki.core.paths import HIDDEN_PREFIX, PAGE_SUFFIX

logger = logging.getLogger(__name__)


def name_sort_key(name: str) -> tuple[str, str]:
    """Locale-aware, case-insensitive ordering with the exact name as tie breaker."""
    return locale.strxfrm(name.casefold()), name


def scan_directory(directory: Path) -> tuple[list[os.DirEntry], list[os.DirEntry]]:
    """Return the visible sub-folders and page files of ``directory``.

    Hidden entries are skipped and symlinked folders are not followed. Both
    lists are ordered with :func:`name_sort_key` (pages by their stem).

    Raises:
        OSError: If the directory cannot be read.
    """
    with os.scandir(directory) as entries:
        visible = [entry for entry in entries if not entry.name.startswith(HIDDEN_PREFIX)]

    folders = [entry for entry in visible if entry.is_dir(follow_symlinks=False)]
    pages = [
        entry
        for entry in visible
        if entry.name.endswith(PAGE_SUFFIX) and entry.is_file()
    ]
    folders.sort(key=lambda entry: name_sort_key(entry.name))
    pages.sort(key=lambda entry: name_sort_key(entry.name[: -len(PAGE_SUFFIX)]))
    return folders, pages


def _contained_pages(
    pages: list[os.DirEntry],
    root_dir: Path,
    prefix: str,
    issues: list[TraversalIssue],
) -> Iterator[tuple[str, os.DirEntry]]:
    """Yield ``(logical_path, entry)`` for pages whose target stays under ``root_dir``.

    Symlinked pages pointing outside the root are reported in ``issues``.
    """
    for entry in pages:
        page_path = f"{prefix}{entry.name[: -len(PAGE_SUFFIX)]}"
        if entry.is_symlink():
            try:
                target = Path(entry.path).resolve(strict=True)
            except (OSError, RuntimeError) as exc:
                logger.warning("Cannot resolve page link %s: %s", entry.path, exc)
                issues.append(TraversalIssue(path=page_path, error=str(exc)))
                continue
            if not target.is_relative_to(root_dir):
                logger.warning("Skipping page link %s: target outside storage root", entry.path)
                issues.append(
                    TraversalIssue(path=page_path, error="link target is outside the storage root")
                )
                continue
        yield page_path, entry


def _walk(
    directory: Path, prefix: str, root_dir: Path, issues: list[TraversalIssue]
) -> tuple[list[TreeNode], bool]:
    """Build the nodes of one directory; returns (nodes, is_empty)."""
    try:
        folders, pages = scan_directory(directory)
    except OSError as exc:
        logger.warning("Cannot list directory %s: %s", directory, exc)
        issues.append(TraversalIssue(path=prefix.rstrip("/") or ".", error=str(exc)))
        return [], True

    nodes: list[TreeNode] = []
    for entry in folders:
        folder_path = f"{prefix}{entry.name}"
        children, is_empty = _walk(Path(entry.path), f"{folder_path}/", root_dir, issues)
        if is_empty:
            continue
        nodes.append(FolderNode(name=entry.name, path=folder_path, children=children))

    for page_path, entry in _contained_pages(pages, root_dir, prefix, issues):
        try:
            stat = entry.stat()
        except OSError as exc:
            logger.warning("Cannot stat page %s: %s", entry.path, exc)
            issues.append(TraversalIssue(path=page_path, error=str(exc)))
            continue
        nodes.append(
            PageNode(
                name=entry.name[: -len(PAGE_SUFFIX)],
                path=page_path,
                last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                size=stat.st_size,
            )
        )

    return nodes, not nodes


def build_tree(root: Path) -> TreeListing:
    """List all folders and pages below ``root``.

    Folders come before pages in every sibling list. Folders without any page
    in their subtree are left out. Unreadable directories and files, and page
    links pointing outside ``root``, are reported in ``issues`` and otherwise
    treated as holding no pages.
    """
    issues: list[TraversalIssue] = []
    nodes, _ = _walk(root, "", root.resolve(strict=False), issues)
    return TreeListing(nodes=nodes, issues=issues)


def walk_documents(root: Path, issues: list[TraversalIssue]) -> Iterator[tuple[str, Path]]:
    """Yield ``(logical_path, file_path)`` for every visible page below ``root``.

    Uses the same order as :func:`build_tree` but visits every folder.
    Unreadable directories and escaping page links are appended to ``issues``
    and skipped.
    """
    yield from _iter_directory(root, "", root.resolve(strict=False), issues)


def _iter_directory(
    directory: Path, prefix: str, root_dir: Path, issues: list[TraversalIssue]
) -> Iterator[tuple[str, Path]]:
    try:
        folders, pages = scan_directory(directory)
    except OSError as exc:
        logger.warning("Cannot list directory %s: %s", directory, exc)
        issues.append(TraversalIssue(path=prefix.rstrip("/") or ".", error=str(exc)))
        return

    for entry in folders:
        yield from _iter_directory(Path(entry.path), f"{prefix}{entry.name}/", root_dir, issues)
    for page_path, entry in _contained_pages(pages, root_dir, prefix, issues):
        yield page_path, Path(entry.path)

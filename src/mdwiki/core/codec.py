"""Front matter codec for stored pages.

A stored page is a YAML front matter block followed by the raw markdown body::

    ---
    tags:
    - python
    title: Hello
    ---
    # Body

Decoding a file without a front matter block yields empty metadata and the
whole file as body.
"""

import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

import yaml

from mdwiki.core.errors import DocumentFormatError

FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)??---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)


def normalize_value(value: Any) -> Any:
    """Convert YAML-native values into JSON-compatible ones.

    Dates and datetimes become ISO-8601 strings; containers are converted
    recursively.
    """
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): normalize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    return value


def decode(raw: bytes, path: str = "<document>") -> tuple[dict[str, Any], str]:
    """Split raw file content into (metadata, body).

    Args:
        raw: File content as stored on disk.
        path: Logical path used in error messages.

    Returns:
        The front matter mapping (empty when there is none) and the body text.

    Raises:
        DocumentFormatError: If the content is not UTF-8 or the front matter
            is not valid YAML.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DocumentFormatError(path, f"not valid UTF-8 ({exc.reason})") from exc

    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return {}, text

    try:
        data = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError as exc:
        raise DocumentFormatError(path, f"front matter is not valid YAML: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        # A leading block that is not a mapping is ordinary markdown
        return {}, text

    return normalize_value(data), text[match.end() :]


def encode(body: str, metadata: Mapping[str, Any]) -> bytes:
    """Serialize body and metadata into stored file content.

    Keys are written in sorted order and lists as YAML sequences. The body is
    appended unchanged, so ``decode(encode(body, metadata))`` gives back the
    same body.
    """
    data = normalize_value(metadata)
    if not data and not FRONTMATTER_PATTERN.match(body):
        return body.encode("utf-8")

    header = _dump_header(data, allow_unicode=True)
    if yaml.safe_load(header) != data:
        # Line breaks such as NEL (U+0085) and U+2028 are folded in plain
        # unicode output; the escaped form keeps them intact.
        header = _dump_header(data, allow_unicode=False)
    return f"---\n{header}---\n{body}".encode("utf-8")


def _dump_header(data: Any, allow_unicode: bool) -> str:
    return yaml.safe_dump(
        data,
        default_flow_style=False,
        allow_unicode=allow_unicode,
        sort_keys=True,
    )

"""Data models for MdWiki."""

from datetime import date, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PageMetadata(BaseModel):
    """Typed view over the front matter mapping of a page.

    Unknown fields are kept as extras so they survive a save. Timestamps are
    kept as the text stored in the file; ``created_at`` and ``updated_at``
    parse them.
    """

    model_config = ConfigDict(extra="allow")

    title: str | None = None
    tags: list[str] = Field(default_factory=list)
    created: str | None = None
    updated: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _title_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("created", "updated", mode="before")
    @classmethod
    def _timestamp_as_text(cls, value: Any) -> Any:
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value.strip()] if value.strip() else []
        if isinstance(value, (list, tuple)):
            return [str(tag) for tag in value]
        return value

    @property
    def created_at(self) -> datetime | None:
        """``created`` as a datetime, or None when absent or unparseable."""
        return _parse_timestamp(self.created)

    @property
    def updated_at(self) -> datetime | None:
        """``updated`` as a datetime, or None when absent or unparseable."""
        return _parse_timestamp(self.updated)

    def to_mapping(self) -> dict[str, Any]:
        """Return the metadata as a plain, JSON-compatible mapping.

        Only fields present in the source are included; null values are kept.
        """
        return self.model_dump(mode="json", exclude_unset=True)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class Document(BaseModel):
    """A stored wiki page."""

    path: str
    body: str
    metadata: PageMetadata = Field(default_factory=PageMetadata)
    last_modified: datetime
    html: str | None = None

    @property
    def name(self) -> str:
        """Last segment of the logical path."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def title(self) -> str:
        """Return title from metadata or derive from name."""
        return self.metadata.title or self.name


class PageNode(BaseModel):
    """A page entry in the page tree."""

    type: Literal["page"] = "page"
    name: str
    path: str
    last_modified: datetime = Field(serialization_alias="lastModified")
    size: int


class FolderNode(BaseModel):
    """A folder entry in the page tree; only folders holding pages are listed."""

    type: Literal["folder"] = "folder"
    name: str
    path: str
    children: list["TreeNode"] = Field(default_factory=list)


TreeNode = Annotated[FolderNode | PageNode, Field(discriminator="type")]

FolderNode.model_rebuild()


class TraversalIssue(BaseModel):
    """A filesystem problem met while walking the storage root."""

    path: str
    error: str


class TreeListing(BaseModel):
    """Result of a page tree walk."""

    nodes: list[TreeNode] = Field(default_factory=list)
    issues: list[TraversalIssue] = Field(default_factory=list)


class SearchResult(BaseModel):
    """A single search hit."""

    path: str
    title: str
    excerpt: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchOutcome(BaseModel):
    """Search hits in traversal order plus any skipped files."""

    results: list[SearchResult] = Field(default_factory=list)
    issues: list[TraversalIssue] = Field(default_factory=list)

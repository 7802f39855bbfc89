"""Unit tests for page metadata and tree models."""

from datetime import datetime, timezone

from mdwiki.core.models import Document, FolderNode, PageMetadata, PageNode, TreeListing


class TestPageMetadata:
    def test_known_fields(self):
        meta = PageMetadata.model_validate(
            {"title": "Hello", "tags": ["a", "b"], "created": "2025-01-15T10:30:00+00:00"}
        )
        assert meta.title == "Hello"
        assert meta.tags == ["a", "b"]
        assert meta.created == "2025-01-15T10:30:00+00:00"
        assert meta.created_at == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert meta.updated is None
        assert meta.updated_at is None

    def test_unparseable_timestamp_kept_as_text(self):
        meta = PageMetadata.model_validate({"created": "last tuesday"})
        assert meta.created == "last tuesday"
        assert meta.created_at is None

    def test_datetime_input_stored_as_text(self):
        dt = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert PageMetadata(created=dt).created == "2025-01-15T10:30:00+00:00"

    def test_single_tag_string(self):
        assert PageMetadata.model_validate({"tags": "solo"}).tags == ["solo"]

    def test_numeric_tags_and_title(self):
        meta = PageMetadata.model_validate({"title": 2024, "tags": [1, "two"]})
        assert meta.title == "2024"
        assert meta.tags == ["1", "two"]

    def test_extra_fields_kept(self):
        meta = PageMetadata.model_validate({"status": "draft", "priority": 3})
        assert meta.to_mapping() == {"status": "draft", "priority": 3}

    def test_to_mapping_only_given_fields(self):
        assert PageMetadata(title="Only").to_mapping() == {"title": "Only"}

    def test_to_mapping_keeps_null_fields(self):
        meta = PageMetadata.model_validate({"reviewer": None, "title": None, "status": "draft"})
        assert meta.to_mapping() == {"reviewer": None, "title": None, "status": "draft"}

    def test_to_mapping_keeps_timestamp_text(self):
        stored = {
            "created": "2025-01-15T10:30:00+00:00",
            "updated": "2025-02-01T08:00:00.123456+02:00",
        }
        assert PageMetadata.model_validate(stored).to_mapping() == stored


class TestDocument:
    def test_title_fallback(self):
        doc = Document(path="docs/setup", body="", last_modified=datetime.now(timezone.utc))
        assert doc.name == "setup"
        assert doc.title == "setup"

    def test_title_from_metadata(self):
        doc = Document(
            path="docs/setup",
            body="",
            metadata=PageMetadata(title="Setup Guide"),
            last_modified=datetime.now(timezone.utc),
        )
        assert doc.title == "Setup Guide"


class TestTreeModels:
    def test_discriminated_union_roundtrip(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        listing = TreeListing(
            nodes=[
                FolderNode(
                    name="docs",
                    path="docs",
                    children=[PageNode(name="a", path="docs/a", last_modified=now, size=1)],
                ),
                PageNode(name="b", path="b", last_modified=now, size=2),
            ]
        )
        restored = TreeListing.model_validate(listing.model_dump())
        assert isinstance(restored.nodes[0], FolderNode)
        assert isinstance(restored.nodes[0].children[0], PageNode)
        assert isinstance(restored.nodes[1], PageNode)

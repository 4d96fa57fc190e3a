"""Pydantic models for blob references and entry index records."""

from pydantic import BaseModel, Field


class BlobReference(BaseModel):
    """A fetchable asset belonging to a catalog entry."""

    type: str
    url: str

    model_config = {"frozen": True}


class IndexRecord(BaseModel):
    """Outcome of the last fetch attempt for one blob reference.

    A record whose ``stored_file_name`` and ``content_hash`` are both set
    describes a completed download. A record with only the identifying
    fields set marks an attempt that failed and must be retried next run.
    """

    entry_id: str = Field(alias="entryId")
    type: str
    url: str
    etag: str = ""
    content_type: str = Field(default="", alias="contentType")
    original_file_name: str = Field(default="", alias="originalFileName")
    stored_file_name: str = Field(default="", alias="storedFileName")
    content_hash: str = Field(default="", alias="contentHash")

    model_config = {"populate_by_name": True}

    @classmethod
    def failed(cls, entry_id: str, reference: BlobReference) -> "IndexRecord":
        """Build a record for an attempted fetch that produced nothing."""
        return cls(entry_id=entry_id, type=reference.type, url=reference.url)

    @property
    def reference(self) -> BlobReference:
        return BlobReference(type=self.type, url=self.url)

    @property
    def is_complete(self) -> bool:
        """Whether the record claims a stored file with a known hash."""
        return bool(self.stored_file_name and self.content_hash)

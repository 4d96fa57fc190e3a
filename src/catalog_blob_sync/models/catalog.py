"""Pydantic models for app store catalog entries."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class Release(BaseModel):
    """Latest published release of a catalog entry."""

    id: str | None = None
    version: str | None = None
    pbw_file: str | None = None


class CatalogEntry(BaseModel):
    """One listing from the app store catalog.

    Only the fields needed for mirroring blobs are modelled. Image families
    that the API omits or returns as ``null`` are normalized to empty
    containers, so an absent family simply contributes no references.
    """

    id: str
    title: str | None = None
    type: str | None = None
    latest_release: Release | None = None
    screenshot_images: list[dict[str, str | None]] = Field(default_factory=list)
    header_images: list[dict[str, str | None]] = Field(default_factory=list)
    list_image: dict[str, str | None] = Field(default_factory=dict)
    icon_image: dict[str, str | None] = Field(default_factory=dict)

    @field_validator("screenshot_images", "header_images", mode="before")
    @classmethod
    def parse_image_list(cls, v: Any) -> list:
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        return [item for item in v if item]

    @field_validator("list_image", "icon_image", mode="before")
    @classmethod
    def parse_image_map(cls, v: Any) -> dict:
        if v is None:
            return {}
        return v

    @property
    def archive_url(self) -> str:
        """URL of the latest release archive, or empty if there is none."""
        if self.latest_release and self.latest_release.pbw_file:
            return self.latest_release.pbw_file
        return ""

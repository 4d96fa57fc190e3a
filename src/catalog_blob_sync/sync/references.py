"""Expansion of catalog entries into the blob references to mirror."""

from typing import Iterator, Mapping

from catalog_blob_sync.models import BlobReference, CatalogEntry

ARCHIVE_TYPE = "archive"

# Image families in the order their references are emitted
IMAGE_FAMILIES = [
    "screenshot_images",
    "header_images",
    "list_image",
    "icon_image",
]


def _iter_variants(family: str, variants: Mapping[str, str | None]) -> Iterator[BlobReference]:
    for variant, url in variants.items():
        if url and url.strip():
            yield BlobReference(type=f"{family}-{variant}", url=url)


def _iter_candidates(entry: CatalogEntry) -> Iterator[BlobReference]:
    archive_url = entry.archive_url
    if archive_url.strip():
        yield BlobReference(type=ARCHIVE_TYPE, url=archive_url)

    for family in IMAGE_FAMILIES:
        value = getattr(entry, family)
        variant_maps = value if isinstance(value, list) else [value]
        for variants in variant_maps:
            yield from _iter_variants(family, variants)


def enumerate_blob_references(entry: CatalogEntry) -> list[BlobReference]:
    """Derive the ordered blob references of a catalog entry.

    The archive comes first, then every image size variant family by family.
    Blank URLs are dropped, others are kept verbatim, and duplicates by URL
    keep the type of their first occurrence.

    Args:
        entry: Catalog entry

    Returns:
        Ordered list of unique references
    """
    seen: set[str] = set()
    references = []
    for reference in _iter_candidates(entry):
        if reference.url in seen:
            continue
        seen.add(reference.url)
        references.append(reference)
    return references

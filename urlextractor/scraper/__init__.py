"""Scraper package: retrying fetch, metadata extraction and classification."""

from urlextractor.scraper.classifier import classify_link_type
from urlextractor.scraper.extractor import extract_metadata, resolve_url
from urlextractor.scraper.fetcher import execute_with_retry
from urlextractor.scraper.models import (
    ExtractedMetadata,
    FetchRequest,
    FetchResult,
    ImageSet,
    LinkType,
)

__all__ = [
    "execute_with_retry",
    "extract_metadata",
    "resolve_url",
    "classify_link_type",
    "FetchRequest",
    "FetchResult",
    "ExtractedMetadata",
    "ImageSet",
    "LinkType",
]

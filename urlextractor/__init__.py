"""URL extractor: retrying proxy fetch with page metadata and link classification."""

__version__ = "2.0.0"

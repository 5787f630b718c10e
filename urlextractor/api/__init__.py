"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from urlextractor.api import app

    uvicorn urlextractor.api:app --reload
"""

from urlextractor.api.app import app

__all__ = ["app"]

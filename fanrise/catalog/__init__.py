"""
Song catalog - CRUD, quick search and the cached paginated listing.
"""

from fanrise.catalog.query import CatalogQueryEngine, SongPage, SongQuery
from fanrise.catalog.service import SongService

__all__ = ["CatalogQueryEngine", "SongPage", "SongQuery", "SongService"]

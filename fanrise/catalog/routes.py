# =============================================================================
# Song API Routes
# =============================================================================
#
# Endpoints:
#   GET    /api/songs             - Paginated, searchable, sortable listing
#   GET    /api/songs/search      - Quick title/artist search
#   GET    /api/songs/{id}        - One song
#   POST   /api/songs             - Create (201)
#   PUT    /api/songs/{id}        - Full update
#   PATCH  /api/songs/{id}        - Partial update
#   DELETE /api/songs/{id}        - Delete
#
# =============================================================================

from fastapi import APIRouter, Depends, Query, status

from fanrise.api.dependencies import get_catalog, get_song_service
from fanrise.auth.context import AuthContext
from fanrise.auth.policies import optional_auth, require_auth
from fanrise.catalog.query import CatalogQueryEngine, SongPage
from fanrise.catalog.service import SongService
from fanrise.core.models import Song, SongFields, SongPatch

router = APIRouter(prefix="/api/songs", tags=["songs"])


# =============================================================================
# Listing & Search
# =============================================================================

@router.get("", response_model=SongPage)
async def list_songs(
    page: str | None = None,
    limit: str | None = None,
    page_size: str | None = Query(None, alias="pageSize"),
    search: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_order: str | None = Query(None, alias="sortOrder"),
    ctx: AuthContext = Depends(optional_auth),
    catalog: CatalogQueryEngine = Depends(get_catalog),
):
    """
    Browse the catalog.

    Numbers are taken as strings so bad values fall back to defaults
    instead of failing the request.
    """
    return await catalog.list_songs(
        page=page,
        page_size=limit if limit is not None else page_size,
        search_text=search,
        sort_field=sort_by,
        sort_direction=sort_order,
    )


# Declared before /{song_id} so "search" isn't taken as an id
@router.get("/search", response_model=list[Song])
async def search_songs(
    query: str | None = None,
    ctx: AuthContext = Depends(require_auth),
    songs: SongService = Depends(get_song_service),
):
    return await songs.search(query)


@router.get("/{song_id}", response_model=Song)
async def get_song(
    song_id: str,
    ctx: AuthContext = Depends(optional_auth),
    songs: SongService = Depends(get_song_service),
):
    return await songs.get(song_id)


# =============================================================================
# Mutations
# =============================================================================

@router.post("", response_model=Song, status_code=status.HTTP_201_CREATED)
async def create_song(
    data: SongFields,
    ctx: AuthContext = Depends(require_auth),
    songs: SongService = Depends(get_song_service),
):
    return await songs.create(ctx, data)


@router.put("/{song_id}", response_model=Song)
async def replace_song(
    song_id: str,
    data: SongFields,
    ctx: AuthContext = Depends(require_auth),
    songs: SongService = Depends(get_song_service),
):
    """Full update. Title and artist are required."""
    return await songs.replace(ctx, song_id, data)


@router.patch("/{song_id}", response_model=Song)
async def patch_song(
    song_id: str,
    data: SongPatch,
    ctx: AuthContext = Depends(require_auth),
    songs: SongService = Depends(get_song_service),
):
    return await songs.patch(ctx, song_id, data)


@router.delete("/{song_id}")
async def delete_song(
    song_id: str,
    ctx: AuthContext = Depends(require_auth),
    songs: SongService = Depends(get_song_service),
):
    await songs.delete(ctx, song_id)
    return {"message": "Song deleted successfully"}

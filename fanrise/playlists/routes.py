# =============================================================================
# Playlist API Routes
# =============================================================================
#
# All endpoints need a signed-in account, and everything below
# /api/playlists/{id} is restricted to the playlist's owner.
#
#   GET    /api/playlists                          - My playlists
#   POST   /api/playlists                          - Create
#   GET    /api/playlists/{id}                     - One playlist
#   PUT    /api/playlists/{id}                     - Rename / redescribe
#   DELETE /api/playlists/{id}                     - Delete
#   POST   /api/playlists/{id}/songs               - Add song {songId}
#   PUT    /api/playlists/{id}/songs/order         - Reorder {songIds}
#   DELETE /api/playlists/{id}/songs/{song_id}     - Remove song
#
# =============================================================================

from fastapi import APIRouter, Depends

from fanrise.api.dependencies import get_playlist_service
from fanrise.auth.context import AuthContext
from fanrise.auth.policies import require_auth
from fanrise.core.models import CamelModel, Playlist
from fanrise.playlists.service import PlaylistService

router = APIRouter(prefix="/api/playlists", tags=["playlists"])


# =============================================================================
# Request Models
# =============================================================================

class PlaylistCreate(CamelModel):
    name: str = ""
    description: str | None = None


class PlaylistUpdate(CamelModel):
    name: str | None = None
    description: str | None = None


class AddSongRequest(CamelModel):
    song_id: str


class ReorderRequest(CamelModel):
    song_ids: list[str]


# =============================================================================
# Playlist CRUD
# =============================================================================

@router.get("", response_model=list[Playlist])
async def list_playlists(
    ctx: AuthContext = Depends(require_auth),
    playlists: PlaylistService = Depends(get_playlist_service),
):
    return await playlists.list_for(ctx)


@router.post("", response_model=Playlist)
async def create_playlist(
    data: PlaylistCreate,
    ctx: AuthContext = Depends(require_auth),
    playlists: PlaylistService = Depends(get_playlist_service),
):
    return await playlists.create(ctx, data.name, data.description)


@router.get("/{playlist_id}", response_model=Playlist)
async def get_playlist(
    playlist_id: str,
    ctx: AuthContext = Depends(require_auth),
    playlists: PlaylistService = Depends(get_playlist_service),
):
    return await playlists.get(ctx, playlist_id)


@router.put("/{playlist_id}", response_model=Playlist)
async def update_playlist(
    playlist_id: str,
    data: PlaylistUpdate,
    ctx: AuthContext = Depends(require_auth),
    playlists: PlaylistService = Depends(get_playlist_service),
):
    return await playlists.update(ctx, playlist_id, data.name, data.description)


@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: str,
    ctx: AuthContext = Depends(require_auth),
    playlists: PlaylistService = Depends(get_playlist_service),
):
    await playlists.delete(ctx, playlist_id)
    return {"message": "Playlist removed"}


# =============================================================================
# Membership
# =============================================================================

@router.post("/{playlist_id}/songs", response_model=Playlist)
async def add_song(
    playlist_id: str,
    data: AddSongRequest,
    ctx: AuthContext = Depends(require_auth),
    playlists: PlaylistService = Depends(get_playlist_service),
):
    return await playlists.add_song(ctx, playlist_id, data.song_id)


@router.put("/{playlist_id}/songs/order", response_model=Playlist)
async def reorder_songs(
    playlist_id: str,
    data: ReorderRequest,
    ctx: AuthContext = Depends(require_auth),
    playlists: PlaylistService = Depends(get_playlist_service),
):
    return await playlists.reorder(ctx, playlist_id, data.song_ids)


@router.delete("/{playlist_id}/songs/{song_id}", response_model=Playlist)
async def remove_song(
    playlist_id: str,
    song_id: str,
    ctx: AuthContext = Depends(require_auth),
    playlists: PlaylistService = Depends(get_playlist_service),
):
    return await playlists.remove_song(ctx, playlist_id, song_id)

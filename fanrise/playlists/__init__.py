"""Playlists - owner-gated CRUD and song membership."""

from fanrise.playlists.service import PlaylistService

__all__ = ["PlaylistService"]

"""
Fanrise - song catalog, playlists and account authentication API.
"""

__version__ = "0.1.0"

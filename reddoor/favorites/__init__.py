"""Favorites service."""

from reddoor.favorites.service import FavoritesService, FavoriteToggle

__all__ = ["FavoritesService", "FavoriteToggle"]

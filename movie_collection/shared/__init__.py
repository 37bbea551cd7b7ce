"""
Shared modules for the movie collection service
"""
from .models import Movie, MovieCreate, MovieUpdate, MovieFilterQuery, CollectionStats, HealthCheck
from .config import config

__all__ = ["Movie", "MovieCreate", "MovieUpdate", "MovieFilterQuery", "CollectionStats", "HealthCheck", "config"]

"""
Business logic service layer
"""
import asyncio
import logging
from collections import Counter
from typing import Any, Dict, List, Optional

import pydantic

from movie_collection.api.cache import CacheService
from movie_collection.api.omdb_client import OmdbClient
from movie_collection.shared.exceptions import NotFoundError, UpstreamError, ValidationError
from movie_collection.shared.models import (
    CollectionStats,
    Movie,
    MovieCreate,
    MovieFilterQuery,
    MovieUpdate,
)
from movie_collection.shared.repositories import MovieRepository

logger = logging.getLogger(__name__)

SEARCH_CACHE_TTL = 300  # 5 minutes
LIST_CACHE_KEY_PATTERN = "movies:list:*"

# Seed searches for the preferred-region listing; only the first five run
REGION_SEARCH_TERMS = [
    "Bollywood",
    "RRR",
    "Baahubali",
    "3 Idiots",
    "Dangal",
    "PK",
    "Kabhi Khushi Kabhie Gham",
    "Dilwale Dulhania Le Jayenge",
    "Lagaan",
    "Taare Zameen Par",
]
REGION_SEED_COUNT = 5

REGION_COUNTRY_KEYWORDS = ["India", "Indian"]

REGION_LANGUAGE_KEYWORDS = [
    "Bollywood", "Hindi", "Tamil", "Telugu", "Malayalam", "Kannada",
    "Bengali", "Marathi", "Punjabi", "Indian",
]

FEATURED_ACTORS = [
    "Shah Rukh Khan", "Amitabh Bachchan", "Aamir Khan", "Salman Khan",
    "Akshay Kumar", "Rajinikanth", "Kamal Haasan", "Allu Arjun",
    "Mahesh Babu", "Prabhas", "Vijay", "Ajith Kumar", "Mammootty",
    "Mohanlal", "Chiranjeevi", "Ranveer Singh", "Ranbir Kapoor",
    "Hrithik Roshan", "Deepika Padukone", "Priyanka Chopra", "Katrina Kaif",
    "Alia Bhatt", "Kangana Ranaut", "Kareena Kapoor", "Aishwarya Rai",
]
FEATURED_ACTOR_COUNT = 5

ACTOR_SEARCH_DETAIL_LIMIT = 10
FEATURED_ACTOR_DETAIL_LIMIT = 3


def _validation_message(exc: pydantic.ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid movie"


class MovieService:
    """Collection business logic service"""

    def __init__(self, repository: MovieRepository, cache: CacheService):
        self.repository = repository
        self.cache = cache

    async def get_movie_by_id(self, movie_id: str) -> Movie:
        """Get movie by ID with caching"""
        # Try cache first
        cache_key = self.cache.cache_key("movie", movie_id)
        cached_movie = await self.cache.get(cache_key)

        if cached_movie:
            logger.debug(f"Cache hit for movie {movie_id}")
            return Movie(**cached_movie)

        # Fetch from database
        movie = await self.repository.get_movie_by_id(movie_id)
        if not movie:
            raise NotFoundError("Movie not found")

        # Cache the result
        await self.cache.set(cache_key, movie.model_dump(mode="json"))
        logger.debug(f"Cached movie {movie_id}")

        return movie

    async def list_movies(self, query: MovieFilterQuery) -> List[Movie]:
        """List the collection with filters and sort, with caching"""
        cache_key = self.cache.cache_key(
            "movies:list",
            query.q or "",
            query.genre or "",
            query.min_rating or "",
            query.sort,
        )

        cached_result = await self.cache.get(cache_key)
        if cached_result is not None:
            logger.debug("Cache hit for collection listing")
            return [Movie(**movie) for movie in cached_result]

        movies = await self.repository.list_movies(query)

        # Shorter TTL for listings
        await self.cache.set(cache_key, [movie.model_dump(mode="json") for movie in movies], ttl=SEARCH_CACHE_TTL)

        return movies

    async def collection_stats(self, query: MovieFilterQuery) -> CollectionStats:
        """Totals, average rating and top genre for the filtered collection"""
        total = await self.repository.count_movies()
        movies = await self.list_movies(query)

        filtered = len(movies)
        average = sum(movie.rating or 0 for movie in movies) / (filtered or 1)

        # Ties go to the genre seen last
        genre_counts = Counter(movie.genre for movie in movies)
        top_genre = None
        for genre, count in genre_counts.items():
            if top_genre is None or count >= genre_counts[top_genre]:
                top_genre = genre

        return CollectionStats(
            total=total,
            filtered=filtered,
            average_rating=round(average, 1),
            top_genre=top_genre,
        )

    async def create_movie(self, movie: MovieCreate) -> Movie:
        """Create a new movie"""
        created_movie = await self.repository.create_movie(movie)

        # Cache the movie
        cache_key = self.cache.cache_key("movie", created_movie.id)
        await self.cache.set(cache_key, created_movie.model_dump(mode="json"))

        # Invalidate listing cache
        await self.cache.invalidate_pattern(LIST_CACHE_KEY_PATTERN)

        logger.info(f"Created movie: {created_movie.title} ({created_movie.id})")

        return created_movie

    async def import_catalog_record(self, record: Dict[str, Any], created_by: Optional[str] = None) -> Movie:
        """Add an OMDB detail record to the collection"""
        try:
            movie = MovieCreate.from_catalog_record(record, created_by=created_by)
        except pydantic.ValidationError as e:
            raise ValidationError(_validation_message(e)) from e

        return await self.create_movie(movie)

    async def update_movie(self, movie_id: str, changes: MovieUpdate) -> Movie:
        """Apply a partial update, re-validating the merged movie"""
        existing = await self.repository.get_movie_by_id(movie_id)
        if not existing:
            raise NotFoundError("Movie not found")

        sent = changes.model_dump(exclude_unset=True)
        merged = existing.model_dump(exclude={"id", "created_at", "updated_at"})
        merged.update(sent)

        try:
            validated = MovieCreate.model_validate(merged).model_dump()
        except pydantic.ValidationError as e:
            raise ValidationError(_validation_message(e)) from e

        updated_movie = await self.repository.update_movie(
            movie_id, {key: validated[key] for key in sent if key in validated}
        )
        if not updated_movie:
            raise NotFoundError("Movie not found")

        # Invalidate cache
        await self.cache.delete(self.cache.cache_key("movie", movie_id))
        await self.cache.invalidate_pattern(LIST_CACHE_KEY_PATTERN)

        logger.info(f"Updated movie: {updated_movie.title} ({updated_movie.id})")

        return updated_movie

    async def delete_movie(self, movie_id: str) -> None:
        """Delete a movie"""
        deleted = await self.repository.delete_movie(movie_id)
        if not deleted:
            raise NotFoundError("Movie not found")

        # Invalidate cache
        await self.cache.delete(self.cache.cache_key("movie", movie_id))
        await self.cache.invalidate_pattern(LIST_CACHE_KEY_PATTERN)

        logger.info(f"Deleted movie: {movie_id}")


def _item_imdb_id(item: Any) -> Optional[str]:
    """Catalog ID of a batch item: a bare ID or a search hit"""
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, dict):
        return item.get("imdbID") or item.get("imdb_id") or None
    return None


def is_region_movie(record: Dict[str, Any]) -> bool:
    """Whether a detail record matches the preferred-region allow-list"""
    country = record.get("Country") or ""
    if any(keyword in country for keyword in REGION_COUNTRY_KEYWORDS):
        return True

    language = (record.get("Language") or "").lower()
    if any(keyword.lower() in language for keyword in REGION_LANGUAGE_KEYWORDS):
        return True

    actors = record.get("Actors") or ""
    return any(actor in actors for actor in FEATURED_ACTORS)


def dedupe_by_imdb_id(movies: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One entry per imdbID; the last occurrence wins, first position is kept"""
    unique = {}
    for movie in movies:
        unique[movie.get("imdbID")] = movie
    return list(unique.values())


class CatalogService:
    """Aggregation over the OMDB catalog client

    Multi-call operations (batch details, region listing, actor searches) are
    best-effort: a detail fetch that fails is dropped from the result instead
    of failing the whole call. Nothing is retried.
    """

    def __init__(self, client: OmdbClient, cache: CacheService, config):
        self.client = client
        self.cache = cache
        self.config = config

    async def search_by_keyword(
        self,
        query: str,
        year: Optional[str] = None,
        type_: Optional[str] = None,
        page: Optional[int] = None,
    ) -> Dict[str, Any]:
        """One page of keyword hits plus OMDB's total-count hint"""
        cache_key = self.cache.cache_key("omdb:search", query.lower(), year or "", type_ or "", page or 1)
        cached_result = await self.cache.get(cache_key)
        if cached_result is not None:
            logger.debug(f"Cache hit for catalog search '{query}'")
            return cached_result

        data = await self.client.search(query, year=year, type_=type_, page=page)

        try:
            total_results = int(data.get("totalResults") or 0)
        except (TypeError, ValueError):
            total_results = 0

        result = {"movies": data.get("Search") or [], "total_results": total_results}
        await self.cache.set(cache_key, result, ttl=SEARCH_CACHE_TTL)
        return result

    async def get_details(self, imdb_id: str) -> Dict[str, Any]:
        """Full detail record for one catalog ID"""
        return await self._fetch_details(imdb_id, plot="full")

    async def get_many_details(self, items: List[Any]) -> List[Dict[str, Any]]:
        """Detail records for many items, fetched in rate-limited batches

        Items without an ID and items whose fetch fails are left out; the rest
        come back in input order.
        """
        if not items:
            return []

        # Fail once here rather than in every gathered fetch
        self.client.require_api_key()

        batch_size = self.config.batch_size
        detailed = []

        for start in range(0, len(items), batch_size):
            batch = items[start:start + batch_size]
            results = await asyncio.gather(*(self._fetch_details_or_none(item) for item in batch))
            detailed.extend(record for record in results if record is not None)

            if start + batch_size < len(items):
                await asyncio.sleep(self.config.batch_delay_seconds)

        if len(detailed) < len(items):
            logger.info(f"Batch details: {len(detailed)}/{len(items)} fetched, "
                        f"{len(items) - len(detailed)} skipped")

        return detailed

    async def search_preferred_region_movies(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Merged seed searches, narrowed to region matches when there are any"""
        hits = []
        seeds = REGION_SEARCH_TERMS[:REGION_SEED_COUNT]

        for index, term in enumerate(seeds):
            try:
                result = await self.search_by_keyword(term)
                hits.extend(result["movies"])
            except NotFoundError:
                logger.debug(f"No catalog matches for seed '{term}'")

            if index < len(seeds) - 1:
                await asyncio.sleep(self.config.search_delay_seconds)

        unique = dedupe_by_imdb_id(hits)
        detailed = await self.get_many_details(unique[:limit])

        region_movies = [record for record in detailed if is_region_movie(record)]
        if not region_movies:
            logger.info("No region matches among catalog results, returning unfiltered set")
            return detailed
        return region_movies

    async def search_by_actor(self, name: str) -> List[Dict[str, Any]]:
        """Movies whose cast mentions the actor

        OMDB has no actor search, so the name is used as a keyword query and
        the detailed hits are filtered on their Actors field.
        """
        try:
            result = await self.search_by_keyword(name)
        except NotFoundError:
            return []

        detailed = await self.get_many_details(result["movies"][:ACTOR_SEARCH_DETAIL_LIMIT])
        needle = name.lower()
        return [record for record in detailed if needle in (record.get("Actors") or "").lower()]

    async def get_featured_actors_movies(self) -> Dict[str, List[Dict[str, Any]]]:
        """A few detailed movies for each of the first featured actors"""
        actors_movies = {}
        actors = FEATURED_ACTORS[:FEATURED_ACTOR_COUNT]

        for index, actor in enumerate(actors):
            try:
                result = await self.search_by_keyword(actor)
            except NotFoundError:
                result = {"movies": []}

            if result["movies"]:
                actors_movies[actor] = await self.get_many_details(
                    result["movies"][:FEATURED_ACTOR_DETAIL_LIMIT]
                )

            if index < len(actors) - 1:
                await asyncio.sleep(self.config.actor_delay_seconds)

        return actors_movies

    def featured_actor_names(self) -> List[str]:
        return list(FEATURED_ACTORS)

    async def _fetch_details(self, imdb_id: str, plot: str) -> Dict[str, Any]:
        cache_key = self.cache.cache_key("omdb:detail", plot, imdb_id)
        cached_record = await self.cache.get(cache_key)
        if cached_record is not None:
            return cached_record

        record = await self.client.get_by_id(imdb_id, plot=plot)
        await self.cache.set(cache_key, record)
        return record

    async def _fetch_details_or_none(self, item: Any) -> Optional[Dict[str, Any]]:
        imdb_id = _item_imdb_id(item)
        if not imdb_id:
            logger.warning(f"Skipping batch item without imdbID: {item!r}")
            return None

        try:
            return await self._fetch_details(imdb_id, plot="short")
        except (NotFoundError, UpstreamError) as e:
            logger.warning(f"Skipping {imdb_id}: {e.message}")
            return None

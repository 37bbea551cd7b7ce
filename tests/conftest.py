from typing import Any, Dict, List, Optional

import fakeredis
import fakeredis.aioredis
import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from movie_collection.api.cache import CacheService
from movie_collection.api.main import app, get_catalog_service, get_movie_service
from movie_collection.api.omdb_client import OmdbClient
from movie_collection.api.services import CatalogService, MovieService
from movie_collection.shared.config import DatabaseConfig, OmdbConfig, RedisConfig
from movie_collection.shared.database import Database
from movie_collection.shared.repositories import MovieRepository

OMDB_TEST_URL = "https://omdb.test/"


def make_hit(imdb_id: str, title: str, year: str = "2001") -> Dict[str, Any]:
    """A keyword-search hit as OMDB returns it"""
    return {"Title": title, "Year": year, "imdbID": imdb_id, "Type": "movie", "Poster": "N/A"}


def make_detail(
    imdb_id: str,
    title: str,
    country: str = "USA",
    language: str = "English",
    actors: str = "Tom Hanks, Meg Ryan",
    genre: str = "Comedy, Romance",
    imdb_rating: str = "7.2",
) -> Dict[str, Any]:
    """A detail record as OMDB returns it (without the Response marker)"""
    return {
        "Title": title,
        "Year": "2001",
        "Rated": "PG",
        "Runtime": "120 min",
        "Genre": genre,
        "Director": "Jane Doe",
        "Actors": actors,
        "Plot": f"The story of {title}.",
        "Language": language,
        "Country": country,
        "Awards": "N/A",
        "Poster": f"https://img.test/{imdb_id}.jpg",
        "imdbRating": imdb_rating,
        "imdbID": imdb_id,
        "Type": "movie",
        "BoxOffice": "$1,000,000",
        "Production": "N/A",
    }


class FakeOmdb:
    """Answers OMDB requests from canned searches and detail records"""

    def __init__(self):
        self.searches: Dict[str, List[Dict[str, Any]]] = {}
        self.details: Dict[str, Dict[str, Any]] = {}
        self.failing_ids = set()
        self.requests: List[Dict[str, str]] = []

    def add_movie(self, detail: Dict[str, Any], search_terms: Optional[List[str]] = None):
        self.details[detail["imdbID"]] = detail
        for term in search_terms or []:
            self.searches.setdefault(term, []).append(make_hit(detail["imdbID"], detail["Title"]))

    def handler(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        self.requests.append(params)

        if "s" in params:
            hits = self.searches.get(params["s"])
            if not hits:
                return httpx.Response(200, json={"Response": "False", "Error": "Movie not found!"})
            return httpx.Response(
                200, json={"Search": hits, "totalResults": str(len(hits)), "Response": "True"}
            )

        imdb_id = params.get("i")
        if imdb_id in self.failing_ids:
            raise httpx.ConnectError("connection refused", request=request)

        detail = self.details.get(imdb_id)
        if detail is None:
            return httpx.Response(200, json={"Response": "False", "Error": "Incorrect IMDb ID."})
        return httpx.Response(200, json={**detail, "Response": "True"})

    def detail_requests(self) -> List[str]:
        return [params["i"] for params in self.requests if "i" in params]


@pytest.fixture
def fake_omdb():
    return FakeOmdb()


@pytest.fixture
def omdb_config():
    return OmdbConfig(
        api_key="test-key",
        base_url=OMDB_TEST_URL,
        batch_delay_seconds=0,
        search_delay_seconds=0,
        actor_delay_seconds=0,
    )


@pytest_asyncio.fixture
async def omdb_client(fake_omdb, omdb_config):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_omdb.handler))
    client = OmdbClient(omdb_config, http_client=http_client)
    yield client
    await client.close()


@pytest.fixture
def cache():
    """Cache without Redis: every lookup misses"""
    return CacheService(RedisConfig(host=None))


@pytest_asyncio.fixture
async def redis_cache():
    """Cache backed by an in-memory Redis private to the test"""
    cache = CacheService(RedisConfig(host="localhost"))
    cache.client = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield cache
    await cache.disconnect()


@pytest.fixture
def catalog_service(omdb_client, cache, omdb_config):
    return CatalogService(client=omdb_client, cache=cache, config=omdb_config)


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(DatabaseConfig(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'movies.db'}"))
    yield db
    await db.disconnect()


@pytest.fixture
def movie_service(database, cache):
    return MovieService(repository=MovieRepository(database), cache=cache)


@pytest_asyncio.fixture
async def client(movie_service, catalog_service):
    """HTTP client against the app with test services injected"""
    app.dependency_overrides[get_movie_service] = lambda: movie_service
    app.dependency_overrides[get_catalog_service] = lambda: catalog_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

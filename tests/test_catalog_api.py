"""
Catalog routes against a fake OMDB
"""
import pytest

from movie_collection.api.services import FEATURED_ACTORS

from .conftest import make_detail, make_hit


@pytest.mark.asyncio
async def test_search_requires_query(client):
    response = await client.get("/api/omdb/search")

    assert response.status_code == 400
    assert response.json()["error"] == "Search query is required"


@pytest.mark.asyncio
async def test_search_returns_envelope(client, fake_omdb):
    fake_omdb.add_movie(make_detail("tt0169102", "Lagaan"), search_terms=["Lagaan"])

    response = await client.get("/api/omdb/search", params={"query": "Lagaan", "year": "2001", "type": "movie"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["total_results"] == 1
    assert body["movies"] == [make_hit("tt0169102", "Lagaan")]
    assert fake_omdb.requests[-1]["y"] == "2001"
    assert fake_omdb.requests[-1]["type"] == "movie"


@pytest.mark.asyncio
async def test_search_without_matches_is_not_found(client):
    response = await client.get("/api/omdb/search", params={"query": "zzzz"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Movie not found!"}


@pytest.mark.asyncio
async def test_movie_details(client, fake_omdb):
    fake_omdb.add_movie(make_detail("tt0169102", "Lagaan"))

    response = await client.get("/api/omdb/movie/tt0169102")

    assert response.status_code == 200
    assert response.json()["movie"]["Title"] == "Lagaan"
    assert fake_omdb.requests[-1]["plot"] == "full"


@pytest.mark.asyncio
async def test_movie_details_unknown_id(client):
    response = await client.get("/api/omdb/movie/tt0000404")

    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_upstream_failure_is_a_server_error(client, fake_omdb):
    fake_omdb.failing_ids.add("tt0000500")

    response = await client.get("/api/omdb/movie/tt0000500")

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["error"] == "Movie catalog request failed"


@pytest.mark.asyncio
async def test_batch_details_reports_skipped_items(client, fake_omdb):
    fake_omdb.add_movie(make_detail("tt0000001", "One"))
    fake_omdb.add_movie(make_detail("tt0000002", "Two"))

    response = await client.post(
        "/api/omdb/batch-details",
        json={"id_list": ["tt0000001", make_hit("tt0000002", "Two"), "tt0000404", {"Title": "No id"}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert [movie["Title"] for movie in body["movies"]] == ["One", "Two"]
    assert body["count"] == 2
    assert body["skipped"] == 2


@pytest.mark.asyncio
async def test_batch_details_accepts_camel_case_list(client, fake_omdb):
    fake_omdb.add_movie(make_detail("tt0000001", "One"))

    response = await client.post("/api/omdb/batch-details", json={"idList": ["tt0000001"]})

    assert response.status_code == 200
    assert response.json()["count"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"id_list": "tt0000001"}])
async def test_batch_details_requires_a_list(client, payload):
    response = await client.post("/api/omdb/batch-details", json=payload)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_region_movies(client, fake_omdb):
    fake_omdb.add_movie(make_detail("tt0000001", "Indian", country="India"), search_terms=["Bollywood"])
    fake_omdb.add_movie(make_detail("tt0000002", "Not Indian"), search_terms=["Bollywood"])

    response = await client.get("/api/omdb/region-movies", params={"limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["movies"][0]["Title"] == "Indian"


@pytest.mark.asyncio
async def test_search_by_actor_requires_name(client):
    response = await client.get("/api/omdb/search-by-actor", params={"actor": "  "})

    assert response.status_code == 400
    assert response.json()["error"] == "Actor name is required"


@pytest.mark.asyncio
async def test_search_by_actor(client, fake_omdb):
    fake_omdb.add_movie(make_detail("tt0000001", "Dil Se", actors="Shah Rukh Khan, Manisha Koirala"),
                        search_terms=["Shah Rukh Khan"])

    response = await client.get("/api/omdb/search-by-actor", params={"actor": "Shah Rukh Khan"})

    assert response.json() == {
        "success": True,
        "movies": [{**make_detail("tt0000001", "Dil Se", actors="Shah Rukh Khan, Manisha Koirala"),
                    "Response": "True"}],
        "count": 1,
    }


@pytest.mark.asyncio
async def test_featured_actors(client, fake_omdb):
    fake_omdb.add_movie(make_detail("tt0000001", "Sholay", actors=FEATURED_ACTORS[1]),
                        search_terms=[FEATURED_ACTORS[1]])

    response = await client.get("/api/omdb/featured-actors")

    assert response.status_code == 200
    assert list(response.json()["actors_movies"]) == [FEATURED_ACTORS[1]]


@pytest.mark.asyncio
async def test_featured_actor_names(client):
    response = await client.get("/api/omdb/featured-actor-names")

    assert response.json() == {"success": True, "actors": FEATURED_ACTORS}


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")

    assert response.json()["message"] == "Movie Collection API"


@pytest.mark.asyncio
async def test_batch_details_accepts_movie_list_key(client, fake_omdb):
    fake_omdb.add_movie(make_detail("tt0000001", "One"))

    response = await client.post("/api/omdb/batch-details", json={"movieList": [make_hit("tt0000001", "One")]})

    assert response.status_code == 200
    assert response.json()["count"] == 1

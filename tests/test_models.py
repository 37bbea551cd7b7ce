import pydantic
import pytest

from movie_collection.shared.models import (
    Genre,
    MovieCreate,
    map_catalog_genre,
    map_catalog_rating,
)

from .conftest import make_detail


@pytest.mark.parametrize("catalog_genre,expected", [
    ("Action, Crime, Drama", Genre.ACTION),
    ("Comedy, Romance", Genre.COMEDY),
    ("Drama, Romance", Genre.ROM_COM),
    ("Horror, Mystery", Genre.HORROR),
    ("Crime, Thriller", Genre.THRILLER),
    ("Adventure, Sci-Fi", Genre.SCI_FI),
    ("Science Fiction", Genre.SCI_FI),
    ("Animation, Fantasy", Genre.FANTASY),
    ("Biography, Sport", Genre.DRAMA),
    ("N/A", Genre.DRAMA),
    (None, Genre.DRAMA),
])
def test_map_catalog_genre(catalog_genre, expected):
    assert map_catalog_genre(catalog_genre) == expected


@pytest.mark.parametrize("catalog_rating,expected", [
    ("10.0", 5),
    ("8.1", 4),
    ("5.0", 3),
    ("0.4", 1),
    ("N/A", 3),
    (None, 3),
])
def test_map_catalog_rating(catalog_rating, expected):
    assert map_catalog_rating(catalog_rating) == expected


def test_from_catalog_record_drops_missing_values():
    record = make_detail("tt0000001", "Swades", actors="N/A", genre="Drama")

    movie = MovieCreate.from_catalog_record(record, created_by="user-1")

    assert movie.title == "Swades"
    assert movie.genre == "Drama"
    assert movie.actor is None
    assert movie.cast is None
    assert movie.awards is None
    assert movie.box_office == "$1,000,000"
    assert movie.created_by == "user-1"


def test_from_catalog_record_without_title_is_invalid():
    record = make_detail("tt0000001", "N/A")

    with pytest.raises(pydantic.ValidationError):
        MovieCreate.from_catalog_record(record)


def test_blank_imdb_id_is_absent():
    movie = MovieCreate(title="Home video", genre="Drama", imdb_id="  ")

    assert movie.imdb_id is None


def test_long_catalog_text_fields_import():
    countries = ", ".join(["India", "United States", "United Kingdom", "Germany", "France"] * 20)
    languages = ", ".join(["Hindi", "English", "Tamil", "Telugu", "Malayalam"] * 20)
    record = {**make_detail("tt0000001", "World Tour"), "Country": countries, "Language": languages}

    movie = MovieCreate.from_catalog_record(record)

    assert movie.country == countries
    assert movie.language == languages

"""
Shared data models for the movie collection service
"""
import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Genre(str, Enum):
    """Collection genres enum"""
    ACTION = "Action"
    COMEDY = "Comedy"
    ROM_COM = "Rom-Com"
    DRAMA = "Drama"
    HORROR = "Horror"
    THRILLER = "Thriller"
    SCI_FI = "Sci-Fi"
    FANTASY = "Fantasy"


class SortOrder(str, Enum):
    """Collection listing sort orders"""
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    RATING_HIGH = "rating-high"
    RATING_LOW = "rating-low"


# Checked in order; the first keyword found in the catalog genre wins
CATALOG_GENRE_KEYWORDS = [
    (("action",), Genre.ACTION),
    (("comedy",), Genre.COMEDY),
    (("romance",), Genre.ROM_COM),
    (("horror",), Genre.HORROR),
    (("thriller",), Genre.THRILLER),
    (("sci-fi", "science fiction"), Genre.SCI_FI),
    (("fantasy",), Genre.FANTASY),
]

MISSING = "N/A"


def _catalog_value(record: Dict[str, Any], key: str) -> Optional[str]:
    value = record.get(key)
    if value is None:
        return None
    value = str(value).strip()
    if not value or value == MISSING:
        return None
    return value


def map_catalog_genre(catalog_genre: Optional[str]) -> Genre:
    """Map a free-text catalog genre list onto the collection's fixed genres"""
    if not catalog_genre or catalog_genre == MISSING:
        return Genre.DRAMA

    genres = catalog_genre.lower()
    for keywords, genre in CATALOG_GENRE_KEYWORDS:
        if any(keyword in genres for keyword in keywords):
            return genre
    return Genre.DRAMA


def map_catalog_rating(catalog_rating: Optional[str]) -> int:
    """Convert a 0-10 catalog rating into the collection's 1-5 stars"""
    try:
        # Half-up rounding: 5.0 on the catalog scale is 3 stars
        stars = math.floor(float(catalog_rating) / 2 + 0.5)
    except (TypeError, ValueError):
        return 3
    return min(5, max(1, stars))


class MovieFields(BaseModel):
    """Optional movie fields shared by create, update and read models"""
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    actor: Optional[str] = Field(None, max_length=500)
    rating: Optional[int] = Field(None, ge=1, le=5)
    poster_url: Optional[str] = None
    director: Optional[str] = Field(None, max_length=500)
    cast: Optional[str] = None

    # External catalog fields
    imdb_id: Optional[str] = Field(None, max_length=20)
    imdb_rating: Optional[str] = Field(None, max_length=10)
    year: Optional[str] = Field(None, max_length=20)
    runtime: Optional[str] = Field(None, max_length=20)
    plot: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
    awards: Optional[str] = None
    trailer: Optional[str] = None
    box_office: Optional[str] = Field(None, max_length=50)
    production: Optional[str] = None

    created_by: Optional[str] = Field(None, max_length=100)

    @field_validator("imdb_id")
    @classmethod
    def blank_imdb_id_is_absent(cls, v):
        """An empty external ID does not take part in the uniqueness check"""
        return v or None


class MovieCreate(MovieFields):
    """Movie submitted for the collection"""
    title: str = Field(..., min_length=1, max_length=500)
    genre: Genre

    @classmethod
    def from_catalog_record(cls, record: Dict[str, Any], created_by: Optional[str] = None) -> "MovieCreate":
        """Pre-fill a collection movie from an OMDB detail record"""
        actors = _catalog_value(record, "Actors")
        return cls(
            title=_catalog_value(record, "Title") or "",
            genre=map_catalog_genre(_catalog_value(record, "Genre")),
            actor=actors.split(",")[0].strip() if actors else None,
            rating=map_catalog_rating(_catalog_value(record, "imdbRating")),
            poster_url=_catalog_value(record, "Poster"),
            director=_catalog_value(record, "Director"),
            cast=actors,
            imdb_id=_catalog_value(record, "imdbID"),
            imdb_rating=_catalog_value(record, "imdbRating"),
            year=_catalog_value(record, "Year"),
            runtime=_catalog_value(record, "Runtime"),
            plot=_catalog_value(record, "Plot"),
            country=_catalog_value(record, "Country"),
            language=_catalog_value(record, "Language"),
            awards=_catalog_value(record, "Awards"),
            box_office=_catalog_value(record, "BoxOffice"),
            production=_catalog_value(record, "Production"),
            created_by=created_by,
        )


class MovieUpdate(MovieFields):
    """Partial update; only the fields sent are replaced"""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    genre: Optional[Genre] = None


class Movie(MovieCreate):
    """Movie data model as stored in the collection"""
    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True, use_enum_values=True)

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MovieFilterQuery(BaseModel):
    """Collection listing filters"""
    model_config = ConfigDict(use_enum_values=True)

    q: Optional[str] = Field(None, max_length=200)
    genre: Optional[Genre] = None
    min_rating: Optional[int] = Field(None, ge=1, le=5)
    sort: SortOrder = Field(SortOrder.NEWEST, validate_default=True)


class CollectionStats(BaseModel):
    """Summary of the (optionally filtered) collection"""
    total: int
    filtered: int
    average_rating: float
    top_genre: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class CatalogSearchResponse(BaseModel):
    success: bool = True
    movies: List[Dict[str, Any]]
    total_results: int


class CatalogMovieResponse(BaseModel):
    success: bool = True
    movie: Dict[str, Any]


class CatalogMoviesResponse(BaseModel):
    success: bool = True
    movies: List[Dict[str, Any]]
    count: int


class BatchDetailsRequest(BaseModel):
    """Items are catalog IDs or search hits carrying an imdbID"""
    id_list: List[Union[str, Dict[str, Any], None]] = Field(
        ..., validation_alias=AliasChoices("id_list", "idList", "movieList")
    )


class BatchDetailsResponse(CatalogMoviesResponse):
    skipped: int = 0


class FeaturedActorsResponse(BaseModel):
    success: bool = True
    actors_movies: Dict[str, List[Dict[str, Any]]]


class ActorNamesResponse(BaseModel):
    success: bool = True
    actors: List[str]


class HealthCheck(BaseModel):
    """Health check response"""
    status: str
    timestamp: datetime
    version: str
    services: Dict[str, str]

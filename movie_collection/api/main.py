"""
FastAPI Movie Collection API Service
"""
import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from movie_collection.api.cache import CacheService
from movie_collection.api.omdb_client import OmdbClient
from movie_collection.api.services import CatalogService, MovieService
from movie_collection.shared import (
    CollectionStats,
    HealthCheck,
    Movie,
    MovieCreate,
    MovieFilterQuery,
    MovieUpdate,
    config,
)
from movie_collection.shared.database import Database
from movie_collection.shared.exceptions import MovieCollectionError, StoreError, ValidationError
from movie_collection.shared.models import (
    ActorNamesResponse,
    BatchDetailsRequest,
    BatchDetailsResponse,
    CatalogMovieResponse,
    CatalogMoviesResponse,
    CatalogSearchResponse,
    FeaturedActorsResponse,
    Genre,
    MessageResponse,
    SortOrder,
)
from movie_collection.shared.repositories import MovieRepository


# Configure logging
logging.basicConfig(
    level=getattr(logging, config.app.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
# httpx logs full request URLs at INFO, and OMDB URLs carry the API key
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Startup
    logger.info("🚀 Starting Movie Collection API...")

    if app.state.database.is_configured:
        try:
            await app.state.database.connect()
        except StoreError:
            # Retried on first use by the collection routes
            logger.warning("Collection store unavailable at startup")
    else:
        logger.warning("DATABASE_URL not set, collection routes are disabled")

    await app.state.cache.connect()

    if not config.omdb.is_configured:
        logger.warning("OMDB_API_KEY not set, catalog routes will fail")

    yield

    # Shutdown
    logger.info("🛑 Shutting down Movie Collection API...")
    await app.state.database.disconnect()
    await app.state.cache.disconnect()
    await app.state.omdb.close()
    logger.info("✅ Graceful shutdown completed")


# Create FastAPI app
app = FastAPI(
    title="Movie Collection API",
    description="Personal movie collection with OMDB catalog search and import",
    version=config.app.version,
    lifespan=lifespan,
    docs_url="/docs" if config.app.debug else None,
    redoc_url="/redoc" if config.app.debug else None
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.app.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Initialize services
app.state.database = Database(config.database)
app.state.cache = CacheService(config.redis)
app.state.omdb = OmdbClient(config.omdb)


def get_movie_service(request: Request) -> MovieService:
    """Dependency injection for movie service"""
    state = request.app.state
    return MovieService(
        repository=MovieRepository(state.database),
        cache=state.cache
    )


def get_catalog_service(request: Request) -> CatalogService:
    """Dependency injection for catalog service"""
    state = request.app.state
    return CatalogService(client=state.omdb, cache=state.cache, config=config.omdb)


def _error_response(status_code: int, message: str, exc: Optional[BaseException] = None) -> JSONResponse:
    content = {"success": False, "error": message}
    if exc is not None and not config.is_production:
        content["details"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(MovieCollectionError)
async def movie_collection_exception_handler(request: Request, exc: MovieCollectionError):
    """Map domain errors to their HTTP status"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        return _error_response(exc.status_code, exc.message, exc)

    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400, not FastAPI's default 422"""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    message = "; ".join(messages) or "Invalid request"
    logger.info(f"{request.method} {request.url.path} -> 400: {message}")
    return _error_response(400, message)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return _error_response(500, "Internal server error", exc)


@app.get("/", response_model=dict)
async def root():
    """Root endpoint"""
    return {
        "message": "Movie Collection API",
        "version": config.app.version,
        "docs_url": "/docs" if config.app.debug else "Contact admin for API documentation"
    }


@app.get("/health", response_model=HealthCheck)
async def health_check(request: Request):
    """Health check endpoint"""
    state = request.app.state
    services = {}

    if state.database.is_configured:
        db_status = await state.database.health_check()
        services["database"] = "healthy" if db_status else "unhealthy"
    else:
        services["database"] = "disabled"

    if state.cache.is_enabled:
        cache_status = await state.cache.health_check()
        services["cache"] = "healthy" if cache_status else "unhealthy"
    else:
        services["cache"] = "disabled"

    services["catalog"] = "configured" if state.omdb.is_configured else "not configured"

    # Overall status
    status = "degraded" if any(s in ("unhealthy", "not configured") for s in services.values()) else "healthy"

    return HealthCheck(
        status=status,
        timestamp=datetime.now(timezone.utc),
        version=config.app.version,
        services=services
    )


# Collection routes

def movie_filters(
    q: Optional[str] = Query(None, description="Substring of title, actor, director or cast"),
    genre: Optional[Genre] = Query(None, description="Exact genre"),
    min_rating: Optional[int] = Query(None, ge=1, le=5, description="Minimum rating"),
    sort: SortOrder = Query(SortOrder.NEWEST, description="Sort order"),
) -> MovieFilterQuery:
    return MovieFilterQuery(q=q or None, genre=genre, min_rating=min_rating, sort=sort)


@app.get("/api/movies", response_model=List[Movie])
async def list_movies(
    query: MovieFilterQuery = Depends(movie_filters),
    movie_service: MovieService = Depends(get_movie_service)
):
    """
    List the collection

    Supports filtering by:
    - q: case-insensitive substring of title, actor, director or cast
    - genre: exact genre
    - min_rating: rating at or above the given stars
    and sorting by newest, oldest, title-asc, title-desc, rating-high, rating-low
    """
    return await movie_service.list_movies(query)


@app.get("/api/movies/stats", response_model=CollectionStats)
async def collection_stats(
    query: MovieFilterQuery = Depends(movie_filters),
    movie_service: MovieService = Depends(get_movie_service)
):
    """Totals, average rating and top genre for the filtered collection"""
    return await movie_service.collection_stats(query)


@app.post("/api/movies", response_model=Movie, status_code=201)
async def create_movie(
    movie: MovieCreate,
    movie_service: MovieService = Depends(get_movie_service)
):
    """Add a movie to the collection"""
    return await movie_service.create_movie(movie)


@app.post("/api/movies/import/{imdb_id}", response_model=Movie, status_code=201)
async def import_movie(
    imdb_id: str,
    movie_service: MovieService = Depends(get_movie_service),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Add a movie to the collection from its OMDB record"""
    record = await catalog_service.get_details(imdb_id)
    return await movie_service.import_catalog_record(record)


@app.get("/api/movies/{movie_id}", response_model=Movie)
async def get_movie(
    movie_id: str,
    movie_service: MovieService = Depends(get_movie_service)
):
    """Get a specific movie by ID"""
    return await movie_service.get_movie_by_id(movie_id)


@app.put("/api/movies/{movie_id}", response_model=Movie)
async def update_movie(
    movie_id: str,
    changes: MovieUpdate,
    movie_service: MovieService = Depends(get_movie_service)
):
    """Replace the fields sent, keeping the rest"""
    return await movie_service.update_movie(movie_id, changes)


@app.delete("/api/movies/{movie_id}", response_model=MessageResponse)
async def delete_movie(
    movie_id: str,
    movie_service: MovieService = Depends(get_movie_service)
):
    """Delete a movie"""
    await movie_service.delete_movie(movie_id)
    return MessageResponse(message="Movie deleted successfully")


# Catalog routes

@app.get("/api/omdb/search", response_model=CatalogSearchResponse)
async def search_catalog(
    query: Optional[str] = Query(None, description="Search keywords"),
    year: Optional[str] = Query(None, description="Release year"),
    type_: Optional[str] = Query(None, alias="type", description="movie, series or episode"),
    page: Optional[int] = Query(None, ge=1, description="Result page"),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Keyword search in the OMDB catalog"""
    if not query or not query.strip():
        raise ValidationError("Search query is required")

    result = await catalog_service.search_by_keyword(query.strip(), year=year, type_=type_, page=page)
    return CatalogSearchResponse(movies=result["movies"], total_results=result["total_results"])


@app.get("/api/omdb/movie/{imdb_id}", response_model=CatalogMovieResponse)
async def get_catalog_movie(
    imdb_id: str,
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Full OMDB record for one IMDB ID"""
    movie = await catalog_service.get_details(imdb_id)
    return CatalogMovieResponse(movie=movie)


@app.get("/api/omdb/region-movies", response_model=CatalogMoviesResponse)
async def region_movies(
    limit: int = Query(20, ge=1, le=100, description="Maximum movies to detail"),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Popular movies from the preferred region"""
    movies = await catalog_service.search_preferred_region_movies(limit)
    return CatalogMoviesResponse(movies=movies, count=len(movies))


@app.get("/api/omdb/search-by-actor", response_model=CatalogMoviesResponse)
async def search_by_actor(
    actor: Optional[str] = Query(None, description="Actor name"),
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Movies whose cast includes the actor"""
    if not actor or not actor.strip():
        raise ValidationError("Actor name is required")

    movies = await catalog_service.search_by_actor(actor.strip())
    return CatalogMoviesResponse(movies=movies, count=len(movies))


@app.get("/api/omdb/featured-actors", response_model=FeaturedActorsResponse)
async def featured_actors(
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """A few movies for each featured actor"""
    actors_movies = await catalog_service.get_featured_actors_movies()
    return FeaturedActorsResponse(actors_movies=actors_movies)


@app.post("/api/omdb/batch-details", response_model=BatchDetailsResponse)
async def batch_details(
    body: BatchDetailsRequest,
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Detail records for many catalog IDs; failed items are skipped"""
    movies = await catalog_service.get_many_details(body.id_list)
    return BatchDetailsResponse(
        movies=movies,
        count=len(movies),
        skipped=len(body.id_list) - len(movies)
    )


@app.get("/api/omdb/featured-actor-names", response_model=ActorNamesResponse)
async def featured_actor_names(
    catalog_service: CatalogService = Depends(get_catalog_service)
):
    """Names of the featured actors"""
    return ActorNamesResponse(actors=catalog_service.featured_actor_names())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "movie_collection.api.main:app",
        host=config.app.host,
        port=config.app.port,
        log_level=config.app.log_level.lower(),
        reload=config.app.debug
    )

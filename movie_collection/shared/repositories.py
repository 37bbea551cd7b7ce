"""
Data repository layer
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from movie_collection.shared.database import Database, MovieModel
from movie_collection.shared.exceptions import ConflictError, StoreError
from movie_collection.shared.models import Movie, MovieCreate, MovieFilterQuery, SortOrder

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "This movie is already in your collection"

SORT_ORDERS = {
    SortOrder.NEWEST.value: (MovieModel.created_at.desc(),),
    SortOrder.OLDEST.value: (MovieModel.created_at.asc(),),
    SortOrder.TITLE_ASC.value: (func.lower(MovieModel.title).asc(), MovieModel.created_at.desc()),
    SortOrder.TITLE_DESC.value: (func.lower(MovieModel.title).desc(), MovieModel.created_at.desc()),
    # Unrated movies sort as 0
    SortOrder.RATING_HIGH.value: (func.coalesce(MovieModel.rating, 0).desc(), MovieModel.created_at.desc()),
    SortOrder.RATING_LOW.value: (func.coalesce(MovieModel.rating, 0).asc(), MovieModel.created_at.desc()),
}


class MovieRepository:
    """Movie data repository"""

    def __init__(self, database: Database):
        self.database = database

    async def create_movie(self, movie: MovieCreate) -> Movie:
        """Create a new movie"""
        try:
            async with self.database.session() as session:
                if movie.imdb_id and await self._imdb_id_taken(session, movie.imdb_id):
                    raise ConflictError(DUPLICATE_MESSAGE)

                db_movie = MovieModel(**movie.model_dump())

                session.add(db_movie)
                await session.commit()
                await session.refresh(db_movie)

                return self._model_to_movie(db_movie)

        except IntegrityError as e:
            logger.warning(f"Duplicate movie rejected ({movie.imdb_id}): {str(e)}")
            raise ConflictError(DUPLICATE_MESSAGE) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating movie: {str(e)}")
            raise StoreError("Failed to create movie") from e

    async def get_movie_by_id(self, movie_id: str) -> Optional[Movie]:
        """Get movie by ID"""
        try:
            async with self.database.session() as session:
                db_movie = await session.get(MovieModel, movie_id)

                return self._model_to_movie(db_movie) if db_movie else None

        except SQLAlchemyError as e:
            logger.error(f"Error fetching movie {movie_id}: {str(e)}")
            raise StoreError("Failed to fetch movie") from e

    async def update_movie(self, movie_id: str, changes: Dict[str, Any]) -> Optional[Movie]:
        """Replace the given fields of an existing movie"""
        try:
            async with self.database.session() as session:
                db_movie = await session.get(MovieModel, movie_id)

                if not db_movie:
                    return None

                new_imdb_id = changes.get("imdb_id")
                if new_imdb_id and new_imdb_id != db_movie.imdb_id:
                    if await self._imdb_id_taken(session, new_imdb_id, exclude_id=movie_id):
                        raise ConflictError(DUPLICATE_MESSAGE)

                # Update fields
                for key, value in changes.items():
                    if key != "id" and hasattr(db_movie, key):
                        setattr(db_movie, key, value)

                await session.commit()
                await session.refresh(db_movie)

                return self._model_to_movie(db_movie)

        except IntegrityError as e:
            logger.warning(f"Duplicate movie rejected on update {movie_id}: {str(e)}")
            raise ConflictError(DUPLICATE_MESSAGE) from e
        except SQLAlchemyError as e:
            logger.error(f"Error updating movie {movie_id}: {str(e)}")
            raise StoreError("Failed to update movie") from e

    async def delete_movie(self, movie_id: str) -> bool:
        """Delete a movie"""
        try:
            async with self.database.session() as session:
                db_movie = await session.get(MovieModel, movie_id)

                if not db_movie:
                    return False

                await session.delete(db_movie)
                await session.commit()
                return True

        except SQLAlchemyError as e:
            logger.error(f"Error deleting movie {movie_id}: {str(e)}")
            raise StoreError("Failed to delete movie") from e

    async def list_movies(self, query: MovieFilterQuery) -> List[Movie]:
        """List movies matching the collection filters"""
        try:
            async with self.database.session() as session:
                stmt = select(MovieModel)

                conditions = []

                # Free text matches title, lead actor, director or cast
                if query.q:
                    pattern = f"%{query.q}%"
                    conditions.append(or_(
                        MovieModel.title.ilike(pattern),
                        MovieModel.actor.ilike(pattern),
                        MovieModel.director.ilike(pattern),
                        MovieModel.cast.ilike(pattern),
                    ))

                if query.genre:
                    conditions.append(MovieModel.genre == query.genre)

                if query.min_rating:
                    conditions.append(MovieModel.rating >= query.min_rating)

                if conditions:
                    stmt = stmt.where(and_(*conditions))

                stmt = stmt.order_by(*SORT_ORDERS[query.sort])

                result = await session.execute(stmt)
                db_movies = result.scalars().all()

                return [self._model_to_movie(db_movie) for db_movie in db_movies]

        except SQLAlchemyError as e:
            logger.error(f"Error listing movies: {str(e)}")
            raise StoreError("Failed to fetch movies") from e

    async def count_movies(self) -> int:
        """Count every movie in the collection"""
        try:
            async with self.database.session() as session:
                result = await session.execute(select(func.count(MovieModel.id)))
                return result.scalar() or 0

        except SQLAlchemyError as e:
            logger.error(f"Error counting movies: {str(e)}")
            raise StoreError("Failed to fetch movies") from e

    async def _imdb_id_taken(self, session, imdb_id: str, exclude_id: Optional[str] = None) -> bool:
        stmt = select(MovieModel.id).where(MovieModel.imdb_id == imdb_id)
        if exclude_id:
            stmt = stmt.where(MovieModel.id != exclude_id)
        result = await session.execute(stmt)
        return result.first() is not None

    def _model_to_movie(self, db_movie: MovieModel) -> Movie:
        """Convert database model to Movie object"""
        return Movie.model_validate(db_movie)

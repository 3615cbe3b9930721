from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

MIN_RATING = 1
MAX_RATING = 5


class Rating(SQLModel, table=True):
    """One rater's observation for a movie; ``rating`` is NULL when absent."""

    __tablename__ = "ratings"
    __table_args__ = (
        CheckConstraint(
            f"rating IS NULL OR rating BETWEEN {MIN_RATING} AND {MAX_RATING}",
            name="ck_ratings_rating_range",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    movie_id: int = Field(foreign_key="movies.id", index=True)
    person: str = Field(index=True)
    rating: int | None = None

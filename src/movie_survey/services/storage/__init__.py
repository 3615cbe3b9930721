from .join_loader import JoinLoader
from .movie_repository import MovieRepository
from .rating_repository import RatingRepository, validate_rating_row
from .report_store import ReportStore
from .schema import ensure_schema
from .store import SurveyStore, open_store

__all__ = [
    "JoinLoader",
    "MovieRepository",
    "RatingRepository",
    "ReportStore",
    "SurveyStore",
    "ensure_schema",
    "open_store",
    "validate_rating_row",
]

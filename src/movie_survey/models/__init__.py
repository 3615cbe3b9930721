from movie_survey.models.dataset import RatingInput, RatingRow, SurveyDataset
from movie_survey.models.movie import Movie
from movie_survey.models.observation import JoinedObservation
from movie_survey.models.rating import MAX_RATING, MIN_RATING, Rating

__all__ = [
    "MAX_RATING",
    "MIN_RATING",
    "JoinedObservation",
    "Movie",
    "Rating",
    "RatingInput",
    "RatingRow",
    "SurveyDataset",
]

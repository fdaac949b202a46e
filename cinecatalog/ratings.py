"""
Average-rating and trending-score aggregation.

Reviews are rated on a 1-5 scale. The movie's persisted ``rating`` field is a
cached copy of the live average rescaled to a 10-point display scale; the
review collection stays the source of truth. Trending scores are never
persisted and are recomputed on every listing request.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

from beanie import PydanticObjectId
from beanie.operators import In, Set

from .models import Movie, Review

logger = logging.getLogger(__name__)

REVIEW_SCALE = 5
DISPLAY_SCALE = 10

VIEWS_WEIGHT = 0.3
REVIEWS_WEIGHT = 0.4
RATING_WEIGHT = 0.3

VIEWS_CEILING = 10_000
REVIEWS_CEILING = 100


@dataclass
class RatedMovie:
    """A movie together with the values derived from its live reviews."""

    movie: Movie
    reviews_count: int
    average_rating: float  # 1-5 scale
    trending_score: float


def compute_average_rating(reviews) -> float:
    """
    Mean rating over the reviews that are not soft-deleted.

    Args:
        reviews: Iterable of objects exposing ``rating`` and ``is_deleted``.

    Returns:
        The unrounded mean on the 1-5 scale, or 0 when no live review exists.
    """
    ratings = [review.rating for review in reviews if not review.is_deleted]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


def to_display_rating(average_rating: float) -> float:
    """Rescale a 1-5 average to the 0-10 display scale."""
    return (average_rating / REVIEW_SCALE) * DISPLAY_SCALE


def compute_trending_score(views=0, reviews_count=0, average_rating=0.0) -> float:
    """
    Weighted sum of normalized views, review count and average rating.

    ``average_rating`` must be on the 1-5 review scale, not the 10-point
    display scale. With non-negative inputs and an average of at most 5 the
    result lies in [0, 1].
    """
    normalized_views = min((views or 0) / VIEWS_CEILING, 1)
    normalized_reviews = min((reviews_count or 0) / REVIEWS_CEILING, 1)
    normalized_rating = (average_rating or 0) / REVIEW_SCALE

    return (
        normalized_views * VIEWS_WEIGHT
        + normalized_reviews * REVIEWS_WEIGHT
        + normalized_rating * RATING_WEIGHT
    )


def rate_movie(movie: Movie, reviews) -> RatedMovie:
    live = [review for review in reviews if not review.is_deleted]
    average_rating = compute_average_rating(live)
    return RatedMovie(
        movie=movie,
        reviews_count=len(live),
        average_rating=average_rating,
        trending_score=compute_trending_score(movie.views, len(live), average_rating),
    )


async def live_reviews(movie_id: PydanticObjectId):
    return await Review.find(Review.movie_id == movie_id, Review.is_deleted == False).to_list()  # noqa: E712


async def rate_movies(movies) -> list[RatedMovie]:
    """
    Attach review count, average rating and trending score to each movie.

    The live reviews of all movies are loaded with a single query. The
    returned list keeps the order of ``movies``.
    """
    movies = list(movies)
    if not movies:
        return []

    reviews = await Review.find(
        In(Review.movie_id, [movie.id for movie in movies]),
        Review.is_deleted == False,  # noqa: E712
    ).to_list()

    by_movie = defaultdict(list)
    for review in reviews:
        by_movie[review.movie_id].append(review)

    return [rate_movie(movie, by_movie[movie.id]) for movie in movies]


def sort_by_trending(rated_movies) -> list[RatedMovie]:
    # sorted() is stable, ties keep the order of the underlying fetch
    return sorted(rated_movies, key=lambda rated: rated.trending_score, reverse=True)


async def persist_rating_update(movie_id: PydanticObjectId) -> None:
    """
    Recompute a movie's display rating from its live reviews and store it.

    Called after every review create, update or soft delete. Failures are
    logged and swallowed: the review mutation that triggered the update is
    never rolled back, and the cached rating catches up on the next
    successful recomputation.
    """
    try:
        average_rating = compute_average_rating(await live_reviews(movie_id))
        await Movie.find_one(Movie.id == movie_id).update(
            Set({Movie.rating: to_display_rating(average_rating)})
        )
    except Exception:
        logger.exception("Error updating movie rating for %s", movie_id)

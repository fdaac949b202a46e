import logging
from collections import Counter

from beanie.operators import In
from fastapi import APIRouter, Depends, Request, status
from ..models import Actor, Director, Movie, Review, User
from ..OAuth2 import get_current_admin
from ..ratings import compute_average_rating, rate_movies, sort_by_trending
from ..templating import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

MOST_REVIEWED_LIMIT = 5
TRENDING_LIMIT = 10
RECENT_LIMIT = 10


def count_by_month(documents) -> list[dict]:
    """Documents per YYYY-MM of their created_at, oldest month first."""
    counts = Counter(document.created_at.strftime("%Y-%m") for document in documents)
    return [{"month": month, "count": counts[month]} for month in sorted(counts)]


async def build_dashboard() -> dict:
    live_reviews = await Review.find(Review.is_deleted == False).to_list()  # noqa: E712
    all_movies = await Movie.find_all().to_list()

    review_counts = Counter(review.movie_id for review in live_reviews)
    top_reviewed = review_counts.most_common(MOST_REVIEWED_LIMIT)
    top_ids = [movie_id for movie_id, _ in top_reviewed]
    by_id = {movie.id: movie for movie in await Movie.find(In(Movie.id, top_ids)).to_list()} if top_ids else {}
    most_reviewed = [
        {"movie": by_id[movie_id], "review_count": count} for movie_id, count in top_reviewed if movie_id in by_id
    ]

    trending = sort_by_trending(await rate_movies(all_movies))[:TRENDING_LIMIT]

    recent = await Movie.find_all().sort(-Movie.created_at).limit(RECENT_LIMIT).to_list()

    return {
        "stats": {
            "total_users": await User.count(),
            "total_movies": len(all_movies),
            "total_reviews": len(live_reviews),
            "total_actors": await Actor.count(),
            "total_directors": await Director.count(),
            "average_rating": f"{compute_average_rating(live_reviews):.2f}",
        },
        "most_reviewed_movies": most_reviewed,
        "trending_movies": trending,
        "recently_added_movies": await rate_movies(recent),
        "movies_by_month": count_by_month(all_movies),
        "reviews_by_month": count_by_month(live_reviews),
    }


@router.get("/dashboard")
async def get_dashboard(request: Request, user=Depends(get_current_admin)):
    try:
        dashboard = await build_dashboard()
    except Exception as e:
        logger.exception("Error loading admin dashboard")
        return render(
            request,
            "error.html",
            {"error": "Error loading dashboard", "message": str(e), "user": user},
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return render(request, "admin/dashboard.html", {"user": user, **dashboard})

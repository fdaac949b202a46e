"""Unit tests for the admin dashboard aggregations."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from cinecatalog.models import Actor, Director, Movie, Review, User
from cinecatalog.routers import admin


def _query(result) -> MagicMock:
    query = MagicMock()
    query.to_list = AsyncMock(return_value=result)
    query.sort.return_value.limit.return_value.to_list = AsyncMock(return_value=result)
    return query


def test_count_by_month_sorts_oldest_first(review_factory) -> None:
    documents = [
        review_factory(created_at=datetime(2024, 3, 9, tzinfo=timezone.utc)),
        review_factory(created_at=datetime(2023, 12, 31, tzinfo=timezone.utc)),
        review_factory(created_at=datetime(2024, 3, 1, tzinfo=timezone.utc)),
    ]

    assert admin.count_by_month(documents) == [
        {"month": "2023-12", "count": 1},
        {"month": "2024-03", "count": 2},
    ]


def test_count_by_month_of_nothing() -> None:
    assert admin.count_by_month([]) == []


async def test_build_dashboard(mocker, movie_factory, review_factory) -> None:
    busy = movie_factory(title="Busy", views=8000)
    quiet = movie_factory(title="Quiet", views=10)
    live = [
        review_factory(movie_id=busy.id, rating=5),
        review_factory(movie_id=busy.id, rating=4),
        review_factory(movie_id=quiet.id, rating=2),
    ]
    mocker.patch.object(Review, "find", return_value=_query(live))
    mocker.patch.object(Movie, "find_all", return_value=_query([busy, quiet]))
    mocker.patch.object(Movie, "find", return_value=_query([quiet, busy]))
    mocker.patch.object(User, "count", new=AsyncMock(return_value=7))
    mocker.patch.object(Actor, "count", new=AsyncMock(return_value=3))
    mocker.patch.object(Director, "count", new=AsyncMock(return_value=2))

    dashboard = await admin.build_dashboard()

    assert dashboard["stats"] == {
        "total_users": 7,
        "total_movies": 2,
        "total_reviews": 3,
        "total_actors": 3,
        "total_directors": 2,
        "average_rating": "3.67",
    }
    assert [(entry["movie"].title, entry["review_count"]) for entry in dashboard["most_reviewed_movies"]] == [
        ("Busy", 2),
        ("Quiet", 1),
    ]
    assert [rated.movie.title for rated in dashboard["trending_movies"]] == ["Busy", "Quiet"]
    assert len(dashboard["recently_added_movies"]) == 2
    assert dashboard["reviews_by_month"] == [{"month": "2024-03", "count": 3}]


async def test_build_dashboard_on_empty_catalog(mocker, beanie_models) -> None:
    mocker.patch.object(Review, "find", return_value=_query([]))
    mocker.patch.object(Movie, "find_all", return_value=_query([]))
    movie_find = mocker.patch.object(Movie, "find")
    for model in (User, Actor, Director):
        mocker.patch.object(model, "count", new=AsyncMock(return_value=0))

    dashboard = await admin.build_dashboard()

    assert dashboard["stats"]["average_rating"] == "0.00"
    assert dashboard["most_reviewed_movies"] == []
    assert dashboard["trending_movies"] == []
    movie_find.assert_not_called()

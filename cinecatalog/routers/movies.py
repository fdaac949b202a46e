import logging
import re
from datetime import datetime
from typing import List, Optional

from beanie import PydanticObjectId
from beanie.operators import AddToSet, In, Inc, Or, Pull, RegEx
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from ..models import Actor, Director, Movie, Review, User, utcnow
from ..OAuth2 import get_current_admin, get_current_user
from ..ratings import compute_average_rating, rate_movies, sort_by_trending
from ..schemas import TrendingMovieModel
from ..templating import render
from ..uploads import UploadRejected, delete_stored_file, delete_stored_files, save_image, save_images
from ..utils import build_search_keywords, get_youtube_embed_url, parse_genres
from .reviews import usernames_for

logger = logging.getLogger(__name__)

router = APIRouter(tags=["movies"])

RELATED_MOVIES_LIMIT = 6
TRENDING_LIMIT = 10


class MovieFormError(ValueError):
    pass


def redirect_to_list():
    return RedirectResponse(url="/movies", status_code=status.HTTP_302_FOUND)


def parse_release_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        raise MovieFormError("Invalid release date")


def parse_object_ids(values: List[str]) -> List[PydanticObjectId]:
    values = [value for value in values if value]
    if not all(PydanticObjectId.is_valid(value) for value in values):
        raise MovieFormError("Invalid director or actor selection")
    return [PydanticObjectId(value) for value in values]


def validate_movie_form(title, description, genre, release_date, trailer_url, director, actors) -> dict:
    """Turn submitted form values into Movie fields or raise MovieFormError."""
    title, description = title.strip(), description.strip()
    if not title or not description or not release_date.strip():
        raise MovieFormError("Title, description, and release date are required")

    genres = parse_genres(genre)

    embed_url = None
    if trailer_url:
        embed_url = get_youtube_embed_url(trailer_url)
        if not embed_url:
            raise MovieFormError("Invalid YouTube URL")

    director_ids = parse_object_ids([director])

    return {
        "title": title,
        "description": description,
        "genre": genres,
        "release_date": parse_release_date(release_date),
        "trailer_url": embed_url,
        "director_id": director_ids[0] if director_ids else None,
        "actor_ids": parse_object_ids(actors),
        "search_keywords": build_search_keywords(title, genres),
    }


def form_values(movie: Movie) -> dict:
    return {
        "id": str(movie.id),
        "title": movie.title,
        "description": movie.description,
        "genre": ", ".join(movie.genre),
        "release_date": movie.release_date.strftime("%Y-%m-%d"),
        "trailer_url": movie.trailer_url or "",
        "director": str(movie.director_id) if movie.director_id else "",
        "actors": [str(actor_id) for actor_id in movie.actor_ids],
        "poster": movie.poster,
        "gallery": movie.gallery,
    }


async def render_movie_form(request, user, mode, movie, error=None, status_code=status.HTTP_200_OK):
    actors = await Actor.find_all().sort(+Actor.name).to_list()
    directors = await Director.find_all().sort(+Director.name).to_list()
    return render(
        request,
        "movies/form.html",
        {"user": user, "mode": mode, "movie": movie, "error": error, "actors": actors, "directors": directors},
        status_code,
    )


def build_list_query(search=None, genre=None, year=None, min_rating=None) -> list:
    conditions = []

    if search:
        pattern = re.escape(search)
        conditions.append(Or(RegEx(Movie.title, pattern, "i"), RegEx(Movie.search_keywords, pattern, "i")))

    if genre and genre != "all":
        conditions.append(In(Movie.genre, [genre]))

    if year and year != "all":
        try:
            start = datetime(int(year), 1, 1)
            end = start.replace(year=start.year + 1)
        except ValueError:
            logger.debug("Ignoring invalid year filter %r", year)
        else:
            conditions.append(Movie.release_date >= start)
            conditions.append(Movie.release_date < end)

    if min_rating:
        try:
            conditions.append(Movie.rating >= float(min_rating))
        except ValueError:
            logger.debug("Ignoring invalid rating filter %r", min_rating)

    return conditions


@router.get("/movies")
async def get_all_movies(
    request: Request,
    search: Optional[str] = None,
    genre: Optional[str] = None,
    year: Optional[str] = None,
    min_rating: Optional[str] = Query(None, alias="minRating"),
    trending: Optional[str] = None,
    user=Depends(get_current_user),
):
    filters = {"search": search, "genre": genre, "year": year, "min_rating": min_rating, "trending": trending}

    try:
        movies = await Movie.find(*build_list_query(search, genre, year, min_rating)).sort(-Movie.created_at).to_list()
        rated_movies = await rate_movies(movies)

        if trending == "true":
            rated_movies = sort_by_trending(rated_movies)

        all_movies = await Movie.find_all().to_list()
        genres = sorted({g for movie in all_movies for g in movie.genre})
        years = sorted({movie.release_date.year for movie in all_movies}, reverse=True)
    except Exception:
        logger.exception("Error fetching movies")
        return render(
            request,
            "movies/list.html",
            {"movies": [], "error": "Error fetching movies", "user": user, "filters": {}, "genres": [], "years": []},
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return render(
        request,
        "movies/list.html",
        {"movies": rated_movies, "user": user, "filters": filters, "genres": genres, "years": years},
    )


@router.get("/movies/add")
async def show_add_form(request: Request, user=Depends(get_current_admin)):
    return await render_movie_form(request, user, "add", None)


@router.post("/movies/add")
async def create_movie(
    request: Request,
    title: str = Form(""),
    description: str = Form(""),
    genre: List[str] = Form([]),
    release_date: str = Form(""),
    trailer_url: str = Form(""),
    director: str = Form(""),
    actors: List[str] = Form([]),
    poster: Optional[UploadFile] = File(None),
    gallery: List[UploadFile] = File([]),
    user=Depends(get_current_admin),
):
    submitted = {
        "title": title, "description": description, "genre": ", ".join(genre), "release_date": release_date,
        "trailer_url": trailer_url, "director": director, "actors": actors,
    }

    try:
        fields = validate_movie_form(title, description, genre, release_date, trailer_url, director, actors)
    except MovieFormError as e:
        return await render_movie_form(request, user, "add", submitted, str(e), status.HTTP_400_BAD_REQUEST)

    saved_files = []
    try:
        poster_path = await save_image(poster, "movies")
        if poster_path:
            saved_files.append(poster_path)
        gallery_paths = await save_images(gallery, "movies")
        saved_files.extend(gallery_paths)
    except UploadRejected as e:
        delete_stored_files(saved_files)
        return await render_movie_form(request, user, "add", submitted, str(e), status.HTTP_400_BAD_REQUEST)

    try:
        new_movie = Movie(**fields, poster=poster_path, gallery=gallery_paths)
        await new_movie.insert()

        if new_movie.director_id:
            await Director.find_one(Director.id == new_movie.director_id).update(
                AddToSet({Director.movies_worked_in: new_movie.id})
            )
        if new_movie.actor_ids:
            await Actor.find(In(Actor.id, new_movie.actor_ids)).update(
                AddToSet({Actor.movies_worked_in: new_movie.id})
            )
    except Exception:
        logger.exception("Error creating movie")
        delete_stored_files(saved_files)
        return await render_movie_form(
            request, user, "add", submitted, "Error creating movie. Please try again.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.info("Movie created: %s (%s)", new_movie.title, new_movie.id)
    return redirect_to_list()


@router.get("/movies/edit/{movie_id}")
async def show_edit_form(request: Request, movie_id: PydanticObjectId, user=Depends(get_current_admin)):
    movie = await Movie.get(movie_id)
    if not movie:
        return redirect_to_list()
    return await render_movie_form(request, user, "edit", form_values(movie))


@router.post("/movies/edit/{movie_id}")
async def update_movie(
    request: Request,
    movie_id: PydanticObjectId,
    title: str = Form(""),
    description: str = Form(""),
    genre: List[str] = Form([]),
    release_date: str = Form(""),
    trailer_url: Optional[str] = Form(None),
    director: str = Form(""),
    actors: List[str] = Form([]),
    remove_gallery: List[str] = Form([]),
    poster: Optional[UploadFile] = File(None),
    gallery: List[UploadFile] = File([]),
    user=Depends(get_current_admin),
):
    existing_movie = await Movie.get(movie_id)
    if not existing_movie:
        return redirect_to_list()

    submitted = {
        **form_values(existing_movie),
        "title": title, "description": description, "genre": ", ".join(genre), "release_date": release_date,
        "director": director, "actors": actors,
    }
    if trailer_url is not None:
        submitted["trailer_url"] = trailer_url

    try:
        # an absent trailer field keeps the stored trailer, an empty one clears it
        fields = validate_movie_form(
            title, description, genre, release_date,
            trailer_url if trailer_url is not None else existing_movie.trailer_url,
            director, actors,
        )
    except MovieFormError as e:
        return await render_movie_form(request, user, "edit", submitted, str(e), status.HTTP_400_BAD_REQUEST)

    saved_files = []
    try:
        poster_path = await save_image(poster, "movies")
        if poster_path:
            saved_files.append(poster_path)
        new_gallery = await save_images(gallery, "movies")
        saved_files.extend(new_gallery)
    except UploadRejected as e:
        delete_stored_files(saved_files)
        return await render_movie_form(request, user, "edit", submitted, str(e), status.HTTP_400_BAD_REQUEST)

    old_poster = existing_movie.poster
    old_director_id = existing_movie.director_id
    old_actor_ids = list(existing_movie.actor_ids)
    removed = [path for path in remove_gallery if path in existing_movie.gallery]

    try:
        if poster_path:
            existing_movie.poster = poster_path
        existing_movie.gallery = [path for path in existing_movie.gallery if path not in removed] + new_gallery

        for name, value in fields.items():
            setattr(existing_movie, name, value)
        existing_movie.updated_at = utcnow()
        await existing_movie.save()
    except Exception:
        logger.exception("Error updating movie %s", movie_id)
        delete_stored_files(saved_files)
        return redirect_to_list()

    # replaced files are only removed once the document no longer points at them
    if poster_path:
        delete_stored_file(old_poster)
    delete_stored_files(removed)

    try:
        await sync_credits(existing_movie.id, old_director_id, old_actor_ids, fields["director_id"], fields["actor_ids"])
    except Exception:
        logger.exception("Error updating credits for movie %s", movie_id)

    return redirect_to_list()


async def sync_credits(movie_id, old_director_id, old_actor_ids, new_director_id, new_actor_ids) -> None:
    """Keep Director/Actor.movies_worked_in in step with a movie's credits."""
    if new_director_id != old_director_id:
        if old_director_id:
            await Director.find_one(Director.id == old_director_id).update(Pull({Director.movies_worked_in: movie_id}))
        if new_director_id:
            await Director.find_one(Director.id == new_director_id).update(
                AddToSet({Director.movies_worked_in: movie_id})
            )

    removed_actors = [actor_id for actor_id in old_actor_ids if actor_id not in new_actor_ids]
    if removed_actors:
        await Actor.find(In(Actor.id, removed_actors)).update(Pull({Actor.movies_worked_in: movie_id}))

    added_actors = [actor_id for actor_id in new_actor_ids if actor_id not in old_actor_ids]
    if added_actors:
        await Actor.find(In(Actor.id, added_actors)).update(AddToSet({Actor.movies_worked_in: movie_id}))


@router.get("/movies/delete/{movie_id}")
async def delete_movie(movie_id: PydanticObjectId, user=Depends(get_current_admin)):
    movie = await Movie.get(movie_id)
    if not movie:
        return redirect_to_list()

    try:
        delete_stored_file(movie.poster)
        delete_stored_files(movie.gallery)

        await sync_credits(movie.id, movie.director_id, movie.actor_ids, None, [])
        await Review.find(Review.movie_id == movie.id).delete()
        await User.find(In(User.watchlist, [movie.id])).update(Pull({User.watchlist: movie.id}))
        await movie.delete()
    except Exception:
        logger.exception("Error deleting movie %s", movie_id)

    return redirect_to_list()


@router.get("/movies/{movie_id}")
async def get_movie_detail(request: Request, movie_id: PydanticObjectId, user=Depends(get_current_user)):
    try:
        await Movie.find_one(Movie.id == movie_id).update(Inc({Movie.views: 1}))

        movie = await Movie.get(movie_id)
        if not movie:
            return redirect_to_list()

        director = await Director.get(movie.director_id) if movie.director_id else None
        actors = await Actor.find(In(Actor.id, movie.actor_ids)).to_list() if movie.actor_ids else []

        reviews = await Review.find(
            Review.movie_id == movie.id, Review.is_deleted == False  # noqa: E712
        ).sort(-Review.created_at).to_list()
        usernames = await usernames_for(reviews)
        avg_rating = compute_average_rating(reviews)

        user_review = await Review.find_one(Review.movie_id == movie.id, Review.user_id == user.id)
        in_watchlist = movie.id in user.watchlist

        related = (
            await Movie.find(Movie.id != movie.id, In(Movie.genre, movie.genre)).limit(RELATED_MOVIES_LIMIT).to_list()
        )
        related_movies = await rate_movies(related)
    except Exception:
        logger.exception("Error fetching movie detail %s", movie_id)
        return redirect_to_list()

    return render(
        request,
        "movies/detail.html",
        {
            "movie": movie,
            "director": director,
            "actors": actors,
            "reviews": reviews,
            "usernames": usernames,
            "avg_rating": avg_rating,
            "user_review": user_review,
            "in_watchlist": in_watchlist,
            "related_movies": related_movies,
            "user": user,
        },
    )


@router.get("/api/movies/trending", response_model=list[TrendingMovieModel])
async def get_trending_movies(user=Depends(get_current_user)):
    rated_movies = sort_by_trending(await rate_movies(await Movie.find_all().to_list()))[:TRENDING_LIMIT]

    return [
        TrendingMovieModel(
            id=rated.movie.id,
            title=rated.movie.title,
            genre=rated.movie.genre,
            release_date=rated.movie.release_date,
            poster=rated.movie.poster,
            views=rated.movie.views,
            rating=rated.movie.rating,
            reviews_count=rated.reviews_count,
            average_rating=rated.average_rating,
            trending_score=rated.trending_score,
        )
        for rated in rated_movies
    ]

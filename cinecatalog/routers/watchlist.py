import logging

from beanie.operators import AddToSet, In, Pull
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from ..models import Movie, User
from ..OAuth2 import get_current_user
from ..ratings import rate_movies
from ..schemas import WatchlistToggleModel, WatchlistToggleResponse
from ..templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["watchlist"])


@router.post("/api/watchlist/toggle", response_model=WatchlistToggleResponse)
async def toggle_watchlist(body: WatchlistToggleModel, user=Depends(get_current_user)):
    try:
        in_watchlist = body.movie_id not in user.watchlist
        operator = AddToSet if in_watchlist else Pull
        await User.find_one(User.id == user.id).update(operator({User.watchlist: body.movie_id}))
    except Exception:
        logger.exception("Error toggling watchlist")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error updating watchlist")

    return WatchlistToggleResponse(in_watchlist=in_watchlist)


@router.get("/my-watchlist")
async def get_watchlist(request: Request, user=Depends(get_current_user)):
    try:
        movies = await Movie.find(In(Movie.id, user.watchlist)).to_list() if user.watchlist else []
        # keep the order the user added them in
        position = {movie_id: index for index, movie_id in enumerate(user.watchlist)}
        movies.sort(key=lambda movie: position[movie.id])
        rated_movies = await rate_movies(movies)
    except Exception:
        logger.exception("Error fetching watchlist")
        return RedirectResponse(url="/movies", status_code=status.HTTP_302_FOUND)

    return render(request, "watchlist.html", {"movies": rated_movies, "user": user})

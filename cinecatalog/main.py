import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from beanie import init_beanie
from pymongo import AsyncMongoClient
from contextlib import asynccontextmanager
from .models import DOCUMENT_MODELS
from .routers import actors, admin, auth, directors, movies, pages, reviews, watchlist
from .config import settings
from .OAuth2 import NotAuthenticated, NotAuthorized, clear_session_cookie
from .templating import render
from .uploads import create_upload_dirs, upload_root

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

DATABASE_NAME = settings.DATABASE_NAME

@asynccontextmanager
async def lifespan(app: FastAPI):
    client = AsyncMongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]
    await init_beanie(database=db, document_models=DOCUMENT_MODELS)
    logger.info("Connected to MongoDB database %s", DATABASE_NAME)
    yield
    await client.close()

create_upload_dirs()

app = FastAPI(lifespan=lifespan)

app.mount("/uploads", StaticFiles(directory=str(upload_root())), name="uploads")


@app.exception_handler(NotAuthenticated)
async def redirect_to_login(request: Request, exc: NotAuthenticated):
    response = RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)
    clear_session_cookie(response)
    return response


@app.exception_handler(NotAuthorized)
async def access_denied(request: Request, exc: NotAuthorized):
    return render(
        request,
        "error.html",
        {"error": "Access Denied", "message": str(exc), "user": exc.user},
        status.HTTP_403_FORBIDDEN,
    )


app.include_router(pages.router)
app.include_router(auth.router)
app.include_router(movies.router)
app.include_router(reviews.router)
app.include_router(watchlist.router)
app.include_router(actors.router)
app.include_router(directors.router)
app.include_router(admin.router)
